import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import Tag

TAG_RE = re.compile(r"<[^>]*>")
ENTITY_RE = re.compile(r"&[^;\s]+;")


def clean_cell(cell_html: Optional[str]) -> str:
    """Quita etiquetas y entidades HTML (no las decodifica) y recorta espacios."""
    if not cell_html:
        return ""
    text = TAG_RE.sub("", cell_html)
    text = ENTITY_RE.sub("", text)
    return text.strip()


def _split_cells(row: Tag) -> List[Tag]:
    # Solo celdas directas: una tabla anidada dentro de una celda no cuenta
    return row.find_all("td", recursive=False)


def is_header_row(row: Tag) -> bool:
    return row.find("th", recursive=False) is not None or row.find("td", recursive=False) is None


def absolute_url(base_url: str, ref: str) -> str:
    # bs4 ya decodifica &amp; en los atributos
    return urljoin(base_url.rstrip("/") + "/", ref.strip())

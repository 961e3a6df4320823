import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from labportal.commons.logger import logger

from .base import _split_cells, absolute_url, clean_cell, is_header_row
from .models import ResultRecord


@dataclass(frozen=True)
class TableStrategy:
    name: str
    locate: Callable[[BeautifulSoup], Optional[Tag]]

    def extract(self, soup: BeautifulSoup) -> Optional[Tag]:
        return self.locate(soup)


# Orden importa: la tabla de escritorio primero, luego la tabla principal.
TABLE_STRATEGIES: Tuple[TableStrategy, ...] = (
    TableStrategy("large", lambda soup: soup.find("table", class_=["show-for-large", "large-only"])),
    TableStrategy("main", lambda soup: soup.find("table")),
)

PDF_HREF_RE = re.compile(r"pdf", re.IGNORECASE)

# Contrato posicional de la fila (1-indexado). La celda 1 es la del enlace
# y se descarta. Si el portal mueve columnas, este es el único lugar a tocar.
RESULT_COLUMNS: Tuple[Tuple[str, int], ...] = (
    ("order", 2),
    ("license", 3),
    ("transmitted", 4),
)
MIN_CELLS = 4


def find_results_table(
    soup: BeautifulSoup, strategies: Sequence[TableStrategy] = TABLE_STRATEGIES
) -> Optional[Tag]:
    for strategy in strategies:
        table = strategy.extract(soup)
        if table is not None:
            logger.debug(f"Tabla de resultados localizada con estrategia '{strategy.name}'")
            return table
    return None


def _own_rows(table: Tag) -> List[Tag]:
    # Filas de esta tabla, sin las de tablas anidadas en alguna celda
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def parse_row(row: Tag, base_url: str) -> Optional[ResultRecord]:
    """Convierte una fila <tr> en ResultRecord, o None si no es una fila de datos válida."""
    if is_header_row(row):
        return None

    link = row.find("a", href=PDF_HREF_RE)
    if link is None:
        return None

    cells = _split_cells(row)
    if len(cells) < MIN_CELLS:
        logger.debug(f"Fila con {len(cells)} celdas (< {MIN_CELLS}), se omite")
        return None

    values = {name: clean_cell(cells[pos - 1].decode_contents()) for name, pos in RESULT_COLUMNS}
    href = (link.get("href") or "").strip()
    pdf_url = absolute_url(base_url, href) if href else ""

    if not all(values.values()) or not pdf_url:
        logger.debug(f"Fila incompleta omitida: {values}")
        return None
    return ResultRecord(pdf_url=pdf_url, **values)


def parse_results(
    html_text: str,
    base_url: str,
    strategies: Sequence[TableStrategy] = TABLE_STRATEGIES,
) -> List[ResultRecord]:
    """Extrae la lista de resultados del HTML devuelto tras enviar el formulario.

    El HTML del portal no es un contrato: cualquier cosa mal formada se omite
    y nunca se lanza excepción. Sin tabla -> lista vacía.
    """
    results: List[ResultRecord] = []
    soup = BeautifulSoup(html_text or "", "html.parser")
    table = find_results_table(soup, strategies)
    if table is None:
        logger.warning("No se encontró la tabla de resultados en el HTML")
        return results

    for row in _own_rows(table):
        record = parse_row(row, base_url)
        if record is not None:
            results.append(record)

    logger.info(f"{len(results)} resultado(s) extraído(s) del HTML")
    return results

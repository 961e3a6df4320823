import re
from typing import Optional
from urllib.parse import parse_qs, unquote, urlsplit

from labportal.commons.logger import logger
from labportal.commons.types import LookupKey

CONTROL_ALIASES = ("controlnumber", "control")
LICENSE_ALIASES = ("lablicense", "license")

# Dos órdenes posibles: control...licencia (grupos 1,2) o licencia...control (grupos 3,4)
CONTROL_LICENSE_RE = re.compile(
    r"(?:controlnumber|control)=([^&#\s]+).*?(?:lablicense|license)=([^&#\s]+)"
    r"|(?:lablicense|license)=([^&#\s]+).*?(?:controlnumber|control)=([^&#\s]+)",
    re.IGNORECASE,
)


def _first_param(params: dict, aliases) -> Optional[str]:
    for name in aliases:
        values = params.get(name)
        if values and values[0].strip():
            return values[0].strip()
    return None


def _from_query(raw_url: str) -> Optional[LookupKey]:
    try:
        parts = urlsplit(raw_url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    params = parse_qs(parts.query)
    control = _first_param(params, CONTROL_ALIASES)
    license = _first_param(params, LICENSE_ALIASES)
    if control and license:
        return LookupKey(control=control, license=license)
    return None


def _from_regex(raw_url: str) -> Optional[LookupKey]:
    m = CONTROL_LICENSE_RE.search(raw_url)
    if not m:
        return None
    control = m.group(1) or m.group(4)
    license = m.group(2) or m.group(3)
    if not control or not license:
        return None
    return LookupKey(control=unquote(control), license=unquote(license))


def parse_lookup_key_from_link(raw_url: Optional[str]) -> Optional[LookupKey]:
    """Recupera (control, licencia) de un enlace compartido.

    Primero se interpreta como URL; si no es una URL válida o le falta uno de
    los dos parámetros, se intenta con una expresión regular sobre el texto.
    Que no haya par es un resultado normal (None), no un error.
    """
    raw_url = (raw_url or "").strip()
    if not raw_url:
        return None
    key = _from_query(raw_url) or _from_regex(raw_url)
    if key is None:
        logger.debug(f"Sin número de control/licencia en el enlace: {raw_url}")
    return key

import re
from typing import Optional

DEFAULT_SESSION_COOKIE = "ASP.NET_SessionId"


def extract_session_token(
    cookie_header: Optional[str], cookie_name: str = DEFAULT_SESSION_COOKIE
) -> Optional[str]:
    """Devuelve el valor de la cookie de sesión dentro de un Set-Cookie, o None."""
    if not cookie_header:
        return None
    m = re.search(rf"(?:^|[\s;,]){re.escape(cookie_name)}=([^;,\s]+)", cookie_header)
    return m.group(1) if m else None

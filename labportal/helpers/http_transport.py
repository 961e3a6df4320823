from typing import Optional

import httpx

from labportal.commons.types import PortalCfg


def build_client(portal: PortalCfg, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Cliente HTTP con cookie jar propio; las cookies del GET viajan solas en el POST y en los PDF."""
    return httpx.AsyncClient(
        headers={
            "User-Agent": portal.user_agent,
            "Accept-Language": portal.accept_language,
        },
        timeout=httpx.Timeout(portal.timeout_sec),
        follow_redirects=True,
        transport=transport,
    )


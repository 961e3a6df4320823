from typing import Optional


class PortalError(Exception):
    """Base de los errores que el cliente reporta al llamador."""


class PortalTransportError(PortalError):
    """Fallo de red: DNS, conexión, timeout."""


class PortalHTTPError(PortalTransportError):
    def __init__(self, status_code: int, reason: Optional[str] = None, url: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason or ""
        self.url = url
        super().__init__(f"HTTP {status_code}: {self.reason}".rstrip(": "))


class ContentMismatchError(PortalError):
    """El portal devolvió algo que no es un PDF (típicamente HTML de login o error)."""

    def __init__(self, content_type: Optional[str], url: Optional[str] = None):
        self.content_type = content_type
        self.url = url
        super().__init__(f"La respuesta no es un PDF (Content-Type: {content_type or 'desconocido'})")


class InvalidLinkError(PortalError):
    def __init__(self, link: str):
        self.link = link
        super().__init__(f"No se encontró número de control/licencia en el enlace: {link}")

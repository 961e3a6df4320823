# labportal/services/results_service.py
from enum import Enum
from typing import List, Optional
from urllib.parse import urlsplit

import httpx

from labportal.commons.errors import InvalidLinkError, PortalHTTPError, PortalTransportError
from labportal.commons.logger import logger
from labportal.commons.types import PatientInfo, PortalCfg
from labportal.helpers.form_builder import build_lookup_url, build_submission_body
from labportal.helpers.http_transport import build_client
from labportal.parsers.links import parse_lookup_key_from_link
from labportal.parsers.models import ResultRecord
from labportal.parsers.results_html import parse_results
from labportal.parsers.session import extract_session_token
from labportal.validation.validators import validate_pdf_or_raise


class FetchState(str, Enum):
    IDLE = "idle"
    AWAITING_SESSION_PAGE = "awaiting_session_page"
    SUBMITTING_FORM = "submitting_form"
    PARSING_RESULTS = "parsing_results"
    DONE = "done"
    FAILED = "failed"


class ResultsService:
    """Flujo GET (sesión) -> POST (formulario) -> HTML -> resultados + token de sesión.

    Cada instancia tiene su propio cookie jar y su propio token; no se
    comparte estado entre instancias ni se serializan llamadas concurrentes.
    """

    def __init__(
        self,
        portal: Optional[PortalCfg] = None,
        client: Optional[httpx.AsyncClient] = None,
        session_token: Optional[str] = None,
    ):
        self.portal = portal or PortalCfg()
        self.client = client or build_client(self.portal)
        self.state = FetchState.IDLE
        self.session_token = session_token
        self.results: List[ResultRecord] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self.client.request(method, url, **kwargs)
        except httpx.RequestError as ex:
            raise PortalTransportError(f"{method} {url} falló: {ex}") from ex
        if not resp.is_success:
            raise PortalHTTPError(resp.status_code, resp.reason_phrase, url)
        return resp

    async def fetch_results(self, patient: PatientInfo, control: str, license: str) -> List[ResultRecord]:
        url = build_lookup_url(control, license, self.portal)
        # Cada consulta abre sesión nueva: fuera la cookie de la anterior, sea cual sea su dominio
        self.client.cookies.delete(self.portal.session_cookie)
        try:
            # 1) GET para abrir sesión (las cookies quedan en el jar del cliente)
            self.state = FetchState.AWAITING_SESSION_PAGE
            logger.info(f"Abriendo sesión en el portal: {url}")
            await self._request("GET", url)

            # 2) POST del formulario con los datos del paciente
            self.state = FetchState.SUBMITTING_FORM
            logger.info("Enviando información del paciente")
            resp = await self._request(
                "POST",
                url,
                data=build_submission_body(patient, control, license, self.portal),
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Referer": url,
                    "Origin": self.portal.base_url,
                },
            )
        except Exception as ex:
            self.state = FetchState.FAILED
            logger.error(f"Fallo obteniendo resultados ({control}/{license}): {ex}")
            raise

        # 3) Parseo: nunca falla, a lo sumo devuelve menos filas
        self.state = FetchState.PARSING_RESULTS
        results = parse_results(resp.text, self.portal.base_url)
        token = extract_session_token(resp.headers.get("set-cookie"), self.portal.session_cookie)
        if token:
            self.session_token = token
        self.results = results
        self.state = FetchState.DONE
        if not results:
            logger.warning(f"Sin resultados para control={control} licencia={license}")
        return results

    def jar_session_token(self) -> Optional[str]:
        """Valor de la cookie de sesión guardada en el jar (p. ej. fijada solo en el GET)."""
        for cookie in self.client.cookies.jar:
            if cookie.name == self.portal.session_cookie and cookie.value:
                return cookie.value
        return None

    async def fetch_by_link(self, patient: PatientInfo, link: str) -> List[ResultRecord]:
        key = parse_lookup_key_from_link(link)
        if key is None:
            raise InvalidLinkError(link)
        return await self.fetch_results(patient, key.control, key.license)

    async def retrieve_pdf(self, pdf_url: str) -> bytes:
        """Descarga un PDF con las cookies de la sesión; no toca self.results."""
        if self.session_token and self.jar_session_token() is None:
            # Token recuperado de una ejecución anterior
            host = urlsplit(self.portal.base_url).hostname or ""
            self.client.cookies.set(self.portal.session_cookie, self.session_token, domain=host)
        logger.info(f"Descargando PDF: {pdf_url}")
        try:
            resp = await self._request("GET", pdf_url, headers={"Accept": "application/pdf,*/*"})
            content = validate_pdf_or_raise(resp.headers.get("content-type"), resp.content, pdf_url)
        except Exception as ex:
            logger.error(f"Fallo descargando PDF {pdf_url}: {ex}")
            raise
        logger.info(f"PDF recibido: {len(content)} bytes")
        return content

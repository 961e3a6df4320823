import asyncio
import json
import os
import sys
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError

from labportal.commons.errors import InvalidLinkError, PortalError
from labportal.commons.i18n import MESSAGES, Translator
from labportal.commons.logger import setup_logging
from labportal.commons.types import Settings
from labportal.helpers.file_transport import PdfWriter
from labportal.parsers.models import ResultRecord
from labportal.services.results_service import ResultsService
from labportal.storage.patient_store import PatientStore
from labportal.validation.validators import validate_lookup_key_or_raise, validate_patient_or_raise

app = typer.Typer(add_completion=False, help="Cliente de resultados de laboratorio (misresultados.com)")


def resource_path(relative_path: str) -> str:
    """Devuelve la ruta absoluta a un recurso, ya sea ejecutando como .exe o en desarrollo"""
    if hasattr(sys, "_MEIPASS"):
        # Si es un ejecutable generado por PyInstaller
        base_path = sys._MEIPASS
    else:
        base_path = os.path.dirname(os.path.abspath(__file__))

    return os.path.join(base_path, relative_path)


def load_cfg(path: Optional[str] = None) -> Settings:
    config_path = path or os.getenv("LABPORTAL_CONFIG") or resource_path("labportal/configs/settings.yaml")
    with open(config_path, "r", encoding="utf-8") as f:
        return Settings(**(yaml.safe_load(f) or {}))


def _bootstrap():
    cfg = load_cfg()
    setup_logging(cfg.paths.logs_root, os.getenv("LOG_LEVEL", "INFO"))
    store = PatientStore(cfg.paths.store_file)
    tr = Translator(cfg.language or store.get_language())
    return cfg, store, tr


def _fail(message: str):
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _print_results(results: List[ResultRecord], tr: Translator, as_json: bool):
    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
        return
    typer.echo(tr.t("results.count", count=len(results)))
    for r in results:
        typer.echo(
            f"- {tr.t('results.order')}: {r.order} | {tr.t('results.license')}: {r.license}"
            f" | {tr.t('results.transmitted')}: {r.transmitted}"
        )
        typer.echo(f"  {tr.t('results.pdf')}: {r.pdf_url}")


@app.command()
def save_patient(
    name: str = typer.Option(..., help="Apellidos del paciente"),
    day: str = typer.Option(..., help="Día de nacimiento (DD)"),
    month: str = typer.Option(..., help="Mes de nacimiento (MM)"),
    year: str = typer.Option(..., help="Año de nacimiento (YYYY)"),
):
    _, store, tr = _bootstrap()
    try:
        patient = validate_patient_or_raise({"name": name, "day": day, "month": month, "year": year})
    except ValidationError as ve:
        _fail(tr.t("errors.invalidPatient", detail=ve.errors()[0].get("msg", "")))
    store.set_patient(patient)
    typer.echo(tr.t("success.patientSaved"))


@app.command()
def show_patient():
    _, store, tr = _bootstrap()
    patient = store.get_patient()
    if patient is None:
        typer.echo(tr.t("patient.none"))
        return
    typer.echo(f"{tr.t('patient.name')}: {patient.name}")
    typer.echo(f"{tr.t('patient.dob')}: {patient.day}/{patient.month}/{patient.year}")


@app.command()
def clear_patient():
    _, store, tr = _bootstrap()
    store.clear_patient()
    typer.echo(tr.t("success.patientCleared"))


@app.command()
def set_language(language: str = typer.Argument(..., help="es | en")):
    _, store, tr = _bootstrap()
    language = language.strip().lower()
    if language not in MESSAGES:
        _fail(tr.t("errors.unsupportedLanguage", language=language))
    store.set_language(language)
    typer.echo(Translator(language).t("success.languageSaved"))


@app.command()
def fetch(
    control: Optional[str] = typer.Option(None, help="Número de control"),
    license: Optional[str] = typer.Option(None, help="Licencia del laboratorio"),
    link: Optional[str] = typer.Option(None, help="Enlace compartido con controlnumber/lablicense"),
    download: bool = typer.Option(False, help="Descarga los PDF de todos los resultados"),
    as_json: bool = typer.Option(False, "--json", help="Imprime los resultados como JSON"),
):
    """Busca los resultados del paciente guardado, por número de control/licencia o por enlace."""
    cfg, store, tr = _bootstrap()
    patient = store.get_patient()
    if patient is None:
        _fail(tr.t("errors.noPatientInfo"))
    if not link:
        try:
            validate_lookup_key_or_raise(control, license)
        except ValueError:
            _fail(tr.t("errors.generic"))

    async def _amain():
        # Sesión nueva: el GET abre una y las cookies quedan en el jar
        async with ResultsService(cfg.portal) as svc:
            if link:
                results = await svc.fetch_by_link(patient, link)
            else:
                results = await svc.fetch_results(patient, control.strip(), license.strip())
            store.set_session_token(svc.session_token or svc.jar_session_token())

            failed = 0
            if download and results:
                writer = PdfWriter(cfg.paths.downloads)
                typer.echo(tr.t("loading.downloadingPDF"), err=True)
                for r in results:
                    try:
                        content = await svc.retrieve_pdf(r.pdf_url)
                    except PortalError as ex:
                        failed += 1
                        typer.echo(tr.t("errors.pdfFailed", detail=ex), err=True)
                        continue
                    typer.echo(tr.t("success.pdfSaved", path=writer.write(content, r.pdf_filename())), err=True)
            return results, failed

    typer.echo(tr.t("loading.fetchingResults"), err=True)
    try:
        results, failed = asyncio.run(_amain())
    except InvalidLinkError:
        _fail(tr.t("errors.invalidLink"))
    except PortalError as ex:
        _fail(tr.t("errors.fetchFailed", detail=ex))

    if not results and not as_json:
        typer.echo(tr.t("results.noResults"))
        return
    _print_results(results, tr, as_json)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def pdf(
    url: str = typer.Argument(..., help="URL del PDF (pdf_url de un resultado)"),
    out: Optional[str] = typer.Option(None, help="Nombre del archivo de salida"),
):
    """Descarga un PDF usando el último token de sesión guardado."""
    cfg, store, tr = _bootstrap()

    async def _amain():
        async with ResultsService(cfg.portal, session_token=store.get_session_token()) as svc:
            return await svc.retrieve_pdf(url)

    typer.echo(tr.t("loading.downloadingPDF"), err=True)
    try:
        content = asyncio.run(_amain())
    except PortalError as ex:
        _fail(tr.t("errors.pdfFailed", detail=ex))
    path = PdfWriter(cfg.paths.downloads).write(content, out)
    typer.echo(tr.t("success.pdfSaved", path=path))


if __name__ == "__main__":
    app()

import re
from typing import Dict

DEFAULT_LANGUAGE = "es"

MESSAGES: Dict[str, Dict[str, str]] = {
    "es": {
        "errors.generic": "Por favor complete todos los campos.",
        "errors.invalidLink": "El enlace no contiene número de control y licencia.",
        "errors.noPatientInfo": "Primero guarde la información del paciente (save-patient).",
        "errors.fetchFailed": "No se pudieron obtener los resultados: {detail}",
        "errors.pdfFailed": "No se pudo descargar el PDF: {detail}",
        "errors.invalidPatient": "Información del paciente inválida: {detail}",
        "errors.unsupportedLanguage": "Idioma no soportado: {language}",
        "results.noResults": "No se encontraron resultados.",
        "results.count": "{count} resultado(s) encontrado(s)",
        "results.order": "Orden",
        "results.license": "Licencia",
        "results.transmitted": "Transmitido",
        "results.pdf": "PDF",
        "patient.name": "Apellidos",
        "patient.dob": "Fecha de nacimiento",
        "patient.none": "No hay información del paciente guardada.",
        "loading.fetchingResults": "Buscando resultados...",
        "loading.downloadingPDF": "Descargando PDF...",
        "success.patientSaved": "Información del paciente guardada.",
        "success.patientCleared": "Información del paciente eliminada.",
        "success.languageSaved": "Idioma actualizado.",
        "success.pdfSaved": "PDF guardado en {path}",
    },
    "en": {
        "errors.generic": "Please fill in all fields.",
        "errors.invalidLink": "The link does not contain a control number and license.",
        "errors.noPatientInfo": "Save the patient information first (save-patient).",
        "errors.fetchFailed": "Could not fetch results: {detail}",
        "errors.pdfFailed": "Could not download the PDF: {detail}",
        "errors.invalidPatient": "Invalid patient information: {detail}",
        "errors.unsupportedLanguage": "Unsupported language: {language}",
        "results.noResults": "No results found.",
        "results.count": "{count} result(s) found",
        "results.order": "Order",
        "results.license": "License",
        "results.transmitted": "Transmitted",
        "results.pdf": "PDF",
        "patient.name": "Last names",
        "patient.dob": "Date of birth",
        "patient.none": "No patient information saved.",
        "loading.fetchingResults": "Fetching results...",
        "loading.downloadingPDF": "Downloading PDF...",
        "success.patientSaved": "Patient information saved.",
        "success.patientCleared": "Patient information cleared.",
        "success.languageSaved": "Language updated.",
        "success.pdfSaved": "PDF saved to {path}",
    },
}


class Translator:
    """Contexto de idioma explícito; lo construye la capa CLI, nunca el núcleo."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        self.language = language if language in MESSAGES else DEFAULT_LANGUAGE

    def t(self, key: str, **params) -> str:
        value = MESSAGES[self.language].get(key)
        if value is None:
            value = MESSAGES[DEFAULT_LANGUAGE].get(key, key)
        if not params:
            return value
        return re.sub(
            r"\{(\w+)\}",
            lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
            value,
        )

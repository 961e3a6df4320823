# labportal/validation/validators.py
from typing import Mapping, Optional

from labportal.commons.errors import ContentMismatchError
from labportal.commons.types import LookupKey, PatientInfo

PDF_SIGNATURE = b"%PDF"
# La cabecera %PDF puede aparecer dentro de los primeros 1024 bytes
PDF_SIGNATURE_WINDOW = 1024


def validate_patient_or_raise(data: Mapping) -> PatientInfo:
    """Construye PatientInfo y levanta ValidationError si falta algo o está mal."""
    return PatientInfo(**dict(data))


def validate_lookup_key_or_raise(control: str, license: str) -> LookupKey:
    control = (control or "").strip()
    license = (license or "").strip()
    if not control or not license:
        raise ValueError("Número de control y licencia son obligatorios")
    return LookupKey(control=control, license=license)


def is_pdf(content_type: Optional[str], content: bytes) -> bool:
    if content_type and "pdf" in content_type.lower():
        return True
    return PDF_SIGNATURE in (content or b"")[:PDF_SIGNATURE_WINDOW]


def validate_pdf_or_raise(content_type: Optional[str], content: bytes, url: Optional[str] = None) -> bytes:
    if not is_pdf(content_type, content):
        raise ContentMismatchError(content_type, url)
    return content

from typing import Dict, Optional

from labportal.commons.types import PatientInfo, PortalCfg


def build_lookup_url(control: str, license: str, portal: Optional[PortalCfg] = None) -> str:
    # Sin validar ni codificar: se envía tal cual lo dio el usuario
    portal = portal or PortalCfg()
    return f"{portal.base_url}{portal.patient_path}?controlnumber={control}&lablicense={license}"


def build_submission_body(
    patient: PatientInfo, control: str, license: str, portal: Optional[PortalCfg] = None
) -> Dict[str, str]:
    """Cuerpo application/x-www-form-urlencoded del formulario del paciente.

    El campo del CAPTCHA se envía vacío siempre; el portal hoy lo acepta así
    y no hay mecanismo para resolverlo.
    """
    portal = portal or PortalCfg()
    f = portal.form_fields
    return {
        f["last_name"]: patient.name,
        f["birth_year"]: patient.year,
        f["birth_month"]: patient.month,
        f["birth_day"]: patient.day,
        f["control_number"]: control,
        f["license_number"]: license,
        f["captcha"]: "",
    }

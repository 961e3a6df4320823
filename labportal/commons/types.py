from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_FORM_FIELDS: Dict[str, str] = {
    "last_name": "LastName",
    "birth_year": "BirthYear",
    "birth_month": "BirthMonth",
    "birth_day": "BirthDay",
    "control_number": "ControlNumber",
    "license_number": "LicenseNumber",
    "captcha": "g-recaptcha-response",
}


class PatientInfo(BaseModel):
    """Identidad del paciente tal como la pide el formulario del portal."""

    model_config = ConfigDict(frozen=True)

    name: str  # apellidos
    year: str
    month: str
    day: str

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, v: str):
        v = (v or "").strip()
        if not v:
            raise ValueError("El apellido es obligatorio")
        return v

    @field_validator("year")
    @classmethod
    def _year_4_digits(cls, v: str):
        v = str(v).strip()
        if not (v.isdigit() and len(v) == 4):
            raise ValueError(f"Año inválido: {v!r}")
        return v

    @field_validator("month", "day")
    @classmethod
    def _zero_pad(cls, v: str):
        v = str(v).strip()
        if not v.isdigit() or len(v) > 2 or int(v) == 0:
            raise ValueError(f"Valor de fecha inválido: {v!r}")
        return v.zfill(2)


class LookupKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    control: str
    license: str


class PortalCfg(BaseModel):
    base_url: str = "https://www.misresultados.com"
    patient_path: str = "/Patient"
    session_cookie: str = "ASP.NET_SessionId"
    form_fields: Dict[str, str] = DEFAULT_FORM_FIELDS
    user_agent: str = "MisResultados-CLI (+https://github.com/Boricua-Tools/resultados-medicos)"
    accept_language: str = "en-US,en;q=0.5"
    timeout_sec: float = 30.0

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str):
        return v.rstrip("/")

    @field_validator("form_fields")
    @classmethod
    def _merge_defaults(cls, v: Dict[str, str]):
        # Permite sobreescribir solo algunos nombres desde el YAML
        return {**DEFAULT_FORM_FIELDS, **(v or {})}


class PathsCfg(BaseModel):
    logs_root: str = "logs"
    downloads: str = "downloads"
    store_file: str = "data/labportal.json"


class Settings(BaseModel):
    portal: PortalCfg = PortalCfg()
    paths: PathsCfg = PathsCfg()
    language: Optional[str] = None

import json
from pathlib import Path
from typing import Optional

from labportal.commons.i18n import DEFAULT_LANGUAGE
from labportal.commons.logger import logger
from labportal.commons.types import PatientInfo

PATIENT_KEY = "patient_info"
LANGUAGE_KEY = "language"
SESSION_KEY = "session_token"


class PatientStore:
    """Almacén JSON local: datos del paciente, idioma y último token de sesión."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, ValueError) as e:
            logger.warning(f"No se pudo leer {self.path}: {e}; se ignora")
            return {}

    def _save(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def _set(self, key: str, value):
        data = self._load()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        self._save(data)

    def get_patient(self) -> Optional[PatientInfo]:
        raw = self._load().get(PATIENT_KEY)
        if not raw:
            return None
        return PatientInfo(**raw)

    def set_patient(self, patient: PatientInfo):
        self._set(PATIENT_KEY, patient.model_dump())

    def clear_patient(self):
        self._set(PATIENT_KEY, None)

    def get_language(self) -> str:
        return self._load().get(LANGUAGE_KEY) or DEFAULT_LANGUAGE

    def set_language(self, language: str):
        self._set(LANGUAGE_KEY, language)

    def get_session_token(self) -> Optional[str]:
        return self._load().get(SESSION_KEY)

    def set_session_token(self, token: Optional[str]):
        self._set(SESSION_KEY, token)

    def clear_all(self):
        if self.path.exists():
            self.path.unlink()

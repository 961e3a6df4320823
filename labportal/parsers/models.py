# ===============================
# File: labportal/parsers/models.py
# ===============================
import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResultRecord:
    """Una fila de la tabla de resultados del portal.

    La igualdad usa orden + fecha de transmisión + URL del PDF; la licencia
    no participa. No se deduplican registros repetidos.
    """

    order: str
    license: str = field(compare=False)
    transmitted: str
    pdf_url: str

    def pdf_filename(self) -> str:
        date_str = re.sub(r"[^0-9]", "-", self.transmitted)
        return f"resultado_{self.order}_{date_str}.pdf"

    def to_dict(self) -> dict:
        return {
            "order": self.order,
            "license": self.license,
            "transmitted": self.transmitted,
            "pdf_url": self.pdf_url,
        }

import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional


class PdfWriter:
    def __init__(self, outdir: str):
        self.outdir = Path(outdir)
        self.outdir.mkdir(parents=True, exist_ok=True)

    def write(self, content: bytes, filename: Optional[str] = None) -> str:
        if not filename:
            filename = f"resultado_{datetime.now().strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8]}.pdf"
        safe = re.sub(r"[^a-zA-Z0-9_\-.]", "_", Path(filename).name)
        p = self.outdir / safe
        p.write_bytes(content)
        return str(p)

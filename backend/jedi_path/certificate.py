"""One-page PDF certificate for a completed quiz."""
import io
import logging
import unicodedata
from typing import Sequence

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

log = logging.getLogger(__name__)

FILENAME = "jedi-certificate.pdf"
TITLE = "Jedi Certificate"
CLOSING = "This certificate recognises your completion of the Jedi Path Quiz."
FONT = "Helvetica"
MAX_TEXT_LEN = 80
MAX_FORMS = 20


def _printable(text: str, limit: int = MAX_TEXT_LEN) -> str:
    """Fold arbitrary user text into something Helvetica (WinAnsi) can draw."""
    text = unicodedata.normalize("NFKC", str(text))
    text = "".join(" " if unicodedata.category(ch).startswith("C") else ch for ch in text)
    text = text.encode("cp1252", "replace").decode("cp1252")
    text = " ".join(text.split())
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text


def render_certificate(name: str, color: str, forms: Sequence[str]) -> bytes:
    """Render the certificate and return the PDF bytes.

    All values go through ``drawString``, which writes them as escaped
    literal strings. Page streams are left uncompressed.
    """
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=letter, pageCompression=0)
    c.setTitle(TITLE)
    width, height = letter

    c.setFillColorRGB(0, 0, 0)
    c.rect(0, 0, width, height, stroke=0, fill=1)

    c.setFillColorRGB(1, 1, 1)
    c.setFont(FONT, 32)
    c.drawString(50, height - 80, TITLE)

    c.setFillColorRGB(0.8, 0.8, 0.8)
    c.setFont(FONT, 20)
    c.drawString(50, height - 130, f"Name: {_printable(name)}")
    c.setFont(FONT, 18)
    c.drawString(50, height - 160, f"Lightsaber Colour: {_printable(color)}")
    c.drawString(50, height - 190, "Forms:")

    c.setFillColorRGB(0.7, 0.7, 0.7)
    c.setFont(FONT, 16)
    for idx, form in enumerate(list(forms)[:MAX_FORMS]):
        c.drawString(70, height - 210 - idx * 20, f"- {_printable(form)}")

    c.setFillColorRGB(0.6, 0.6, 0.6)
    c.setFont(FONT, 12)
    c.drawString(50, 80, CLOSING)

    c.showPage()
    c.save()
    pdf = buffer.getvalue()
    log.info(f"Rendered certificate ({len(pdf)} bytes, {min(len(forms), MAX_FORMS)} forms)")
    return pdf

from __future__ import annotations

import io
from pypdf import PdfReader

from ..exceptions import FileValidationError


def _reader(data: bytes) -> PdfReader:
    try:
        return PdfReader(io.BytesIO(data))
    except Exception as exc:  # noqa: BLE001 broad, returns user error
        raise FileValidationError("Invalid or unreadable PDF") from exc


def count_pdf_pages(data: bytes) -> int:
    """Count pages of a PDF from raw bytes.

    Raises FileValidationError on invalid or unreadable PDFs.
    """
    return len(_reader(data).pages)


def extract_pdf_text(data: bytes) -> str:
    """Return the text layer of a PDF, one page per line block.

    Pages without a text layer contribute an empty string.
    """
    reader = _reader(data)
    try:
        return "\n".join((page.extract_text() or "") for page in reader.pages)
    except Exception as exc:  # noqa: BLE001 pypdf raises many types on damaged streams
        raise FileValidationError("Invalid or unreadable PDF") from exc

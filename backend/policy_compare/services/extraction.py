"""Text extraction for uploaded policy PDFs.

The pypdf text layer is the primary source. When enabled, scanned documents
whose text layer is too short fall back to Google Cloud Vision OCR.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..config import Settings, get_settings
from ..utils.pdf import count_pdf_pages, extract_pdf_text
from .vision import VisionService

logger = logging.getLogger(__name__)


class TextExtractor:
    """Turns raw PDF bytes into raw (untrimmed, untruncated) text."""

    def __init__(self, settings: Optional[Settings] = None, vision: Optional[VisionService] = None) -> None:
        self.settings = settings or get_settings()
        self._vision = vision

    def _vision_service(self) -> VisionService:
        if self._vision is None:
            self._vision = VisionService(self.settings.OCR_LANG_HINTS)
        return self._vision

    def extract(self, data: bytes, filename: str = "") -> str:
        text = extract_pdf_text(data)
        if not self.settings.OCR_FALLBACK_ENABLE or len(text.strip()) > self.settings.MIN_TEXT_CHARS:
            return text

        page_count = min(count_pdf_pages(data), self.settings.OCR_MAX_PAGES)
        ocr = self._vision_service().ocr_pdf_bytes(data, page_count)
        logger.info(
            "OCR fallback for %s: text layer=%d chars, %s=%d chars over %d pages",
            filename or "<unnamed>",
            len(text.strip()),
            ocr.method,
            len(ocr.text),
            ocr.pages,
        )
        return ocr.text if len(ocr.text) > len(text.strip()) else text

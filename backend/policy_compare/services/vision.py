"""Google Cloud Vision OCR for scanned policy PDFs.

Used only as a fallback when a PDF has no usable text layer. The PDF bytes are
sent inline with synchronous file annotation, which Vision caps at 5 pages, so
no Cloud Storage staging is needed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from google.cloud import vision_v1 as vision

# Vision rejects inline file requests asking for more pages than this
SYNC_PAGE_LIMIT = 5


@dataclass
class OcrResult:
    text: str
    pages: int
    method: str = "vision_sync"


class VisionService:
    def __init__(self, lang_hints: Optional[List[str]] = None) -> None:
        self._vision = vision.ImageAnnotatorClient()
        self._lang_hints = [h for h in (lang_hints or []) if h and h != "*"]

    def ocr_pdf_bytes(self, data: bytes, page_count: int) -> OcrResult:
        """Synchronous OCR of the first pages of an in-memory PDF."""
        pages = max(1, min(page_count, SYNC_PAGE_LIMIT))
        feature = vision.Feature(type_=vision.Feature.Type.DOCUMENT_TEXT_DETECTION)
        input_config = vision.InputConfig(content=data, mime_type="application/pdf")
        request = vision.AnnotateFileRequest(
            input_config=input_config,
            features=[feature],
            pages=list(range(1, pages + 1)),
            image_context=vision.ImageContext(language_hints=self._lang_hints),
        )
        response = self._vision.batch_annotate_files(requests=[request])

        full_text: List[str] = []
        seen = 0
        for file_resp in response.responses:
            for img_resp in getattr(file_resp, "responses", []) or []:
                fta = getattr(img_resp, "full_text_annotation", None)
                if fta and getattr(fta, "text", None):
                    full_text.append(fta.text)
                seen += 1
        return OcrResult(text="\n".join(full_text).strip(), pages=seen or pages)

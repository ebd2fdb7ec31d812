from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from ..config import Settings
from ..exceptions import FileValidationError, InputError, PayloadTooLargeError
from ..services.extraction import TextExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedFragment:
    text: str
    label: str


def normalize_text(raw: str | None, min_chars: int, max_chars: int) -> Optional[str]:
    """Trim extracted text and cut it to max_chars.

    Returns None when the trimmed text is not longer than min_chars. The cut is
    a hard character cap with no word or line boundary adjustment.
    """
    text = (raw or "").strip()
    if len(text) <= min_chars:
        return None
    return text[:max_chars]


async def _extract_one(upload: UploadFile, extractor: TextExtractor, settings: Settings) -> Optional[str]:
    """Extract and normalize one upload; the upload is always closed on return."""
    name = upload.filename or "<unnamed>"
    try:
        data = await upload.read()
        if len(data) > settings.MAX_SIZE_MB * 1024 * 1024:
            raise PayloadTooLargeError(f"File {name} exceeds size limit")
        raw = await run_in_threadpool(extractor.extract, data, upload.filename or "")
    except PayloadTooLargeError:
        raise
    except Exception as exc:  # noqa: BLE001 one bad document never aborts the batch
        logger.warning("Error processing file %s: %s", name, exc)
        return None
    finally:
        await upload.close()

    text = normalize_text(raw, settings.MIN_TEXT_CHARS, settings.MAX_TEXT_CHARS)
    if text is None:
        logger.info("Skipping %s: not enough extractable text", name)
    return text


async def normalize_documents(
    files: Sequence[UploadFile] | None,
    extractor: TextExtractor,
    settings: Settings,
) -> List[NormalizedFragment]:
    """Turn uploads into ordered fragments, dropping unusable documents.

    Extraction runs concurrently in the threadpool; fragment order follows the
    upload order of the accepted documents and labels are numbered among
    accepted documents only.
    """
    files = [f for f in (files or []) if f is not None]
    if not files:
        raise InputError("No files were uploaded.")
    if len(files) > settings.MAX_FILES:
        for f in files:
            await f.close()
        raise FileValidationError(f"Too many files in one request (max {settings.MAX_FILES})")

    texts = await asyncio.gather(*(_extract_one(f, extractor, settings) for f in files))

    fragments: List[NormalizedFragment] = []
    for upload, text in zip(files, texts):
        if text is None:
            continue
        label = upload.filename or f"Policy {len(fragments) + 1}"
        fragments.append(NormalizedFragment(text=text, label=label))
    return fragments

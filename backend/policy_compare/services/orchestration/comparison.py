from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence

from fastapi import UploadFile

from ...config import Settings, get_settings
from ...exceptions import DecodeError, InputError
from ...models import ComparisonResult
from ...pipeline.decoding import decode_response, validate_result
from ...pipeline.normalization import normalize_documents
from ...pipeline.prompting import compose_prompt, select_branch
from ..extraction import TextExtractor
from ..llm import GeminiInvoker

logger = logging.getLogger(__name__)


def parse_preferences(raw: Optional[str]) -> Dict[str, Any]:
    """Decode the optional preferences form field; anything unusable becomes {}."""
    if not raw or not isinstance(raw, str):
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Could not parse user preferences: %s", exc)
        return {}
    if not isinstance(value, dict):
        logger.warning("Ignoring user preferences: expected a JSON object, got %s", type(value).__name__)
        return {}
    return value


class ComparisonService:
    """Runs one comparison request: normalize -> compose -> invoke -> decode -> validate."""

    def __init__(
        self,
        extractor: TextExtractor,
        invoker: GeminiInvoker,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.extractor = extractor
        self.invoker = invoker

    async def compare(self, files: Sequence[UploadFile] | None, preferences_raw: Optional[str] = None) -> ComparisonResult:
        preferences = parse_preferences(preferences_raw)
        fragments = await normalize_documents(files, self.extractor, self.settings)
        if len(fragments) < 2:
            raise InputError(f"Only {len(fragments)} usable document(s) after text extraction")

        prompt = compose_prompt(fragments, preferences, language=self.settings.PROMPT_LANGUAGE)
        branch, marker_index = select_branch(fragments)
        logger.info(
            "Composed %s prompt for %d policies (marker index %d)",
            branch.value,
            len(fragments),
            marker_index,
        )

        raw = await self.invoker.generate(prompt)
        try:
            decoded = decode_response(raw)
        except DecodeError as exc:
            logger.error("JSON recovery failed: %s", exc)
            logger.error("--- Raw AI Response ---")
            logger.error("%s", exc.raw_text)
            logger.error("--- End of Raw AI Response ---")
            raise

        result = validate_result(decoded)
        logger.info("Returning successful analysis.")
        return result

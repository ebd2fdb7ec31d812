"""Runtime config endpoint for frontend consumption."""
from __future__ import annotations

from fastapi import APIRouter

from ..config import get_settings
from ..models import Limits

router = APIRouter(tags=["config"])


@router.get("/config")
async def get_config() -> dict:
    """Expose non-sensitive upload limits and accepted MIME types."""
    settings = get_settings()
    limits = Limits(
        maxFiles=settings.MAX_FILES,
        maxSizeMb=settings.MAX_SIZE_MB,
        minTextChars=settings.MIN_TEXT_CHARS,
        maxTextChars=settings.MAX_TEXT_CHARS,
    )
    return {
        "limits": limits.model_dump(),
        "minFiles": 2,
        "acceptedMime": settings.ACCEPTED_MIME,
        "model": settings.GEMINI_MODEL,
    }

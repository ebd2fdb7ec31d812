"""Health endpoint."""
from __future__ import annotations

from datetime import datetime, timezone
from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz(request: Request) -> dict:
    """Liveness probe; also reports whether the LLM http client is up."""
    client = getattr(request.app.state, "http_client", None)
    return {
        "status": "ok",
        "llmClient": "open" if client is not None and not client.is_closed else "closed",
        "time": datetime.now(timezone.utc).isoformat(),
    }

"""LLM service: sends the comparison prompt to Gemini and returns raw text.

Async implementation using httpx so the FastAPI event loop is not blocked
while waiting on the upstream API. The http client is created once per process
(see main.lifespan) and passed in; this module holds no global client. There
are no retries: a failed call fails the request.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings, get_settings
from ..exceptions import UpstreamError

logger = logging.getLogger(__name__)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Process-lifetime client; a 0 LLM_TIMEOUT_SECONDS means no read timeout."""
    read_timeout = settings.LLM_TIMEOUT_SECONDS or None
    return httpx.AsyncClient(timeout=httpx.Timeout(read_timeout, connect=10.0))


def _upstream_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
        return str(data.get("error", {}).get("message") or "")
    except Exception:  # noqa: BLE001 non-JSON error bodies
        return resp.text[:500]


class GeminiInvoker:
    """Thin transport to Gemini generateContent with a JSON response MIME type."""

    def __init__(self, client: httpx.AsyncClient, settings: Optional[Settings] = None) -> None:
        self.client = client
        self.settings = settings or get_settings()

    @property
    def model(self) -> str:
        return self.settings.GEMINI_MODEL or "gemini-2.5-pro"

    def _gemini_url(self) -> str:
        return f"{self.settings.GEMINI_BASE_URL}/models/{self.model}:generateContent"

    def _payload(self, prompt: str) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {"responseMimeType": "application/json"}
        if self.settings.LLM_MAX_OUTPUT_TOKENS > 0:
            generation_config["maxOutputTokens"] = self.settings.LLM_MAX_OUTPUT_TOKENS
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

    @staticmethod
    def _response_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "unknown")
            raise UpstreamError(f"Gemini returned no candidates (blockReason: {reason})")
        parts: List[Dict[str, Any]] = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if not p.get("thought"))
        if not text:
            reason = candidates[0].get("finishReason", "unknown")
            raise UpstreamError(f"Gemini returned an empty response (finishReason: {reason})")
        return text

    async def generate(self, prompt: str) -> str:
        """POST the prompt and return the model's raw text output."""
        if not self.settings.GEMINI_API_KEY:
            raise UpstreamError("Missing GEMINI_API_KEY")
        headers = {
            "x-goog-api-key": self.settings.GEMINI_API_KEY,
            "Content-Type": "application/json",
        }
        logger.info("Calling Google Gemini API with %s model (prompt=%d chars)...", self.model, len(prompt))
        try:
            resp = await self.client.post(self._gemini_url(), headers=headers, json=self._payload(prompt))
        except httpx.RequestError as exc:
            raise UpstreamError(f"Could not reach Gemini API: {exc}") from exc

        if resp.is_error:
            detail = _upstream_message(resp)
            raise UpstreamError(
                f"[{resp.status_code} {resp.reason_phrase}] {detail}".strip(),
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(f"Gemini returned a non-JSON envelope: {exc}") from exc

        text = self._response_text(data)
        logger.info("API response received (%d chars).", len(text))
        return text

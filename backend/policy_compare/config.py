"""Application settings and configuration helpers."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import List
from dotenv import load_dotenv, find_dotenv


class Settings:
    """Runtime configuration loaded from environment variables.

    Defaults are suitable for local development. Production should set
    explicit values via environment variables and Secret Manager.
    """

    APP_NAME: str = "Policy Comparison API"
    API_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: List[str]
    CORS_METHODS: List[str] = ["GET", "OPTIONS", "POST"]
    CORS_HEADERS: List[str] = [
        "X-CSRF-Token",
        "X-Requested-With",
        "Accept",
        "Accept-Version",
        "Content-Length",
        "Content-MD5",
        "Content-Type",
        "Date",
        "X-Api-Version",
    ]

    # Limits
    MAX_FILES: int
    MAX_SIZE_MB: int
    ACCEPTED_MIME: List[str]

    # Normalization
    MIN_TEXT_CHARS: int
    MAX_TEXT_CHARS: int

    # LLM
    GEMINI_API_KEY: str
    GEMINI_MODEL: str
    GEMINI_BASE_URL: str
    LLM_TIMEOUT_SECONDS: float
    LLM_MAX_OUTPUT_TOKENS: int
    PROMPT_LANGUAGE: str

    # OCR
    OCR_FALLBACK_ENABLE: bool
    OCR_MAX_PAGES: int
    OCR_LANG_HINTS: List[str]

    def __init__(self) -> None:
        # Load .env once (supports parent directories)
        load_dotenv(find_dotenv(), override=False)
        self.CORS_ORIGINS = self._get_list("CORS_ORIGINS", default="*")
        self.MAX_FILES = int(os.getenv("MAX_FILES", "10"))
        self.MAX_SIZE_MB = int(os.getenv("MAX_SIZE_MB", "50"))
        self.ACCEPTED_MIME = ["application/pdf"]

        self.MIN_TEXT_CHARS = int(os.getenv("MIN_TEXT_CHARS", "100"))
        self.MAX_TEXT_CHARS = int(os.getenv("MAX_TEXT_CHARS", "15000"))

        # LLM
        self.GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
        self.GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-pro")
        self.GEMINI_BASE_URL = os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ).rstrip("/")
        # 0 disables the read timeout; the caller owns timeout policy
        self.LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "0"))
        self.LLM_MAX_OUTPUT_TOKENS = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "0"))
        self.PROMPT_LANGUAGE = os.getenv("PROMPT_LANGUAGE", "Turkish")

        # OCR fallback for scanned policies without a text layer
        self.OCR_FALLBACK_ENABLE = os.getenv("OCR_FALLBACK_ENABLE", "false").lower() == "true"
        self.OCR_MAX_PAGES = int(os.getenv("OCR_MAX_PAGES", "5"))
        self.OCR_LANG_HINTS = self._get_list("OCR_LANG_HINTS", default="tr,en")

    @staticmethod
    def _get_list(name: str, default: str = "") -> List[str]:
        raw = os.getenv(name, default)
        return [item.strip() for item in raw.split(",") if item.strip()] or ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()

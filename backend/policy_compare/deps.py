"""FastAPI dependencies wiring the comparison pipeline to its collaborators."""
from __future__ import annotations

import httpx
from fastapi import Depends, Request

from .config import get_settings
from .services.extraction import TextExtractor
from .services.llm import GeminiInvoker
from .services.orchestration.comparison import ComparisonService


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the process-wide http client created in the app lifespan."""
    return request.app.state.http_client


def get_text_extractor() -> TextExtractor:
    return TextExtractor(get_settings())


def get_model_invoker(client: httpx.AsyncClient = Depends(get_http_client)) -> GeminiInvoker:
    return GeminiInvoker(client, get_settings())


def get_comparison_service(
    extractor: TextExtractor = Depends(get_text_extractor),
    invoker: GeminiInvoker = Depends(get_model_invoker),
) -> ComparisonService:
    return ComparisonService(extractor, invoker, get_settings())

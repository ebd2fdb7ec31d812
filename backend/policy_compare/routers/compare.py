"""Comparison router: accept policy PDFs and return the AI comparison.

This router is a thin HTTP layer. It delegates the pipeline to
`ComparisonService` and translates domain exceptions into `{error}` responses.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from fastapi.responses import JSONResponse

from ..deps import get_comparison_service
from ..exceptions import (
    DecodeError,
    FileValidationError,
    InputError,
    PayloadTooLargeError,
    StructuralError,
    UpstreamError,
)
from ..models import ComparisonResult, ErrorResponse
from ..services.orchestration.comparison import ComparisonService

router = APIRouter(tags=["compare"])
logger = logging.getLogger(__name__)

INPUT_ERROR_MESSAGE = "At least 2 valid PDF files are required."
GENERIC_ERROR_MESSAGE = "An error occurred on the server during analysis."
UNRECOVERABLE_FORMAT_MESSAGE = (
    "The AI returned a response in an unexpected format that could not be recovered."
)
RATE_LIMIT_MESSAGE = (
    "The service is busy (API usage limit exceeded). Please wait a few minutes and try again."
)


class UpstreamKind(str, Enum):
    ACCESS = "access"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


def classify_upstream_error(message: str) -> UpstreamKind:
    if "404" in message or "model not found" in message.lower():
        return UpstreamKind.ACCESS
    if "429" in message:
        return UpstreamKind.RATE_LIMITED
    return UpstreamKind.OTHER


def describe_failure(exc: Exception, model: str) -> str:
    """Human-readable message for a server-side pipeline failure."""
    if isinstance(exc, (DecodeError, StructuralError)):
        return UNRECOVERABLE_FORMAT_MESSAGE
    if isinstance(exc, UpstreamError):
        message = str(exc)
        kind = classify_upstream_error(message)
        if kind is UpstreamKind.ACCESS:
            return f'Model "{model}" was not found. Make sure your API key has access to this model.'
        if kind is UpstreamKind.RATE_LIMITED:
            return RATE_LIMIT_MESSAGE
        return message or GENERIC_ERROR_MESSAGE
    return GENERIC_ERROR_MESSAGE


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.options("/analyze", include_in_schema=False)
async def analyze_preflight() -> Response:
    """Bare OPTIONS without CORS headers; real preflights are answered by PreflightCORSMiddleware."""
    return Response(status_code=status.HTTP_200_OK)


@router.post(
    "/analyze",
    response_model=ComparisonResult,
    responses={
        400: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def analyze(
    request: Request,
    files: Optional[List[UploadFile]] = File(default=None, description="Two or more policy PDFs"),
    preferences: Optional[str] = Form(default=None, description="JSON object of user preferences"),
    service: ComparisonService = Depends(get_comparison_service),
):
    """Compare the uploaded policies and return commentary plus an HTML table."""
    client = request.client.host if request.client else "-"
    logger.info("[%s] analysis request with %d file(s)", client, len(files or []))

    try:
        return await service.compare(files, preferences)
    except InputError as exc:
        logger.info("[%s] rejected: %s", client, exc)
        return _error(status.HTTP_400_BAD_REQUEST, INPUT_ERROR_MESSAGE)
    except FileValidationError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except PayloadTooLargeError as exc:
        return _error(413, str(exc))
    except (UpstreamError, DecodeError, StructuralError) as exc:
        logger.error("[%s] API Error: %s", client, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, describe_failure(exc, service.invoker.model))
    except Exception:  # noqa: BLE001 last-resort boundary
        logger.exception("[%s] unexpected error", client)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)

"""Pydantic models for API requests and responses."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Wire names of the two fields the model must return
COMMENTARY_FIELD = "aiCommentary"
TABLE_FIELD = "tableHtml"
RESULT_FIELDS = (COMMENTARY_FIELD, TABLE_FIELD)


class Limits(BaseModel):
    """Runtime limits exposed to the frontend."""

    maxFiles: int = Field(..., description="Maximum files per request")
    maxSizeMb: int = Field(..., description="Maximum size per file in MB")
    minTextChars: int = Field(..., description="Documents with less extracted text are ignored")
    maxTextChars: int = Field(..., description="Extracted text is cut to this many characters")


class ComparisonResult(BaseModel):
    """Structured comparison returned by the pipeline."""

    model_config = ConfigDict(extra="forbid")

    aiCommentary: str = Field(..., description="Plain-text expert commentary")
    tableHtml: str = Field(..., description="HTML comparison table")


class ErrorResponse(BaseModel):
    """Error body for every non-2xx response."""

    error: str

from __future__ import annotations

"""Domain-specific exceptions for pipeline and service layers.

Routers should catch these and translate them to appropriate HTTP responses.
"""


class InputError(Exception):
    """Fewer than two usable documents, or none at all (maps to HTTP 400)."""


class FileValidationError(Exception):
    """Invalid file input (too many files, unreadable PDF, etc.)."""


class PayloadTooLargeError(Exception):
    """Payload exceeds configured size limits (maps to HTTP 413)."""


class UpstreamError(Exception):
    """The generative text service rejected the request or was unreachable (maps to HTTP 500).

    The message keeps the upstream failure text so the boundary can classify it.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(Exception):
    """Model output is neither valid JSON nor recoverable by the field scan (maps to HTTP 500)."""

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text


class StructuralError(Exception):
    """Decoded output parsed but does not have the required two-field shape (maps to HTTP 500)."""

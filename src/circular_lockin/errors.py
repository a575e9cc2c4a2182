"""
Custom exceptions for the circular lock-in resolver.

Provides:
- Typed exception hierarchy for retrieval and extraction failure modes
- Error context preservation for debugging
- Wrapping of httpx / subprocess failures into that hierarchy

"Not found" is not an exception: it is an ordinary resolution outcome.
"""

import asyncio
import subprocess
from typing import Any

import httpx


class CircularLockinError(Exception):
    """Base exception for all resolver errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Retrieval Errors
# =============================================================================


class RetrievalError(CircularLockinError):
    """Base class for document retrieval errors."""

    pass


class RetrievalFailure(RetrievalError):
    """Both fetch paths failed, or the payload was implausibly small."""

    pass


class BlockedError(RetrievalError):
    """The remote side refused the request (HTTP 403 or a bot-defense page)."""

    pass


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineError(CircularLockinError):
    """Base class for pipeline-related errors."""

    pass


class ValidationError(PipelineError):
    """Resolution request is malformed (missing name or bad listing date)."""

    pass


class ExtractionFailure(PipelineError):
    """No usable text could be extracted from a document."""

    pass


class ArchiveError(ExtractionFailure):
    """A zip payload was unreadable or held no usable PDF."""

    pass


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_http_error(exc: Exception, context: dict[str, Any] | None = None) -> RetrievalError:
    """
    Wrap an httpx or subprocess exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        Typed RetrievalError subclass
    """
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 403:
        return BlockedError(f"Request blocked: {exc}", context=ctx)
    elif isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, subprocess.TimeoutExpired)):
        return RetrievalFailure(f"Request timed out: {exc}", context=ctx)
    elif isinstance(exc, (httpx.HTTPError, OSError, subprocess.SubprocessError)):
        return RetrievalFailure(f"Request failed: {exc}", context=ctx)
    else:
        return RetrievalError(f"Unexpected retrieval error: {exc}", context=ctx)

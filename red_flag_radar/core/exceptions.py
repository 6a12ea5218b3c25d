"""Exceptions raised across the ingestion and analysis pipeline.

:class:`RadarError` subclasses are the conditions a caller is expected to
surface; each carries the HTTP-equivalent ``status_code`` and a
``public_message`` that is safe to show to an end user.  Provider-level
errors are internal and only drive failover.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An internal error occurred. Please try again later."


class RadarError(Exception):
    status_code: int = 500
    public_message: str = GENERIC_ERROR_MESSAGE
    # Client errors echo their own message; server errors never do.
    expose_message: bool = False

    def __init__(self, message: str | None = None):
        self.message = message or self.public_message
        super().__init__(self.message)

    def to_response(self) -> dict[str, Any]:
        message = self.message if self.expose_message else self.public_message
        return {"ok": False, "error": message}


class InvalidInputError(RadarError, ValueError):
    """Rejected at the boundary: empty or oversized input, unknown platform."""

    status_code = 400
    expose_message = True


class RateLimitExceededError(RadarError):
    status_code = 429
    public_message = "Too many analysis requests. Please try again later."


class InvalidComparisonInputError(RadarError, ValueError):
    status_code = 400
    expose_message = True

    def __init__(self, message: str | None = None):
        super().__init__(
            message or "Please select between 2 and 5 analyses to compare."
        )


class AnalysisNotFoundError(InvalidComparisonInputError):
    """One or more requested analyses are missing or owned by someone else."""

    status_code = 404

    def __init__(self, missing: Sequence[str] = ()):
        self.missing = list(missing)
        super().__init__("One or more analyses not found or not owned by user.")


class AllProvidersFailedError(RadarError):
    """Every configured reasoning provider failed for one request."""

    status_code = 503
    public_message = "AI analysis is currently unavailable. Please try again later."

    def __init__(self, attempted: Sequence[str]):
        self.attempted = list(attempted)
        if self.attempted:
            message = (
                "All AI providers failed. Please check API keys. "
                f"Attempted: {', '.join(self.attempted)}"
            )
        else:
            message = (
                "No AI provider configured. Please set ANTHROPIC_API_KEY1, "
                "ANTHROPIC_API_KEY2, or OPENAI_API_KEY."
            )
        super().__init__(message)


class AnalysisTimeoutError(RadarError):
    status_code = 504
    public_message = "The analysis took too long to complete. Please try again."


class ProviderCallFailedError(Exception):
    """A single provider attempt failed; the orchestrator moves on."""

    def __init__(self, provider: str, message: str | None = None):
        self.provider = provider
        self.message = (
            f"Provider {provider} failed: {message}"
            if message
            else f"Provider {provider} failed"
        )
        super().__init__(self.message)


class MalformedProviderJSONError(ProviderCallFailedError):
    """The provider answered, but not with a usable JSON object."""


def error_response(exc: BaseException) -> tuple[dict[str, Any], int]:
    """Map any exception to a ``(body, status)`` pair for the outer surface.

    Unexpected exceptions are logged with their traceback and answered
    with a generic message.
    """
    if isinstance(exc, RadarError):
        return exc.to_response(), exc.status_code
    logger.error("Unhandled error: %s", exc, exc_info=exc)
    return {"ok": False, "error": GENERIC_ERROR_MESSAGE}, 500

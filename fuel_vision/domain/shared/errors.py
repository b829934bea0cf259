"""
Domain exceptions.

Typed exceptions for food photo analysis. Every analysis failure
carries a user-facing message and a recovery suggestion.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All domain-specific exceptions inherit from this.
    Allows catching all domain errors with single except clause.
    """

    pass


class ErrorCategory(str, Enum):
    """How an analysis failure should be surfaced to the user."""

    CONFIGURATION = "configuration"  # Setup problem, never retried
    TRANSIENT = "transient"  # Retried internally, then "try later"
    CONTENT = "content"  # "Try a clearer photo"
    ENTITLEMENT = "entitlement"  # Upgrade prompt
    CANCELLED = "cancelled"


class AnalysisError(DomainError):
    """
    Base exception for food photo analysis.

    Attributes:
        message: Human-readable description
        recovery_suggestion: What the user can do about it
        category: Error category for UI handling

    Example:
        >>> try:
        ...     result = await client.analyze(image)
        ... except AnalysisError as e:
        ...     show_alert(e.message, e.recovery_suggestion)
    """

    category: ErrorCategory = ErrorCategory.CONTENT
    default_message = "Analysis failed"
    default_suggestion = "Please try again"

    def __init__(
        self,
        message: Optional[str] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.recovery_suggestion = recovery_suggestion or self.default_suggestion
        super().__init__(self.message)


# ═══════════════════════════════════════════════════════════
# CONFIGURATION ERRORS
# ═══════════════════════════════════════════════════════════


class ConfigurationError(AnalysisError):
    """Static setup problem. Fatal and not retried."""

    category = ErrorCategory.CONFIGURATION


class ApiKeyMissingError(ConfigurationError):
    """
    Vision API key missing or rejected.

    Raised when:
    - No API key configured (before any network call)
    - Provider answers 401 Unauthorized
    """

    default_message = "API key is not configured"


class InvalidURLError(ConfigurationError):
    """Vision API endpoint is malformed."""

    default_message = "Invalid API endpoint"


# ═══════════════════════════════════════════════════════════
# TRANSIENT TRANSPORT ERRORS
# ═══════════════════════════════════════════════════════════


class ExternalServiceError(AnalysisError):
    """
    External service call failed.

    Base class for transport errors surfaced after the retry
    budget is exhausted.
    """

    category = ErrorCategory.TRANSIENT
    default_message = "Vision service unavailable"
    default_suggestion = "Please try again later"


class RateLimitedError(ExternalServiceError):
    """Provider kept answering 429 Too Many Requests."""

    default_message = "Too many requests. Please try again later."
    default_suggestion = "Wait a moment and try again"


class ApiError(ExternalServiceError):
    """
    Provider answered with an unexpected HTTP status.

    Example:
        >>> raise ApiError(status_code=503)
    """

    def __init__(
        self,
        status_code: int,
        message: Optional[str] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(
            message or f"API error (status {status_code})",
            recovery_suggestion,
        )

    @property
    def is_server_error(self) -> bool:
        """True for 5xx responses."""
        return 500 <= self.status_code <= 599


class NetworkError(ExternalServiceError):
    """Timeout or connection failure on every attempt."""

    default_message = "Network error"
    default_suggestion = "Check your internet connection"


# ═══════════════════════════════════════════════════════════
# CONTENT ERRORS
# ═══════════════════════════════════════════════════════════


class ContentError(AnalysisError):
    """The photo or the model answer could not be turned into a result."""

    category = ErrorCategory.CONTENT
    default_suggestion = "Try again with a clearer photo"


class ImageProcessingError(ContentError):
    """Image could not be decoded or encoded as JPEG."""

    default_message = "Failed to process image"


class EmptyResponseError(ContentError):
    """Provider response carried no message content."""

    default_message = "Empty response from AI"


class ParsingFailedError(ContentError):
    """Model answer is not valid JSON or has the wrong shape."""

    default_message = "Failed to parse AI response"


# ═══════════════════════════════════════════════════════════
# ENTITLEMENT / CANCELLATION
# ═══════════════════════════════════════════════════════════


class QuotaExceededError(AnalysisError):
    """
    Weekly free-tier scan quota used up.

    Resolved locally, no network call is made.
    """

    category = ErrorCategory.ENTITLEMENT
    default_message = "Weekly scan limit reached. Upgrade to Premium for unlimited scans."
    default_suggestion = "Upgrade to Premium for unlimited AI scans"


class AnalysisCancelledError(AnalysisError):
    """Caller cancelled the analysis before it completed."""

    category = ErrorCategory.CANCELLED
    default_message = "Analysis cancelled"
    default_suggestion = "Start a new scan when ready"

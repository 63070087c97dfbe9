"""
Custom exceptions for the application.

This module defines a hierarchy of custom exceptions for error handling:
- AppException: Base exception for all application errors
- ServiceUnavailableError: Service unavailable (503)
- TranslationFailedError: A translation call failed (annotated, never surfaced)
- ProviderFailedError: A single completion provider failed (triggers fallback)
- AllProvidersFailedError: Every provider in the chain failed (apology reply)
- VoiceSynthesisFailedError: Speech synthesis failed (static audio substituted)
- PersistenceFailedError: A store write failed (logged, best effort)
"""

import logging
from typing import Any


logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base exception for application errors.

    All custom exceptions should inherit from this class.
    Provides consistent error structure with error_code, message, and details.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        details: Any = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for JSON response."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


class ServiceUnavailableError(AppException):
    """Raised when a required service is unavailable.

    HTTP Status: 503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "Service unavailable",
        service_name: str | None = None,
    ):
        details = {"service": service_name} if service_name else None
        super().__init__(
            message=message,
            error_code="service_unavailable",
            details=details,
        )
        self.service_name = service_name


class TranslationFailedError(AppException):
    """Raised by a translation backend when a call cannot be completed.

    The Translator catches it and returns the untranslated text with the
    degraded flag set.
    """

    def __init__(
        self,
        message: str = "Translation failed",
        target_language: str | None = None,
    ):
        details = {"target_language": target_language} if target_language else None
        super().__init__(
            message=message,
            error_code="translation_failed",
            details=details,
        )
        self.target_language = target_language


class ProviderFailedError(AppException):
    """Raised when a single completion provider fails.

    Covers network errors, non-2xx responses, malformed payloads and
    timeouts. The gateway logs it and moves on to the next provider.
    """

    def __init__(
        self,
        message: str = "Provider call failed",
        provider: str | None = None,
        status_code: int | None = None,
    ):
        details = {}
        if provider:
            details["provider"] = provider
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message=message,
            error_code="provider_failed",
            details=details if details else None,
        )
        self.provider = provider
        self.status_code = status_code


class AllProvidersFailedError(AppException):
    """Raised when every provider in the fallback chain has failed.

    The orchestrator catches this and substitutes a canned apology reply.
    """

    def __init__(
        self,
        message: str = "All providers failed",
        attempted: list[str] | None = None,
        last_error: str | None = None,
    ):
        details = {}
        if attempted is not None:
            details["attempted"] = list(attempted)
        if last_error:
            details["last_error"] = last_error
        super().__init__(
            message=message,
            error_code="all_providers_failed",
            details=details if details else None,
        )
        self.attempted = list(attempted or [])
        self.last_error = last_error


class VoiceSynthesisFailedError(AppException):
    """Raised when a speech synthesis call fails."""

    def __init__(self, message: str = "Voice synthesis failed", status_code: int | None = None):
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(
            message=message,
            error_code="voice_synthesis_failed",
            details=details,
        )
        self.status_code = status_code


class PersistenceFailedError(AppException):
    """Raised when a store operation fails.

    Durability is best effort: callers log this and keep going.
    """

    def __init__(
        self,
        message: str = "Persistence failed",
        operation: str | None = None,
        original_error: Exception | None = None,
    ):
        details = {"operation": operation} if operation else None
        super().__init__(
            message=message,
            error_code="persistence_failed",
            details=details,
        )
        self.operation = operation
        self.original_error = original_error


def log_exception(exc: Exception, context: str | None = None) -> None:
    """Log an exception with context information.

    Args:
        exc: The exception to log.
        context: Optional context string for the log message.
    """
    if isinstance(exc, AppException):
        logger.error(
            f"{context or 'Error'}: [{exc.error_code}] {exc.message}",
            extra={"error_code": exc.error_code, "details": exc.details},
        )
    else:
        logger.exception(f"{context or 'Unexpected error'}: {exc}")

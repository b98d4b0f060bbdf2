"""
Centralized exception hierarchy for the VIS school site services.

Remote failures are raised here and turned into user-facing assistant
messages by the chat client or into JSON error envelopes by the API.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception
# =============================================================================


class VisSiteError(RuntimeError):
    """
    Base exception for all VIS site errors.

    Attributes:
        message: Human-readable error message.
        detail: Additional error details (optional).
        error_code: Machine-readable error code.
        request_id: Unique identifier for the request (optional).
    """

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        error_code: str | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.error_code = error_code or self._default_error_code()
        self.request_id = request_id or str(uuid.uuid4())

    def _default_error_code(self) -> str:
        """Generate default error code from class name."""
        return f"vis_site_{self.__class__.__name__.lower()}"

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        if self.request_id:
            result["request_id"] = self.request_id
        return result

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def log(self, level: int = logging.ERROR) -> None:
        """Log the exception with structured data."""
        logger.log(
            level,
            self.message,
            extra={
                "error_code": self.error_code,
                "detail": self.detail,
                "request_id": self.request_id,
                "exception_type": self.__class__.__name__,
            },
        )


# =============================================================================
# Input Validation Errors
# =============================================================================


class ValidationError(VisSiteError):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        detail: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.field = field
        full_message = f"{field}: {message}" if field else message
        super().__init__(
            full_message,
            detail=detail,
            error_code="validation_error",
            request_id=request_id,
        )


class UnknownTableError(ValidationError):
    """Raised when a remote table name is not one of the known tables."""

    def __init__(self, table: str, *, request_id: str | None = None) -> None:
        super().__init__(
            message="Unknown table",
            field="table",
            detail=repr(table),
            request_id=request_id,
        )
        self.table = table


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(VisSiteError):
    """
    Raised when a requested resource is not found.

    HTTP Status: 404 Not Found
    """

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        detail = None
        if resource_type and resource_id:
            detail = f"{resource_type} with ID {resource_id!r} not found"
        super().__init__(
            message,
            detail=detail,
            error_code="not_found",
            request_id=request_id,
        )


# =============================================================================
# Rate Limiting Errors
# =============================================================================


class RateLimitError(VisSiteError):
    """
    Raised when the AI gateway rejects a call for rate reasons.

    HTTP Status: 429 Too Many Requests
    """

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        *,
        retry_after: int | None = None,
        request_id: str | None = None,
    ) -> None:
        self.retry_after = retry_after
        detail = f"Retry after {retry_after}s" if retry_after else None
        super().__init__(
            message,
            detail=detail,
            error_code="rate_limited",
            request_id=request_id,
        )


# =============================================================================
# Remote Call Errors
# =============================================================================


class RemoteCallError(VisSiteError):
    """
    Base class for failures of the hosted data store, edge functions or AI gateway.

    HTTP Status: 502 Bad Gateway
    """

    def __init__(
        self,
        message: str,
        *,
        service: str | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        detail_parts = []
        if service:
            detail_parts.append(f"Service: {service}")
        if status_code:
            detail_parts.append(f"Status: {status_code}")
        detail = "; ".join(detail_parts) if detail_parts else None
        super().__init__(
            message,
            detail=detail,
            error_code="remote_call_error",
            request_id=request_id,
        )


class ServiceUnavailableError(RemoteCallError):
    """Raised when the AI gateway reports the service as unavailable (payment required)."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable.",
        *,
        service: str = "ai-gateway",
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, service=service, status_code=402, request_id=request_id)
        self.error_code = "service_unavailable"


class APITimeoutError(RemoteCallError):
    """Raised when a remote request times out."""

    def __init__(
        self,
        service: str,
        *,
        request_id: str | None = None,
    ) -> None:
        super().__init__(
            message=f"Request to {service} timed out",
            service=service,
            request_id=request_id,
        )
        self.error_code = "api_timeout"


class APIConnectionError(RemoteCallError):
    """Raised when a remote connection fails."""

    def __init__(
        self,
        service: str,
        *,
        reason: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            message=f"Connection to {service} failed",
            service=service,
            request_id=request_id,
        )
        self.error_code = "api_connection_error"
        self.detail = reason if reason else "Could not establish connection"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(VisSiteError):
    """
    Raised when configuration is invalid or missing.

    HTTP Status: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str,
        *,
        setting_name: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.setting_name = setting_name
        detail = f"Missing or invalid setting: {setting_name}" if setting_name else None
        super().__init__(
            message,
            detail=detail,
            error_code="configuration_error",
            request_id=request_id,
        )


class MissingAPIKeyError(ConfigurationError):
    """Raised when required API key is missing."""

    def __init__(
        self,
        service: str,
        *,
        env_var: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.service = service
        self.env_var = env_var
        super().__init__(
            message=f"{env_var or service + ' API key'} is not configured",
            setting_name=env_var or f"{service}_api_key",
            request_id=request_id,
        )


# =============================================================================
# Local Persistence Errors
# =============================================================================


class LocalPersistenceError(VisSiteError):
    """
    Raised when the local key-value snapshot store cannot be read or written.

    The admin store swallows it; other callers may surface it as HTTP 500.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        key: str | None = None,
        path: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.operation = operation
        self.key = key
        self.path = path
        detail_parts = []
        if operation:
            detail_parts.append(f"Operation: {operation}")
        if key:
            detail_parts.append(f"Key: {key}")
        if path:
            detail_parts.append(f"Path: {path}")
        detail = "; ".join(detail_parts) if detail_parts else None
        super().__init__(
            message,
            detail=detail,
            error_code="local_persistence_error",
            request_id=request_id,
        )


# =============================================================================
# Quiz Errors
# =============================================================================


class QuizParseError(VisSiteError):
    """Raised when the model reply cannot be turned into quiz questions."""

    def __init__(
        self,
        message: str = "Failed to parse quiz questions",
        *,
        reason: str | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            detail=reason,
            error_code="quiz_parse_error",
            request_id=request_id,
        )


# =============================================================================
# HTTP Exception Helpers
# =============================================================================


def exception_to_http_status(exc: VisSiteError) -> int:
    """
    Map exception to appropriate HTTP status code.

    Subclasses are listed before their bases so the most specific match wins.
    """
    status_map = (
        (UnknownTableError, 400),
        (ValidationError, 400),
        (NotFoundError, 404),
        (RateLimitError, 429),
        (ServiceUnavailableError, 402),
        (APITimeoutError, 504),
        (APIConnectionError, 503),
        (RemoteCallError, 502),
        (MissingAPIKeyError, 500),
        (ConfigurationError, 500),
        (LocalPersistenceError, 500),
        (QuizParseError, 500),
    )

    for exc_class, status in status_map:
        if isinstance(exc, exc_class):
            return status
    return 500


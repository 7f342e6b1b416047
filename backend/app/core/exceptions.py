"""Service-level exception hierarchy.

Every error raised by the detection pipelines, the resolution workflow and the
ingestion gateway derives from :class:`ServiceException`, so routers and the
background error boundary can translate or log them uniformly.
"""

from typing import Any, Dict, Optional


class ServiceException(Exception):
    """Base class for service errors carrying structured logging context."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.service = service
        self.operation = operation
        self.context: Dict[str, Any] = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        if self.service and self.operation:
            return f"{self.service}.{self.operation}: {self.message}"
        return self.message


class AuthError(ServiceException):
    """Missing or mismatched ingestion credential."""

    def __init__(self, message: str, status_code: int = 401, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


class ValidationError(ServiceException):
    """Malformed payload or unparseable request."""


class NotFoundError(ServiceException):
    """A resolution targeted a record that does not exist."""


class DependencyError(ServiceException):
    """The store or the notification sink is unavailable or timed out."""


class DatabaseError(DependencyError):
    """Database operation failed."""

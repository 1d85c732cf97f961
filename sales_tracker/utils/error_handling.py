"""
Error types for the Sales Tracker Dashboard.

All domain errors derive from AppError so callers can catch the whole
family at once, while the persistence and validation layers raise the
narrow types the dashboard reports on.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """How serious an error is for the user and for operators."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AppError(Exception):
    """Base class for all application errors."""

    default_severity = ErrorSeverity.ERROR
    retryable = False

    def __init__(
        self,
        message: str,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity or self.default_severity
        self.cause = cause
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Structured description used for logging and error events."""
        info = {
            "error_type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "retryable": self.retryable,
        }
        if self.cause is not None:
            info["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        if self.details:
            info["details"] = self.details
        return info

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"
        return self.message


class ValidationError(AppError):
    """User input was rejected before any store call was made."""

    default_severity = ErrorSeverity.WARNING


class StoreError(AppError):
    """A read or write at the persistence boundary failed.

    The user may retry the action; no partial update has been applied
    to the in-memory state.
    """

    retryable = True


class NotFoundError(AppError):
    """The targeted record does not exist. Benign for deletes."""

    default_severity = ErrorSeverity.INFO

    def __init__(self, message: str, record_id: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.record_id = record_id


class PartialWriteError(AppError):
    """A sale header was committed, its lines were not, and the
    compensating delete failed as well.

    The sale is visible with no lines and needs manual reconciliation.
    Never retried automatically and deliberately not a StoreError.
    """

    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        sale_id: str,
        cause: Optional[BaseException] = None,
        compensation_error: Optional[BaseException] = None,
        **kwargs: Any,
    ):
        details = dict(kwargs.pop("details", None) or {})
        details["sale_id"] = sale_id
        if compensation_error is not None:
            details["compensation_error"] = f"{type(compensation_error).__name__}: {compensation_error}"
        super().__init__(message, cause=cause, details=details, **kwargs)
        self.sale_id = sale_id
        self.compensation_error = compensation_error


class SubmissionInProgressError(AppError):
    """A second submit arrived while the first was still running."""

    default_severity = ErrorSeverity.WARNING

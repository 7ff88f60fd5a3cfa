"""
Centralized Exception Handling Module
=====================================

Defines the error taxonomy of the incident bot.

Every error carries:
- a developer-facing message (logged)
- an HTTP status code (used by the API layer)
- structured details
- a user-facing message that is safe to post back into chat

Usage:
    raise PermissionDeniedError(user_id, "modify this incident")
    raise ValidationError("severity", "Invalid severity: P9")
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


GENERIC_FAILURE_MESSAGE = "Something went wrong while processing the command. Please try again."


class IncidentBotError(Exception):
    """
    Base exception class for the incident bot.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Message safe to show in chat."""
        return self.message


# ==========================
# Lookup / Authorization
# ==========================

class NotFoundError(IncidentBotError):
    """Raised when a resource is not found."""

    def __init__(self, resource: str = "Incident", identifier: Optional[str] = None):
        details = {"resource": resource}
        if identifier:
            details["identifier"] = identifier
        super().__init__(
            message=f"{resource} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class PermissionDeniedError(IncidentBotError):
    """Raised when an actor other than the commander tries to mutate an incident."""

    def __init__(self, user_id: str, action: str):
        self.user_id = user_id
        self.action = action
        super().__init__(
            message=f"Permission denied: {user_id} cannot {action}",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"user_id": user_id, "action": action},
        )

    @property
    def user_message(self) -> str:
        return f"Permission denied: only the incident commander can {self.action}."


# ==========================
# Lifecycle / Validation
# ==========================

class InvalidStateTransitionError(IncidentBotError):
    """Raised when a status change is not allowed by the transition table."""

    def __init__(self, from_status: Any, to_status: Any):
        self.from_status = from_status
        self.to_status = to_status
        from_value = getattr(from_status, "value", from_status)
        to_value = getattr(to_status, "value", to_status)
        super().__init__(
            message=f"Invalid state transition from {from_value} to {to_value}",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"from": from_value, "to": to_value},
        )

    @property
    def user_message(self) -> str:
        from_value = getattr(self.from_status, "value", self.from_status)
        to_value = getattr(self.to_status, "value", self.to_status)
        return f"An incident cannot move from `{from_value}` to `{to_value}`."


class ValidationError(IncidentBotError):
    """
    Raised when input fails validation.

    A single error names one field; boundary parsers pass ``errors`` to
    report every missing or malformed field at once.
    """

    def __init__(
        self,
        field: str,
        reason: str,
        errors: Optional[List[Dict[str, str]]] = None,
    ):
        self.field = field
        self.reason = reason
        self.errors = errors or [{"field": field, "reason": reason}]
        super().__init__(
            message=f"Validation error on field '{field}': {reason}",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"errors": self.errors},
        )

    @classmethod
    def from_errors(cls, errors: List[Dict[str, str]]) -> "ValidationError":
        """Build a single error enumerating every failing field."""
        fields = ", ".join(error["field"] for error in errors)
        reasons = "; ".join(f"{error['field']}: {error['reason']}" for error in errors)
        return cls(field=fields, reason=reasons, errors=errors)

    @property
    def user_message(self) -> str:
        return self.reason


# ==========================
# External Services
# ==========================

class ExternalServiceError(IncidentBotError):
    """Raised when an external API call fails."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.service = service
        merged = {"service": service}
        merged.update(details or {})
        super().__init__(
            message=f"External API error ({service}): {message}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=merged,
        )

    @property
    def user_message(self) -> str:
        return f"{self.service} is not responding as expected. Please try again."


class SlackAPIError(ExternalServiceError):
    """Raised when the Slack Web API returns ok=false or an HTTP failure."""

    def __init__(self, method: str, error_code: str):
        self.method = method
        self.error_code = error_code
        super().__init__(
            service="Slack",
            message=f"API call failed: {method} (code: {error_code})",
            details={"method": method, "error_code": error_code},
        )


# ==========================
# Infrastructure
# ==========================

class StorageError(IncidentBotError):
    """Raised when the database layer fails."""

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        details = {}
        if operation:
            details["operation"] = operation
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )

    @property
    def user_message(self) -> str:
        return GENERIC_FAILURE_MESSAGE


class InvalidSignatureError(IncidentBotError):
    """Raised when an inbound request fails signature verification."""

    def __init__(self, reason: str = "Invalid signature"):
        super().__init__(
            message="Invalid Slack signature",
            status_code=status.HTTP_401_UNAUTHORIZED,
            details={"reason": reason},
        )


class ConfigurationError(IncidentBotError):
    """Raised when required configuration is missing."""

    def __init__(self, problems: List[str]):
        super().__init__(
            message=f"Configuration error: {'; '.join(problems)}",
            details={"problems": problems},
        )


class InternalError(IncidentBotError):
    """Raised for unexpected internal failures."""

    def __init__(self, message: str = "Internal error"):
        super().__init__(message=f"Internal error: {message}")

    @property
    def user_message(self) -> str:
        return GENERIC_FAILURE_MESSAGE


# ==========================
# Helper Functions
# ==========================

def user_message_for(exc: BaseException) -> str:
    """
    Translate any exception into text that is safe to post back to the user.

    Unknown exceptions never leak their internal text.
    """
    if isinstance(exc, IncidentBotError):
        return exc.user_message
    return GENERIC_FAILURE_MESSAGE


def exception_to_http_exception(exc: IncidentBotError) -> HTTPException:
    """
    Convert an IncidentBotError to FastAPI HTTPException.

    Args:
        exc: IncidentBotError instance

    Returns:
        HTTPException with appropriate status code and detail
    """
    return HTTPException(
        status_code=exc.status_code,
        detail={
            "error": exc.message,
            "details": exc.details,
        }
    )

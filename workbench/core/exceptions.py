"""Custom exception classes for the Workbench API.

Every error raised by the services is one of the classes below. Each class
fixes its HTTP status and default machine-readable code; instances carry a
human message, an optional ``data`` payload that is returned to the caller,
and an optional ``diagnostic`` payload that is only written to the logs.
"""

from typing import Any, Dict, List, Optional

from fastapi import status


class WorkbenchError(Exception):
    """Base exception for the Workbench API."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str = "An error occurred",
        code: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        diagnostic: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.data = data
        self.diagnostic = diagnostic
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ValidationError(WorkbenchError):
    """Raised when input validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        invalid_fields: Optional[List[Dict[str, str]]] = None,
        code: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code=code, data=data)
        self.invalid_fields = invalid_fields or []


class AuthenticationError(WorkbenchError):
    """Raised when authentication fails."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class InvalidTokenError(AuthenticationError):
    """Raised when a token is malformed, tampered, of the wrong type or revoked."""

    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid token", **kwargs):
        super().__init__(message, **kwargs)


class TokenExpiredError(AuthenticationError):
    """Raised when a token signature is valid but its expiry has passed."""

    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Token expired", **kwargs):
        super().__init__(message, **kwargs)


class RefreshFailedError(AuthenticationError):
    """Raised for any failure while rotating a refresh token."""

    code = "REFRESH_FAILED"

    def __init__(self, message: str = "Please authenticate", **kwargs):
        super().__init__(message, **kwargs)


class PasswordResetFailedError(AuthenticationError):
    """Raised for any failure while resetting a password."""

    code = "PASSWORD_RESET_FAILED"

    def __init__(self, message: str = "Password reset failed", **kwargs):
        super().__init__(message, **kwargs)


class EmailVerificationFailedError(AuthenticationError):
    """Raised for any failure while verifying an email address."""

    code = "EMAIL_VERIFICATION_FAILED"

    def __init__(self, message: str = "Email verification failed", **kwargs):
        super().__init__(message, **kwargs)


class AuthorizationError(WorkbenchError):
    """Raised when user lacks permission."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class ResourceNotFoundError(WorkbenchError):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ResourceConflictError(WorkbenchError):
    """Raised when a resource already exists."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class InternalError(WorkbenchError):
    """Raised on misconfiguration, e.g. an unmapped HTTP verb or resource."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_SERVER_ERROR"

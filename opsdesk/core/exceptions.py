"""
Custom exception classes for authentication, authorization and provisioning.

Every error raised at the API boundary derives from AppException and is
rendered by a single handler into the response envelope
``{"success": false, "message": ..., "code": ...}``.
"""
from typing import Any, Dict, Iterable, List, Optional
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str,
        headers: Optional[Dict[str, str]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.message = message
        self.code = code
        self.headers = headers
        self.details = details or {}
        super().__init__(message)

    def to_content(self) -> Dict[str, Any]:
        """Build the JSON body for this error."""
        content: Dict[str, Any] = {
            "success": False,
            "message": self.message,
            "code": self.code,
        }
        content.update(self.details)
        return content


# Authentication errors

class AuthenticationError(AppException):
    """No credential, or a credential that cannot be trusted."""


class NoCredentialError(AuthenticationError):
    """Request carried no bearer token."""

    def __init__(self, message: str = "No token provided"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=message,
            code="NO_TOKEN"
        )


class InvalidTokenError(AuthenticationError):
    """Malformed token, bad signature or unusable claims."""

    def __init__(self, message: str = "Unauthorized / Invalid Token"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            code="TOKEN_INVALID",
            headers={"WWW-Authenticate": "Bearer"}
        )


class TokenExpiredError(AuthenticationError):
    """Token signature is valid but its expiry has passed."""

    def __init__(self, message: str = "Unauthorized / Invalid Token"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            code="TOKEN_EXPIRED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            code="INVALID_CREDENTIALS"
        )


class NotAuthenticatedError(AuthenticationError):
    """An authorization check ran without a principal."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=message,
            code="NOT_AUTHENTICATED"
        )


# Authorization errors

class AuthorizationError(AppException):
    """Valid credential without the required permission."""

    def __init__(self, message: str = "Access Denied: Insufficient Permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=message,
            code="INSUFFICIENT_PERMISSIONS"
        )


# Input and storage errors

class ValidationError(AppException):
    """Malformed input, caught before any persistence attempt."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message=f"{field}: {reason}",
            code="VALIDATION_ERROR",
            details={"field": field, "reason": reason}
        )


class ConflictError(AppException):
    """Storage-level constraint violation or stale update."""

    def __init__(self, detail: Optional[str] = None, message: str = "Save failed"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            message=message,
            code="CONFLICT",
            details={"detail": detail} if detail else None
        )


class NotFoundError(AppException):
    """Referenced entity does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message=message,
            code="NOT_FOUND"
        )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Global exception handler for AppException instances.

    Args:
        request: FastAPI request object
        exc: AppException instance

    Returns:
        JSONResponse with error details
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_content(),
        headers=exc.headers
    )


def _format_validation_errors(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    formatted = []
    for error in errors:
        # Drop the leading "body"/"query" segment
        location = [str(part) for part in error.get("loc", ())[1:]]
        formatted.append({
            "field": ".".join(location) or "body",
            "reason": error.get("msg", "invalid value"),
        })
    return formatted


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Render FastAPI request validation failures in the common envelope.

    Args:
        request: FastAPI request object
        exc: RequestValidationError raised while parsing the request

    Returns:
        JSONResponse listing each offending field and reason
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "message": "Validation failed",
            "code": "VALIDATION_ERROR",
            "errors": _format_validation_errors(exc.errors()),
        }
    )

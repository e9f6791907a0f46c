"""Custom exceptions for error handling"""
from fastapi import HTTPException, status


class BaseHTTPException(HTTPException):
    """Base exception class for all custom HTTP exceptions"""
    def __init__(self, detail: str = None, headers: dict = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.detail,
            headers=headers
        )


class BadRequestException(BaseHTTPException):
    """400 Bad Request"""
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Bad request"


class ValidationException(BadRequestException):
    """400 Schema-level validation failure"""
    detail = "Validation error"


class UnauthorizedException(BaseHTTPException):
    """401 Unauthorized"""
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication required"

    def __init__(self, detail: str = None):
        super().__init__(
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )


class NotFoundException(BaseHTTPException):
    """404 Not Found"""
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"


class ConflictException(BaseHTTPException):
    """409 Conflict"""
    status_code = status.HTTP_409_CONFLICT
    detail = "Resource already exists"


class InternalServerException(BaseHTTPException):
    """500 Internal Server Error"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Internal server error"


# ── Authentication taxonomy ───────────────────────────────────────────────────

class UserNotFoundException(NotFoundException):
    """No account for the given email / id"""
    detail = "User not found"


class InvalidCredentialsException(UnauthorizedException):
    """Password mismatch. Login also raises it for unknown emails."""
    detail = "Invalid credentials"


class EmailNotVerifiedException(BadRequestException):
    """Account exists but its email address was never verified"""
    detail = "Please verify your email before logging in"


class InvalidOrExpiredCodeException(BadRequestException):
    """Wrong, expired and already-used codes are reported identically"""
    detail = "Invalid or expired verification code"


class EmailTakenException(ConflictException):
    """Registration with an email that already has an account"""
    detail = "User with this email already exists"


class DeliveryFailedException(InternalServerException):
    """The code could not be emailed and the flow cannot continue without it"""
    detail = "Failed to send verification code"

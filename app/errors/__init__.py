"""Error handling module"""
from app.errors.exceptions import (
    BadRequestException,
    ValidationException,
    UnauthorizedException,
    NotFoundException,
    ConflictException,
    InternalServerException,
    UserNotFoundException,
    InvalidCredentialsException,
    EmailNotVerifiedException,
    InvalidOrExpiredCodeException,
    EmailTakenException,
    DeliveryFailedException,
)
from app.errors.handlers import register_exception_handlers

__all__ = [
    "BadRequestException",
    "ValidationException",
    "UnauthorizedException",
    "NotFoundException",
    "ConflictException",
    "InternalServerException",
    "UserNotFoundException",
    "InvalidCredentialsException",
    "EmailNotVerifiedException",
    "InvalidOrExpiredCodeException",
    "EmailTakenException",
    "DeliveryFailedException",
    "register_exception_handlers",
]

"""Pydantic schemas for request/response validation"""
from app.schemas.auth_schemas import (
    RegisterRequest,
    LoginRequest,
    EmailRequest,
    VerifyMfaRequest,
    VerifyEmailRequest,
    ResetPasswordRequest,
    PasswordChange,
    SessionUser,
    UserProfile,
    MessageResponse,
    RegisterResponse,
    AuthResponse,
    CredentialCheckResponse,
    MfaStatusResponse,
    IdentityClaims,
    SessionClaims,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "EmailRequest",
    "VerifyMfaRequest",
    "VerifyEmailRequest",
    "ResetPasswordRequest",
    "PasswordChange",
    "SessionUser",
    "UserProfile",
    "MessageResponse",
    "RegisterResponse",
    "AuthResponse",
    "CredentialCheckResponse",
    "MfaStatusResponse",
    "IdentityClaims",
    "SessionClaims",
]

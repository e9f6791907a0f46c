"""Authentication and session schemas"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional

# Upper bound on passwords submitted for checking (new passwords are held to 72 bytes)
MAX_PASSWORD_INPUT = 1024


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys, the convention of the web client"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _check_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters')
    if len(v.encode("utf-8")) > 72:
        raise ValueError('Password must be at most 72 bytes')
    return v


def _check_code(v: str) -> str:
    v = v.strip()
    if len(v) != 6 or not v.isdigit():
        raise ValueError('Verification code must be 6 digits')
    return v


# ── Requests ──────────────────────────────────────────────────────────────────

class RegisterRequest(CamelModel):
    """Schema for creating a new account"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(CamelModel):
    """Schema for password login"""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_INPUT)


class EmailRequest(CamelModel):
    """Body carrying only an email (email login, forgot password, resend, MFA status)"""
    email: EmailStr


class VerifyMfaRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    mfa_code: str

    @field_validator('mfa_code')
    @classmethod
    def validate_code(cls, v: str) -> str:
        return _check_code(v)


class VerifyEmailRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    code: str

    @field_validator('code')
    @classmethod
    def validate_code(cls, v: str) -> str:
        return _check_code(v)


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1, max_length=64)
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class PasswordChange(CamelModel):
    """Schema for changing password"""
    current_password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_INPUT)
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _check_password(v)


# ── Responses ─────────────────────────────────────────────────────────────────

class SessionUser(CamelModel):
    """The user as shown to the client after a session is established"""
    id: str
    email: str
    first_name: str
    last_name: str


class UserProfile(SessionUser):
    email_verified: bool
    mfa_enabled: bool


class MessageResponse(CamelModel):
    message: str


class RegisterResponse(CamelModel):
    message: str
    user_id: str


class AuthResponse(CamelModel):
    """
    Outcome of a login step: either a session (``user``, optional ``token``)
    or an MFA challenge (``requires_mfa`` and ``user_id``).
    """
    message: str
    user: Optional[SessionUser] = None
    requires_mfa: Optional[bool] = None
    user_id: Optional[str] = None
    token: Optional[str] = None


class CredentialCheckResponse(CamelModel):
    valid: bool
    mfa_enabled: bool
    user_id: str


class MfaStatusResponse(CamelModel):
    user_id: str
    mfa_enabled: bool


# ── Session token claims ──────────────────────────────────────────────────────

class IdentityClaims(CamelModel):
    """Identity embedded in a session token"""
    user_id: str
    email: str
    first_name: str
    last_name: str


class SessionClaims(IdentityClaims):
    """Verified token payload: identity plus issue/expiry timestamps (epoch seconds)"""
    issued_at: int = Field(..., alias="iat")
    expires_at: int = Field(..., alias="exp")

    def identity(self) -> IdentityClaims:
        return IdentityClaims(
            user_id=self.user_id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
        )

"""Authentication endpoints"""
from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
import logging

from app.core.dependencies import get_db, get_mailer
from app.errors.exceptions import (
    EmailNotVerifiedException,
    InvalidCredentialsException,
    UnauthorizedException,
    UserNotFoundException,
    ValidationException,
    BadRequestException,
)
from app.middleware.auth import get_current_user, get_optional_user
from app.models.one_time_code import CodePurpose
from app.models.user import User
from app.schemas.auth_schemas import (
    AuthResponse,
    CredentialCheckResponse,
    EmailRequest,
    LoginRequest,
    MessageResponse,
    MfaStatusResponse,
    PasswordChange,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    SessionUser,
    UserProfile,
    VerifyEmailRequest,
    VerifyMfaRequest,
)
from app.services import auth_service, otp_service
from app.services.session_service import (
    clear_session_cookies,
    issue_session_token,
    set_session_cookies,
    token_for_body,
)
from app.utils.email import Mailer
from app.utils.logger import log_auth_event

router = APIRouter()
logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, we sent a password reset link."
RESEND_VERIFICATION_MESSAGE = "If that account still needs verification, a new code has been sent."


def _start_session(response: Response, user: User, message: str) -> AuthResponse:
    """Mint a session token for *user*, set the cookie(s) and build the body"""
    token = issue_session_token(auth_service.identity_claims(user))
    set_session_cookies(response, token)
    return AuthResponse(
        message=message,
        user=SessionUser.model_validate(user),
        token=token_for_body(token),
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_200_OK)
def register(
    user_data: RegisterRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    ## Register a new account

    Creates an unverified account (MFA enabled) and emails a 6-digit
    verification code valid for 24 hours.

    - HTTP 200 → `{ message, userId }`; continue with **POST /auth/verify-email**.
    - HTTP 409 → an account with this email already exists.
    """
    user = auth_service.register_user(db, mailer, user_data)
    log_auth_event("REGISTER", user_id=user.id, user_email=user.email)

    return RegisterResponse(
        message="User created successfully. Please check your email for verification code.",
        user_id=user.id,
    )


@router.post("/verify-email", response_model=AuthResponse, response_model_exclude_none=True)
def verify_email(body: VerifyEmailRequest, response: Response, db: Session = Depends(get_db)):
    """
    ## Verify the email address and log in

    Consumes the code emailed at registration. Success marks the email as
    verified and sets the session cookie, so no separate login is needed.

    - HTTP 400 → "Invalid or expired verification code".
    """
    try:
        user = auth_service.verify_email(db, body.user_id, body.code)
    except BadRequestException:
        log_auth_event("VERIFY_EMAIL", success=False, user_id=body.user_id, reason="invalid code")
        raise

    log_auth_event("VERIFY_EMAIL", user_id=user.id, user_email=user.email)
    return _start_session(response, user, "Email verification successful")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    body: EmailRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    ## Resend the email verification code

    Invalidates the previous code. Always answers with the same message.
    """
    user = auth_service.get_user_by_email(db, body.email)
    if user and not user.email_verified:
        otp_service.issue_code(db, mailer, user, CodePurpose.EMAIL_VERIFICATION)

    return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)


@router.post("/login", response_model=AuthResponse, response_model_exclude_none=True)
def login(
    credentials: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    ## Login with email and password

    - MFA disabled → HTTP 200 `{ message, user }` with the session cookie set.
    - MFA enabled → HTTP 200 `{ message, requiresMfa: true, userId }`, no
      cookie; a 5-minute code is emailed. Continue with **POST /auth/verify-mfa**.
    - HTTP 401 → "Invalid credentials" (unknown email or wrong password).
    - HTTP 400 → email not verified yet (correct password only).
    """
    try:
        identity = auth_service.verify_credentials(db, credentials.email, credentials.password)
    except (UserNotFoundException, InvalidCredentialsException):
        log_auth_event("LOGIN", success=False, user_email=credentials.email, reason="invalid credentials")
        raise InvalidCredentialsException()
    except EmailNotVerifiedException:
        # Only someone holding the password learns the account is unverified
        pending = auth_service.get_user_by_email(db, credentials.email)
        if not auth_service.verify_password(credentials.password, pending.hashed_password):
            log_auth_event("LOGIN", success=False, user_email=credentials.email, reason="invalid credentials")
            raise InvalidCredentialsException()
        log_auth_event("LOGIN", success=False, user_email=credentials.email, reason="email not verified")
        raise

    user = identity.user
    if identity.mfa_enabled:
        otp_service.issue_code(db, mailer, user, CodePurpose.MFA_LOGIN)
        log_auth_event("LOGIN_MFA_CHALLENGE", user_id=user.id, user_email=user.email)
        return AuthResponse(
            message="MFA code sent to your email",
            requires_mfa=True,
            user_id=user.id,
        )

    auth_service.record_login(db, user)
    log_auth_event("LOGIN", user_id=user.id, user_email=user.email)
    return _start_session(response, user, "Login successful")


@router.post("/email-login", response_model=AuthResponse, response_model_exclude_none=True)
def email_login(
    body: EmailRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    ## Password-less login by emailed code

    - HTTP 200 → `{ message, requiresMfa: true, userId }`.
    - HTTP 404 → no account with this email.
    - HTTP 400 → email not verified yet.
    """
    user = auth_service.get_user_by_email(db, body.email)
    if not user:
        raise UserNotFoundException(detail="No account found with this email address")
    if not user.email_verified:
        raise EmailNotVerifiedException()

    otp_service.issue_code(db, mailer, user, CodePurpose.MFA_LOGIN)
    log_auth_event("EMAIL_LOGIN_CHALLENGE", user_id=user.id, user_email=user.email)

    return AuthResponse(
        message="Verification code sent to your email",
        requires_mfa=True,
        user_id=user.id,
    )


@router.post("/verify-mfa", response_model=AuthResponse, response_model_exclude_none=True)
def verify_mfa(body: VerifyMfaRequest, response: Response, db: Session = Depends(get_db)):
    """
    ## Complete a login with the emailed code

    - HTTP 200 → `{ message, user }` with the session cookie set.
    - HTTP 400 → "Invalid or expired verification code" (also for a code
      that was already used).
    """
    try:
        user = auth_service.complete_mfa_login(db, body.user_id, body.mfa_code)
    except BadRequestException:
        log_auth_event("VERIFY_MFA", success=False, user_id=body.user_id, reason="invalid code")
        raise

    log_auth_event("VERIFY_MFA", user_id=user.id, user_email=user.email)
    return _start_session(response, user, "MFA verification successful")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: EmailRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    ## Request a password reset link

    Always HTTP 200 with the same message, whether or not the account exists.
    """
    user = auth_service.get_user_by_email(db, body.email)
    if user:
        otp_service.issue_code(db, mailer, user, CodePurpose.PASSWORD_RESET)
        log_auth_event("PASSWORD_RESET_REQUEST", user_id=user.id, user_email=user.email)

    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    """
    ## Set a new password with a reset token

    - HTTP 400 → token invalid, expired or already used.
    """
    user = auth_service.reset_password(db, body.token, body.password)
    log_auth_event("PASSWORD_RESET", user_id=user.id, user_email=user.email)
    return MessageResponse(message="Password reset successfully")


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    ## Change the current user's password

    **Auth:** session cookie or `Authorization: Bearer <token>`.

    - HTTP 400 → "Incorrect current password".
    """
    if not auth_service.verify_password(password_data.current_password, current_user.hashed_password):
        raise BadRequestException(detail="Incorrect current password")
    if password_data.new_password == password_data.current_password:
        raise ValidationException(detail="New password cannot be the same as the current password")

    auth_service.change_password(db, current_user, password_data.new_password)
    log_auth_event("CHANGE_PASSWORD", user_id=current_user.id, user_email=current_user.email)
    return MessageResponse(message="Password changed successfully")


@router.post("/validate-credentials", response_model=CredentialCheckResponse)
def validate_credentials(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    ## Check a password without logging in

    - HTTP 200 → `{ valid: true, mfaEnabled, userId }`.
    - HTTP 401 → invalid credentials or email not verified.
    """
    try:
        identity = auth_service.verify_credentials(db, credentials.email, credentials.password)
    except (UserNotFoundException, InvalidCredentialsException):
        raise InvalidCredentialsException()
    except EmailNotVerifiedException:
        raise UnauthorizedException(detail="Email not verified")

    return CredentialCheckResponse(valid=True, mfa_enabled=identity.mfa_enabled, user_id=identity.user_id)


@router.post("/check-mfa", response_model=MfaStatusResponse)
def check_mfa(body: EmailRequest, db: Session = Depends(get_db)):
    """
    ## Whether an account requires a second factor

    - HTTP 404 → no account with this email.
    """
    user = auth_service.get_user_by_email(db, body.email)
    if not user:
        raise UserNotFoundException()
    return MfaStatusResponse(user_id=user.id, mfa_enabled=bool(user.mfa_enabled))


@router.get("/me", response_model=UserProfile)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    ## The user behind the current session

    - HTTP 401 → no valid session.
    """
    return current_user


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, current_user: Optional[User] = Depends(get_optional_user)):
    """
    ## Clear the session cookie(s)

    The token itself stays valid until it expires; only the client copy is
    removed.
    """
    clear_session_cookies(response)
    if current_user is not None:
        log_auth_event("LOGOUT", user_id=current_user.id, user_email=current_user.email)
    return MessageResponse(message="Logged out successfully")

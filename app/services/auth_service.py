"""Authentication service: password hashing, credential checks, account lifecycle"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import logging
from passlib.context import CryptContext
from passlib.exc import PasswordSizeError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.errors.exceptions import (
    EmailNotVerifiedException,
    EmailTakenException,
    InvalidCredentialsException,
    UserNotFoundException,
)
from app.models.one_time_code import CodePurpose
from app.models.user import User
from app.schemas.auth_schemas import IdentityClaims, RegisterRequest
from app.services import otp_service
from app.utils.email import Mailer

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)


@dataclass
class VerifiedIdentity:
    """Result of a successful password check"""
    user: User
    mfa_enabled: bool

    @property
    def user_id(self) -> str:
        return self.user.id


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a bcrypt hash"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except PasswordSizeError:
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def identity_claims(user: User) -> IdentityClaims:
    """The claims a session token carries for *user*"""
    return IdentityClaims(
        user_id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
    )


def verify_credentials(db: Session, email: str, password: str) -> VerifiedIdentity:
    """
    Check an email/password pair without side effects.

    Raises UserNotFoundException, EmailNotVerifiedException or
    InvalidCredentialsException, in that order of checking.
    """
    user = get_user_by_email(db, email)
    if not user:
        # Burn a hash comparison so unknown emails cost the same as wrong passwords
        pwd_context.dummy_verify()
        raise UserNotFoundException()

    if not user.email_verified:
        raise EmailNotVerifiedException()

    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsException()

    return VerifiedIdentity(user=user, mfa_enabled=bool(user.mfa_enabled))


def record_login(db: Session, user: User) -> None:
    user.last_login = datetime.now(timezone.utc)
    db.commit()


def register_user(db: Session, mailer: Mailer, user_data: RegisterRequest) -> User:
    """
    Create an unverified account with MFA enabled and email it a
    verification code.
    """
    if get_user_by_email(db, user_data.email):
        raise EmailTakenException()

    db_user = User(
        email=user_data.email,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        hashed_password=get_password_hash(user_data.password),
        email_verified=False,
        mfa_enabled=True,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration for the same email
        db.rollback()
        raise EmailTakenException()
    db.refresh(db_user)

    otp_service.issue_code(db, mailer, db_user, CodePurpose.EMAIL_VERIFICATION)
    return db_user


def verify_email(db: Session, user_id: str, code: str) -> User:
    """Consume an email verification code and mark the account verified"""
    otp_service.consume_code(db, user_id, code, CodePurpose.EMAIL_VERIFICATION)

    user = get_user_by_id(db, user_id)
    if not user:
        raise UserNotFoundException()

    user.email_verified = True
    db.commit()
    db.refresh(user)
    return user


def complete_mfa_login(db: Session, user_id: str, code: str) -> User:
    """Consume an MFA login code; the caller then issues the session"""
    otp_service.consume_code(db, user_id, code, CodePurpose.MFA_LOGIN)

    user = get_user_by_id(db, user_id)
    if not user:
        raise UserNotFoundException()

    record_login(db, user)
    return user


def reset_password(db: Session, token: str, new_password: str) -> User:
    """Consume a password reset token and store the new password hash"""
    reset = otp_service.consume_reset_token(db, token)

    user = get_user_by_id(db, reset.user_id)
    if not user:
        raise UserNotFoundException()

    user.hashed_password = get_password_hash(new_password)
    db.commit()
    return user


def change_password(db: Session, user: User, new_password: str) -> None:
    user.hashed_password = get_password_hash(new_password)
    db.commit()

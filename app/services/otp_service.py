"""One-time code issuance and consumption"""
from datetime import datetime, timedelta, timezone
import logging
import secrets

from sqlalchemy.orm import Session

from app.core.config import settings
from app.errors.exceptions import DeliveryFailedException, InvalidOrExpiredCodeException
from app.models.one_time_code import CodePurpose, OneTimeCode
from app.models.user import User
from app.utils.email import Mailer

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the timezone-less ``expires_at`` column"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def code_ttl(purpose: CodePurpose) -> timedelta:
    if purpose == CodePurpose.MFA_LOGIN:
        return timedelta(minutes=settings.MFA_CODE_EXPIRE_MINUTES)
    if purpose == CodePurpose.EMAIL_VERIFICATION:
        return timedelta(hours=settings.VERIFICATION_CODE_EXPIRE_HOURS)
    return timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS)


def generate_numeric_code() -> str:
    """Return a 6-digit code uniform in [100000, 999999]."""
    return str(100000 + secrets.randbelow(900000))


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def reset_url(token: str) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}/reset-password?token={token}"


def _deliver(mailer: Mailer, user: User, code: str, purpose: CodePurpose) -> bool:
    if purpose == CodePurpose.MFA_LOGIN:
        return mailer.send_mfa_code_email(user.email, code, user.first_name)
    if purpose == CodePurpose.EMAIL_VERIFICATION:
        return mailer.send_verification_email(user.email, code, user.first_name)
    return mailer.send_password_reset_email(user.email, reset_url(code), user.first_name)


def issue_code(db: Session, mailer: Mailer, user: User, purpose: CodePurpose) -> str:
    """
    Invalidate the user's outstanding codes for *purpose*, persist a fresh
    one and deliver it by email. Returns the plain-text code.

    Delivery failure aborts an MFA login with DeliveryFailedException and
    rolls the issuance back, so the previous code stays valid and no
    undelivered code is left behind. Verification and reset deliveries are
    only logged: the user can ask for a resend, and a reset must not reveal
    whether the account exists.
    """
    db.query(OneTimeCode).filter(
        OneTimeCode.user_id == user.id,
        OneTimeCode.purpose == purpose,
        OneTimeCode.used == False,  # noqa: E712
    ).update({"used": True}, synchronize_session=False)

    code = generate_reset_token() if purpose == CodePurpose.PASSWORD_RESET else generate_numeric_code()
    db.add(OneTimeCode(
        user_id=user.id,
        code=code,
        purpose=purpose,
        expires_at=utcnow() + code_ttl(purpose),
        used=False,
    ))
    db.flush()

    if not _deliver(mailer, user, code, purpose):
        if purpose == CodePurpose.MFA_LOGIN:
            logger.warning(f"[OTP] MFA code delivery failed for user {user.id}; issuance rolled back")
            db.rollback()
            raise DeliveryFailedException()
        logger.warning(f"[OTP] {purpose.value} email delivery failed for user {user.id}")

    db.commit()
    return code


def _mark_used(db: Session, row: OneTimeCode) -> bool:
    """Flip ``used`` only if still unused; True when this caller won."""
    updated = db.query(OneTimeCode).filter(
        OneTimeCode.id == row.id,
        OneTimeCode.used == False,  # noqa: E712
    ).update({"used": True}, synchronize_session=False)
    db.commit()
    return updated == 1


def consume_code(db: Session, user_id: str, submitted: str, purpose: CodePurpose) -> OneTimeCode:
    """
    Consume an unused, unexpired code of *purpose* belonging to *user_id*.

    Wrong, expired and already-used codes all raise the same
    InvalidOrExpiredCodeException.
    """
    row = (
        db.query(OneTimeCode)
        .filter(
            OneTimeCode.user_id == user_id,
            OneTimeCode.purpose == purpose,
            OneTimeCode.code == submitted.strip(),
            OneTimeCode.used == False,  # noqa: E712
            OneTimeCode.expires_at > utcnow(),
        )
        .order_by(OneTimeCode.created_at.desc())
        .first()
    )
    if row is None or not _mark_used(db, row):
        raise InvalidOrExpiredCodeException()

    db.refresh(row)
    return row


def consume_reset_token(db: Session, token: str) -> OneTimeCode:
    """Consume a password reset token, looked up by its value alone."""
    row = (
        db.query(OneTimeCode)
        .filter(
            OneTimeCode.purpose == CodePurpose.PASSWORD_RESET,
            OneTimeCode.code == token.strip(),
            OneTimeCode.used == False,  # noqa: E712
            OneTimeCode.expires_at > utcnow(),
        )
        .first()
    )
    if row is None or not _mark_used(db, row):
        raise InvalidOrExpiredCodeException()

    db.refresh(row)
    return row

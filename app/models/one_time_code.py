"""OneTimeCode: MFA codes, email verification codes and password reset tokens."""
import uuid
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class CodePurpose(str, Enum):
    """What a one-time code proves when it is consumed"""
    MFA_LOGIN = "mfa_login"
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class OneTimeCode(Base):
    """
    A single-use secret bound to one user.

    Lifecycle
    ---------
    1. Issued      → row inserted (used=False, expires_at in the future).
    2. Consumed    → used=True, exactly once.
    3. Expired     → expires_at has passed; the row is never consumable again.

    Issuing a new code for the same user and purpose marks the older unused
    rows as used, so only the latest code is valid.
    """

    __tablename__ = "one_time_codes"
    __table_args__ = (
        Index("ix_one_time_codes_user_purpose", "user_id", "purpose"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # 6 digits for MFA / verification, 64 hex chars for password reset
    code = Column(String(64), nullable=False)
    purpose = Column(SQLEnum(CodePurpose), nullable=False)

    expires_at = Column(DateTime(timezone=False), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(
        DateTime(timezone=False), server_default=func.now(), nullable=False
    )

    user = relationship("User", back_populates="one_time_codes")

    def __repr__(self) -> str:
        return (
            f"<OneTimeCode(id={self.id}, user_id={self.user_id!r}, purpose={self.purpose}, "
            f"expires_at={self.expires_at}, used={self.used})>"
        )

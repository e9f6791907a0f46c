"""Session token issuance, verification and cookie transport"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
from fastapi import Response
from jose import JWTError, jwt
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.auth_schemas import IdentityClaims, SessionClaims

logger = logging.getLogger(__name__)


def issue_session_token(claims: IdentityClaims, now: Optional[datetime] = None) -> str:
    """
    Sign *claims* into an HS256 JWT that expires SESSION_EXPIRE_DAYS after issue
    """
    issued = now or datetime.now(timezone.utc)
    expire = issued + timedelta(days=settings.SESSION_EXPIRE_DAYS)

    to_encode = claims.model_dump(by_alias=True)
    to_encode.update({
        "sub": claims.user_id,
        "iat": int(issued.timestamp()),
        "exp": int(expire.timestamp()),
    })
    return jwt.encode(to_encode, settings.SESSION_SECRET, algorithm=settings.ALGORITHM)


def verify_session_token(token: Optional[str]) -> Optional[SessionClaims]:
    """
    Decode and validate a session token.

    Bad signature, malformed payload, missing claims and expiry all return
    None; callers never learn which check failed.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.ALGORITHM])
        return SessionClaims.model_validate(payload)
    except (JWTError, ValidationError) as e:
        logger.info(f"Session token rejected: {type(e).__name__}")
        return None


def set_session_cookies(response: Response, token: str) -> None:
    """Attach the session token to *response* as cookie(s)."""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        path="/",
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )
    if settings.MOBILE_COMPAT_COOKIES:
        response.set_cookie(
            key=settings.FALLBACK_COOKIE_NAME,
            value=token,
            max_age=settings.SESSION_MAX_AGE_SECONDS,
            path="/",
            domain=settings.COOKIE_DOMAIN,
            secure=settings.COOKIE_SECURE,
            httponly=False,
            samesite="lax",
        )


def clear_session_cookies(response: Response) -> None:
    """Expire every cookie a session may have been stored in"""
    for name, httponly in (
        (settings.SESSION_COOKIE_NAME, True),
        (settings.FALLBACK_COOKIE_NAME, False),
    ):
        response.delete_cookie(
            key=name,
            path="/",
            domain=settings.COOKIE_DOMAIN,
            secure=settings.COOKIE_SECURE,
            httponly=httponly,
            samesite="lax",
        )


def token_for_body(token: str) -> Optional[str]:
    """The token to echo in a JSON body, only in mobile-compat mode"""
    return token if settings.MOBILE_COMPAT_COOKIES else None

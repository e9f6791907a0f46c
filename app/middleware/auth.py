"""Credential extraction and authentication dependencies"""
from typing import Callable, Iterator, List, Optional, Tuple

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from app.core.config import settings
from app.core.dependencies import get_db
from app.errors.exceptions import UnauthorizedException
from app.models.user import User
from app.schemas.auth_schemas import SessionClaims
from app.services.auth_service import get_user_by_id
from app.services.session_service import verify_session_token


def _primary_cookie(conn: HTTPConnection) -> Optional[str]:
    return conn.cookies.get(settings.SESSION_COOKIE_NAME)


def _fallback_cookie(conn: HTTPConnection) -> Optional[str]:
    return conn.cookies.get(settings.FALLBACK_COOKIE_NAME)


def _bearer_header(conn: HTTPConnection) -> Optional[str]:
    auth = conn.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


# Transport channels in priority order
CREDENTIAL_SOURCES: List[Tuple[str, Callable[[HTTPConnection], Optional[str]]]] = [
    ("cookie", _primary_cookie),
    ("fallback-cookie", _fallback_cookie),
    ("authorization-header", _bearer_header),
]


def extract_credentials(conn: HTTPConnection) -> Iterator[Tuple[str, str]]:
    """Yield ``(source, token)`` for every channel carrying a token, in priority order"""
    for source, extractor in CREDENTIAL_SOURCES:
        token = extractor(conn)
        if token:
            yield source, token


def resolve_session(conn: HTTPConnection) -> Optional[SessionClaims]:
    """Claims of the first credential that verifies, or None"""
    for _source, token in extract_credentials(conn):
        claims = verify_session_token(token)
        if claims is not None:
            return claims
    return None


def get_session_claims(request: Request) -> SessionClaims:
    claims = resolve_session(request)
    if claims is None:
        raise UnauthorizedException(detail="Authentication required")
    return claims


def get_current_user(
    claims: SessionClaims = Depends(get_session_claims),
    db: Session = Depends(get_db)
) -> User:
    """Get the user behind the request's session token"""
    user = get_user_by_id(db, claims.user_id)
    if user is None:
        raise UnauthorizedException(detail="Authentication required")
    return user


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Get current user if authenticated, otherwise return None"""
    claims = resolve_session(request)
    if claims is None:
        return None
    return get_user_by_id(db, claims.user_id)

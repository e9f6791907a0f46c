"""
Tests for session tokens, cookie transport and credential extraction.
"""

from datetime import datetime, timedelta, timezone

from fastapi import Response
from jose import jwt
from starlette.requests import Request

from app.core.config import settings
from app.middleware.auth import extract_credentials, resolve_session
from app.schemas.auth_schemas import IdentityClaims
from app.services.session_service import (
    clear_session_cookies,
    issue_session_token,
    set_session_cookies,
    token_for_body,
    verify_session_token,
)

CLAIMS = IdentityClaims(
    user_id="5f1c7d0e-0000-4000-8000-000000000001",
    email="jane@example.com",
    first_name="Jane",
    last_name="Doe",
)


def _request(cookies: dict = None, authorization: str = None) -> Request:
    headers = []
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        headers.append((b"cookie", cookie_header.encode()))
    if authorization:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def _set_cookie_headers(response: Response) -> list:
    return [value.decode().lower() for key, value in response.raw_headers if key == b"set-cookie"]


# =============================================================================
# Token Tests
# =============================================================================


class TestSessionToken:
    def test_round_trip_preserves_identity(self) -> None:
        claims = verify_session_token(issue_session_token(CLAIMS))

        assert claims is not None
        assert claims.identity() == CLAIMS

    def test_payload_layout(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        token = issue_session_token(CLAIMS, now=now)

        payload = jwt.get_unverified_claims(token)

        assert payload["userId"] == CLAIMS.user_id
        assert payload["sub"] == CLAIMS.user_id
        assert payload["firstName"] == "Jane"
        assert payload["lastName"] == "Doe"
        assert payload["exp"] - payload["iat"] == 7 * 24 * 60 * 60
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_expired_token_rejected(self) -> None:
        issued = datetime.now(timezone.utc) - timedelta(days=8)

        assert verify_session_token(issue_session_token(CLAIMS, now=issued)) is None

    def test_tampered_token_rejected(self) -> None:
        token = issue_session_token(CLAIMS)
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

        assert verify_session_token(f"{header}.{payload}.{flipped}") is None

    def test_foreign_secret_rejected(self) -> None:
        token = jwt.encode(
            {"userId": "x", "email": "x@example.com", "firstName": "X", "lastName": "Y",
             "iat": 0, "exp": 4102444800},
            "some-other-secret",
            algorithm="HS256",
        )

        assert verify_session_token(token) is None

    def test_missing_claims_rejected(self) -> None:
        token = jwt.encode(
            {"sub": CLAIMS.user_id, "exp": 4102444800},
            settings.SESSION_SECRET,
            algorithm="HS256",
        )

        assert verify_session_token(token) is None

    def test_garbage_rejected(self) -> None:
        assert verify_session_token("not-a-jwt") is None
        assert verify_session_token("") is None
        assert verify_session_token(None) is None


# =============================================================================
# Cookie Tests
# =============================================================================


class TestSessionCookies:
    def test_primary_cookie_attributes(self) -> None:
        response = Response()

        set_session_cookies(response, "tok")

        headers = _set_cookie_headers(response)
        assert len(headers) == 1
        cookie = headers[0]
        assert cookie.startswith("session=tok")
        assert "httponly" in cookie
        assert "samesite=lax" in cookie
        assert "path=/" in cookie
        assert "max-age=604800" in cookie
        assert "secure" not in cookie

    def test_secure_in_production(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        response = Response()

        set_session_cookies(response, "tok")

        assert "secure" in _set_cookie_headers(response)[0]

    def test_mobile_compat_adds_fallback_cookie(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "MOBILE_COMPAT_COOKIES", True)
        response = Response()

        set_session_cookies(response, "tok")

        headers = _set_cookie_headers(response)
        assert len(headers) == 2
        fallback = [h for h in headers if h.startswith("session-fallback=tok")][0]
        assert "httponly" not in fallback
        assert token_for_body("tok") == "tok"

    def test_token_not_echoed_by_default(self) -> None:
        assert token_for_body("tok") is None

    def test_clear_expires_both_cookies(self) -> None:
        response = Response()

        clear_session_cookies(response)

        headers = _set_cookie_headers(response)
        assert any(h.startswith("session=") and "max-age=0" in h for h in headers)
        assert any(h.startswith("session-fallback=") and "max-age=0" in h for h in headers)


# =============================================================================
# Credential Extraction Tests
# =============================================================================


class TestCredentialExtraction:
    def test_priority_order(self) -> None:
        request = _request(
            cookies={"session": "a", "session-fallback": "b"},
            authorization="Bearer c",
        )

        assert list(extract_credentials(request)) == [
            ("cookie", "a"),
            ("fallback-cookie", "b"),
            ("authorization-header", "c"),
        ]

    def test_non_bearer_header_ignored(self) -> None:
        request = _request(authorization="Basic dXNlcjpwYXNz")

        assert list(extract_credentials(request)) == []

    def test_bearer_only(self) -> None:
        token = issue_session_token(CLAIMS)

        claims = resolve_session(_request(authorization=f"Bearer {token}"))

        assert claims is not None
        assert claims.user_id == CLAIMS.user_id

    def test_invalid_cookie_falls_through_to_valid_header(self) -> None:
        token = issue_session_token(CLAIMS)

        claims = resolve_session(_request(cookies={"session": "garbage"}, authorization=f"Bearer {token}"))

        assert claims is not None
        assert claims.email == CLAIMS.email

    def test_no_credentials(self) -> None:
        assert resolve_session(_request()) is None

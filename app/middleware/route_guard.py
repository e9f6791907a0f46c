"""Route guard: redirects page requests by path class and session presence"""
from enum import Enum
from typing import Optional, Sequence
import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from app.middleware.auth import resolve_session

logger = logging.getLogger(__name__)

PROTECTED_PATHS = ("/dashboard", "/bills", "/budget", "/accounts", "/me")
PUBLIC_ONLY_PATHS = ("/login", "/register", "/forgot-password", "/reset-password")

LOGIN_PATH = "/login"
HOME_PATH = "/dashboard"


class PathClass(str, Enum):
    PROTECTED = "protected"
    PUBLIC_ONLY = "public_only"
    OPEN = "open"


def _matches(path: str, prefixes: Sequence[str]) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in prefixes)


def classify_path(path: str) -> PathClass:
    if _matches(path, PROTECTED_PATHS):
        return PathClass.PROTECTED
    if _matches(path, PUBLIC_ONLY_PATHS):
        return PathClass.PUBLIC_ONLY
    return PathClass.OPEN


def redirect_target(path: str, authenticated: bool) -> Optional[str]:
    """
    Where to send a request, or None to let it through.

    Protected pages need a session; login/register pages are pointless with one.
    """
    path_class = classify_path(path)
    if path_class == PathClass.PROTECTED and not authenticated:
        return LOGIN_PATH
    if path_class == PathClass.PUBLIC_ONLY and authenticated:
        return HOME_PATH
    return None


class RouteGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if classify_path(path) == PathClass.OPEN:
            return await call_next(request)

        authenticated = resolve_session(request) is not None
        target = redirect_target(path, authenticated)
        if target is None:
            return await call_next(request)

        logger.debug(f"[guard] {request.method} {path} authenticated={authenticated} → {target}")
        return RedirectResponse(url=str(request.url.replace(path=target, query="")))

"""Main FastAPI application"""
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from sqlalchemy.orm import sessionmaker
import logging

from app.core.config import settings
from app.utils.logger import setup_file_logging
from app.utils.email import Mailer
from app.api.api import api_router
from app.db.init_db import init_db
from app.db.session import build_engine, build_session_factory
from app.errors.handlers import register_exception_handlers
from app.middleware.route_guard import RouteGuardMiddleware

logger = logging.getLogger(__name__)


def create_app(
    session_factory: Optional[sessionmaker] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """
    Build the application.

    The database session factory and the mailer live on ``app.state`` and
    reach handlers through ``get_db`` / ``get_mailer``; pass your own to
    run against another database or a recording mailer.
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Authentication core for the Budget This personal finance app",
        version=settings.PROJECT_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json"
    )

    if session_factory is None:
        engine = build_engine(settings.DATABASE_URL)
        session_factory = build_session_factory(engine)
    app.state.engine = session_factory.kw.get("bind")
    app.state.session_factory = session_factory
    app.state.mailer = mailer or Mailer(settings)

    def custom_openapi():
        """Describe the session cookie and bearer token as security schemes"""
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=settings.PROJECT_NAME,
            version=settings.PROJECT_VERSION,
            description="Email/password login with emailed one-time codes and JWT sessions",
            routes=app.routes,
        )
        components = openapi_schema.setdefault("components", {})
        components.setdefault("securitySchemes", {}).update({
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": settings.SESSION_COOKIE_NAME,
            },
            "BearerToken": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Same token as the session cookie, for clients that cannot keep cookies.",
            },
        })

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RouteGuardMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.on_event("startup")
    async def startup_event():
        """Create missing tables and log application startup"""
        bind = app.state.engine
        if bind is not None:
            init_db(bind)
        logger.warning(f"{settings.PROJECT_NAME} STARTED ({settings.ENVIRONMENT})")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Log application shutdown"""
        logger.warning(f"{settings.PROJECT_NAME} SHUTDOWN")

    return app


setup_file_logging(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), settings.LOG_FILE)
app = create_app()

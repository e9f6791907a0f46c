"""Application configuration"""
import os
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _to_bool(val: Optional[str], default: bool = False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # Project Metadata
    PROJECT_NAME = "Budget This API"
    PROJECT_VERSION = "1.0.0"
    API_PREFIX = "/api"

    # Database Configuration
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./budget_this.db")

    # Development/Production Settings
    ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
    DEBUG = _to_bool(os.getenv("DEBUG"), False)

    # Session token (HS256 JWT). NEXTAUTH_SECRET is honoured for older deployments.
    SESSION_SECRET = (
        os.getenv("SESSION_SECRET")
        or os.getenv("NEXTAUTH_SECRET")
        or "your-super-secret-session-key-change-this-in-production"
    )
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", 7))

    # Cookies
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")
    FALLBACK_COOKIE_NAME = os.getenv("FALLBACK_COOKIE_NAME", "session-fallback")
    COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN") or None
    # Some mobile browsers drop httpOnly cookies set from fetch responses;
    # this adds a readable fallback cookie and echoes the token in the body.
    MOBILE_COMPAT_COOKIES = _to_bool(os.getenv("MOBILE_COMPAT_COOKIES"), False)

    # Password hashing
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

    # One-time code lifetimes
    MFA_CODE_EXPIRE_MINUTES = int(os.getenv("MFA_CODE_EXPIRE_MINUTES", 5))
    VERIFICATION_CODE_EXPIRE_HOURS = int(os.getenv("VERIFICATION_CODE_EXPIRE_HOURS", 24))
    PASSWORD_RESET_EXPIRE_HOURS = int(os.getenv("PASSWORD_RESET_EXPIRE_HOURS", 1))

    # SMTP / Email configuration
    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASS = os.getenv("SMTP_PASS", "")
    EMAIL_FROM = os.getenv("EMAIL_FROM") or SMTP_USER or "noreply@budget-this.com"
    EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "Budget This")

    # Public base URL of the web frontend (used to build password reset links)
    APP_BASE_URL = os.getenv("NEXTAUTH_URL", "http://localhost:8080")

    # Logging Configuration
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", "app/logs/logs.txt")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8080")

    @property
    def COOKIE_SECURE(self) -> bool:
        """Secure cookies are only required when served over HTTPS in production"""
        return self.ENVIRONMENT == "production"

    @property
    def SESSION_MAX_AGE_SECONDS(self) -> int:
        return self.SESSION_EXPIRE_DAYS * 24 * 60 * 60

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()

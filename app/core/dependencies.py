"""FastAPI dependencies"""
from typing import Generator
from fastapi import Request
from sqlalchemy.orm import Session

from app.utils.email import Mailer


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency
    Yields a session from the factory built at start-up and closes it after use
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_mailer(request: Request) -> Mailer:
    """The SMTP client built at start-up"""
    return request.app.state.mailer

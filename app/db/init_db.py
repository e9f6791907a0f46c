"""Initialize database tables"""
import logging
from sqlalchemy.engine import Engine

from app.db.base import Base
import app.models  # noqa: F401  registers every model on Base.metadata

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """Create all database tables"""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {str(e)}")
        raise

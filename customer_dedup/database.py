"""
Database Configuration and Session Management
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from customer_dedup.config import settings
import logging

logger = logging.getLogger(__name__)

# Create SQLAlchemy engine
engine = None
SessionLocal = None


def init_db(database_url=None):
    """Initialize database connection"""
    global engine, SessionLocal

    url = database_url or settings.database_url
    if not url:
        logger.warning("DATABASE_URL not configured - duplicate detection store disabled")
        return

    logger.info("Connecting to customer registry database...")
    options = {"pool_pre_ping": True}  # Verify connections before using them
    if not url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10)
    engine = create_engine(url, **options)

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    logger.info("Database connection established")


def get_session_factory():
    """
    Return the configured session factory, initializing it on first use.

    Raises:
        RuntimeError: if no DATABASE_URL is configured
    """
    if SessionLocal is None:
        init_db()
    if SessionLocal is None:
        raise RuntimeError("DATABASE_URL is not configured; cannot query the customer registry")
    return SessionLocal


# Base class for all models
Base = declarative_base()

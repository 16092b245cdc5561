"""
SQLAlchemy engine and session factory.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from insurance_analyzer.config import settings
from insurance_analyzer.db.base import Base

logger = logging.getLogger(__name__)

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    pool_pre_ping=not _is_sqlite,  # health-check connections for PostgreSQL
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Register every model on the metadata and create missing tables."""
    from insurance_analyzer.models import (  # noqa: F401
        analysis,
        comparison,
        email_notification,
        human_review,
        payment,
        policy,
        subscription,
        user,
    )

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")

"""
SQLAlchemy declarative base and shared column helpers.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Enum, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in dev/tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def new_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def pg_enum(enum_cls, name: str) -> Enum:
    """Map a str enum to a named database enum that stores the member values."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
    )

"""
Database Connection and Schema Helpers
Async queries through `databases`; schema declared with SQLAlchemy
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from databases import Database
from sqlalchemy import JSON, MetaData, String, create_engine
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import declarative_base

from certi.config import settings

logger = logging.getLogger(__name__)

# Database URL
DATABASE_URL = settings.DATABASE_URL

# For Supabase connection pooler (pgbouncer), disable prepared statements.
# Pool sizing only applies to the postgres backend.
if "supabase.com" in DATABASE_URL:
    db_options = {"min_size": 1, "max_size": 5, "statement_cache_size": 0}
elif DATABASE_URL.startswith("postgresql"):
    db_options = {"min_size": 1, "max_size": 10}
else:
    db_options = {}

# Create database instance for async queries
database = Database(DATABASE_URL, **db_options)

# Create SQLAlchemy engine for migrations and scripts
engine = create_engine(
    DATABASE_URL.replace("postgresql://", "postgresql+psycopg2://")
    if DATABASE_URL.startswith("postgresql://") else DATABASE_URL
)

metadata = MetaData()

Base = declarative_base(metadata=metadata)

# Column types shared by the models: native UUID/JSONB on PostgreSQL,
# plain text on SQLite (used by the test suite).
GUID = UUID(as_uuid=True).with_variant(String(36), "sqlite")
JSONType = JSONB().with_variant(JSON(), "sqlite")


async def connect_db():
    """Connect to database on startup"""
    await database.connect()
    logger.info("Database connected")


async def disconnect_db():
    """Disconnect from database on shutdown"""
    await database.disconnect()
    logger.info("Database disconnected")


def row_to_dict(row) -> Optional[dict]:
    """Convert a `databases` record into a plain dict."""
    return dict(row) if row is not None else None


def rows_to_dicts(rows: Iterable) -> List[dict]:
    return [row_to_dict(row) for row in rows]


def as_date(value: Any) -> Optional[date]:
    """Normalize DATE/TIMESTAMP values, SQLite hands them back as text."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def as_bool(value: Any) -> bool:
    return bool(value) if value is not None else False


def pagination(page: int, per_page: int, total: int) -> dict:
    """Pagination block returned alongside every paginated listing"""
    return {
        "current_page": page,
        "last_page": max(1, math.ceil(total / per_page)) if per_page else 1,
        "per_page": per_page,
        "total": total,
    }


def in_clause(prefix: str, values: Iterable[Any]) -> tuple:
    """
    Build a named-parameter IN list.

    Returns the SQL fragment (e.g. ``:p0, :p1``) and the matching values dict.
    """
    params = {f"{prefix}{i}": str(value) for i, value in enumerate(values)}
    fragment = ", ".join(f":{key}" for key in params)
    return fragment, params

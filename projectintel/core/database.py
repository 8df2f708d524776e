"""
Engine, sessions and table definitions.

Tables are SQLAlchemy Core on a single MetaData. Server databases get a
QueuePool engine; SQLite (tests, local runs) shares one connection through
StaticPool so an in-memory database survives across sessions and threads.
"""
import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    false,
    text,
    true,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.sql import func

from projectintel.core.config import settings


logger = logging.getLogger("projectintel.database")

metadata = MetaData()

SERVER_POOL = {
    "pool_size": 10,
    "max_overflow": 20,
    "pool_timeout": 30,
    "pool_recycle": 3600,
    "pool_pre_ping": True,
}

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_database_url() -> Optional[str]:
    """TEST_DATABASE_URL from the process environment wins over settings."""
    return os.getenv("TEST_DATABASE_URL") or settings.DATABASE_URL


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"poolclass": QueuePool, **SERVER_POOL}


def init_engine(database_url: Optional[str] = None) -> Engine:
    """(Re)create the process-wide engine and session factory."""
    global _engine, _SessionLocal

    url = database_url or get_database_url()
    if not url:
        raise ValueError("DATABASE_URL is not configured. Set it in the environment or .env file.")

    _engine = create_engine(url, **_engine_options(url))
    _SessionLocal = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    logger.info("database.engine_ready", extra={"dialect": _engine.dialect.name})
    return _engine


def dispose_engine() -> None:
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine


@contextmanager
def get_db_session() -> Iterator[Session]:
    """One unit of work: commit on clean exit, roll back on any exception."""
    if _SessionLocal is None:
        init_engine()
    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables() -> None:
    metadata.create_all(bind=get_engine())


def drop_all_tables() -> None:
    """Destructive; tests and local development only."""
    metadata.drop_all(bind=get_engine())


def check_connection() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, ValueError) as exc:
        logger.warning("database.unavailable", extra={"error_message": str(exc)})
        return False


# State master (registry, administered independently)
state_master = Table(
    'state_master',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('name', String(100), nullable=False),
    # Case-folded name enforces case-insensitive uniqueness
    Column('name_key', String(100), nullable=False, unique=True),
    Column('code', String(10), nullable=True),
    Column('is_active', Boolean, nullable=False, server_default=true()),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    Index('idx_state_master_active', 'is_active'),
)

# Sector master (registry, administered independently)
sector_master = Table(
    'sector_master',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('name', String(100), nullable=False),
    Column('name_key', String(100), nullable=False, unique=True),
    Column('is_active', Boolean, nullable=False, server_default=true()),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    Index('idx_sector_master_active', 'is_active'),
)

# Subscription plans
subscription_plans = Table(
    'subscription_plans',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('name', String(200), nullable=False, unique=True),
    Column('description', Text, nullable=True),
    Column('plan_type', String(20), nullable=False, index=True),
    Column('features', JSON, nullable=False),
    Column('limits', JSON, nullable=False),
    Column('duration_months', Integer, nullable=False),
    Column('price', Integer, nullable=False),
    Column('is_active', Boolean, nullable=False, server_default=true()),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

# User subscriptions (superseded, never deleted)
user_subscriptions = Table(
    'user_subscriptions',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('user_id', String(100), nullable=False, index=True),
    Column('plan_id', Integer, ForeignKey('subscription_plans.id'), nullable=False),
    Column('start_date', DateTime(timezone=True), nullable=False),
    Column('end_date', DateTime(timezone=True), nullable=False),
    Column('is_active', Boolean, nullable=False, server_default=true()),
    Column('payment_status', String(50), nullable=False, server_default='pending'),
    Column('allowed_states', JSON, nullable=False),
    Column('allowed_sectors', JSON, nullable=False),
    Column('is_pan_india', Boolean, nullable=False, server_default=false()),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    # Active-subscription lookup pattern: (user_id, is_active, end_date)
    Index('idx_user_subscriptions_user_active', 'user_id', 'is_active', 'end_date'),
)

# Project master (identity is project_code)
project_master = Table(
    'project_master',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('project_code', String(100), nullable=False, unique=True),
    Column('project_title', Text, nullable=True),
    Column('industry_raw', Text, nullable=True),
    Column('sector', String(100), nullable=False, index=True),
    Column('project_value', Text, nullable=True),
    Column('status', String(200), nullable=True, index=True),
    Column('product', Text, nullable=True),
    Column('country', String(100), nullable=True),
    Column('state', String(100), nullable=True, index=True),
    Column('city', String(200), nullable=True),
    Column('capacity', Text, nullable=True),
    Column('place_of_work', Text, nullable=True),
    Column('project_details', Text, nullable=True),
    Column('contact_details', Text, nullable=True),
    Column('contractor', Text, nullable=True),
    Column('constructor', Text, nullable=True),
    Column('architect', Text, nullable=True),
    Column('updated_date', DateTime(timezone=True), nullable=True),
    Column('expected_completion_date', DateTime(timezone=True), nullable=True),
    Column('source_month', String(50), nullable=False, index=True),
    Column('is_active', Boolean, nullable=False, server_default=true()),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    # Subscriber listing pattern: (state, sector) among active records
    Index('idx_project_master_state_sector', 'state', 'sector'),
    Index('idx_project_master_active_updated', 'is_active', 'updated_at'),
)

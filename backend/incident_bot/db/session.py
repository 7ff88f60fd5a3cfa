"""
Database Session Management Module
==================================

Responsible for:
- Creating the database engine from settings
- Managing session lifecycle
- Providing the session dependency for FastAPI routes

Background work (command handlers, sync jobs) opens its own session
from ``SessionLocal``; sessions are never shared across threads.
"""

from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from incident_bot.core.config import get_settings
from incident_bot.core.logging import get_logger

# Initialize logger
logger = get_logger(__name__)


# ==========================
# Database Engine
# ==========================

def build_engine(database_url: str) -> Engine:
    """
    Create an engine with pool settings appropriate for the backend.

    SQLite URLs skip the pool sizing and connect arguments, which only
    apply to PostgreSQL.
    """
    settings = get_settings()
    options: Dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.DEBUG,
    }

    if database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            connect_args={
                "connect_timeout": 10,
                "application_name": "incident-bot",
            },
        )
    elif database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}

    return create_engine(database_url, **options)


engine = build_engine(get_settings().DATABASE_URL)


# ==========================
# Pool Event Listeners
# ==========================

@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection, connection_record):
    """Turn on SQLite foreign keys so incident deletes cascade as on PostgreSQL."""
    if engine.dialect.name == "sqlite":
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    logger.debug("db_connect", dialect=engine.dialect.name)


# ==========================
# Session Factory
# ==========================

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# ==========================
# Dependency for FastAPI
# ==========================

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a database session.

    Yields:
        SQLAlchemy Session object
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("db_session_error", error=str(e))
        db.rollback()
        raise
    finally:
        db.close()


# ==========================
# Database Health Check
# ==========================

def check_database_connection(bind: Engine = None) -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        with (bind or engine).connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("db_health_check_failed", error=str(e))
        return False

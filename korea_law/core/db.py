"""
Database connection utilities.

Engines are created explicitly and handed to the store; nothing here holds
a process-wide connection.
"""
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.pool import StaticPool

from korea_law.core.config import get_database_url
from korea_law.core.schema import metadata

logger = logging.getLogger(__name__)


def create_db_engine(database_url: Optional[str] = None, create_schema: bool = True) -> Engine:
    """
    Create a SQLAlchemy engine for the statute store.

    Args:
        database_url: SQLAlchemy URL; defaults to KOREA_LAW_DATABASE_URL
        create_schema: Create missing tables on the new engine

    Returns:
        Engine bound to the database

    Example:
        engine = create_db_engine("sqlite:///data/korea-law.db")
        store = LawStore(engine)
    """
    database_url = database_url or get_database_url()
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            # One shared in-memory database across connections
            engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(database_url)
    else:
        # pool_pre_ping=True verifies connections before using them
        engine = create_engine(database_url, pool_pre_ping=True)

    if create_schema:
        metadata.create_all(engine)
        logger.debug(f"Schema ready on {url.get_backend_name()} database")

    return engine


@contextmanager
def get_db_connection(engine: Engine):
    """
    Context manager for a plain connection.
    Ensures connection is closed after use.

    Example:
        with get_db_connection(engine) as conn:
            result = conn.execute(text("SELECT 1"))
            print(result.scalar())
    """
    conn = None
    try:
        conn = engine.connect()
        yield conn
    finally:
        if conn:
            conn.close()


@contextmanager
def get_db_transaction(engine: Engine):
    """
    Context manager for a connection inside one transaction.
    Commits on success, rolls back on any exception.

    Example:
        with get_db_transaction(engine) as conn:
            conn.execute(laws.insert().values(...))
    """
    with engine.begin() as conn:
        yield conn


def check_db_connection(engine: Engine) -> bool:
    """
    Test database connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        with get_db_connection(engine) as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False

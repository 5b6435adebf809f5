"""
Database configuration and connection management.

Engine and session factory setup, per-request session dependency,
statement timing and counting hooks, and the transaction boundary used by
write services.
"""

import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterator, List, Optional, Union

import structlog
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import QueuePool, StaticPool

from .config import settings
from .domain.exceptions import ConcurrentModificationException
from .models import Base

# Load environment variables
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

logger = structlog.get_logger(__name__)


def get_database_url() -> str:
    """
    Get database URL from settings.

    Returns:
        Database connection URL
    """
    db_url = settings.DATABASE_URL

    # Sanitize for logging
    if "@" in db_url:
        safe_url = db_url.split("@")[0].split("://")[0] + "://***@" + db_url.split("@")[1]
    else:
        safe_url = db_url

    logger.info("Using database", url=safe_url)
    return db_url


def get_engine_kwargs(db_url: str) -> dict:
    """
    Get database-specific engine arguments.

    SQLite gets a thread-agnostic connection, and a single shared one for
    in-memory databases. Everything else gets a sized QueuePool.

    Args:
        db_url: Database connection URL

    Returns:
        Keyword arguments for ``create_engine``
    """
    if db_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "poolclass": QueuePool,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
    }


# Query performance tracking
@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Track query start time."""
    conn.info.setdefault("query_start_time", []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries."""
    total_time_ms = (time.time() - conn.info["query_start_time"].pop()) * 1000

    if total_time_ms > settings.QUERY_LOG_THRESHOLD_MS:
        logger.warning(
            "Slow query detected",
            query_time_ms=round(total_time_ms, 2),
            statement=statement[:200],
            parameters=str(parameters)[:100] if parameters else None,
        )


class QueryCounter:
    """
    Count SQL statements executed while the block runs.

    Given a ``Connection``, only statements sent through that connection
    are counted, so concurrent requests on other pooled connections do
    not show up. Given an ``Engine``, every statement on it is counted.

    Example:
        with QueryCounter(session.connection()) as counter:
            repository.find_all()
        counter.count  # -> number of statements this session sent
    """

    def __init__(self, bind: Union[Engine, Connection]):
        self.engine = bind.engine
        self.connection: Optional[Connection] = bind if isinstance(bind, Connection) else None
        self.statements: List[str] = []

    @property
    def count(self) -> int:
        return len(self.statements)

    def _record(self, conn, cursor, statement, parameters, context, executemany):
        if self.connection is None or conn is self.connection:
            self.statements.append(statement)

    def __enter__(self) -> "QueryCounter":
        event.listen(self.engine, "before_cursor_execute", self._record)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        event.remove(self.engine, "before_cursor_execute", self._record)


# Initialize database connection
db_url = get_database_url()

engine = create_engine(db_url, echo=settings.SQL_ECHO, **get_engine_kwargs(db_url))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """
    Initialize database tables.

    Creates all tables on application startup.
    Uses checkfirst=True to safely handle existing tables.
    """
    try:
        logger.info("Initializing database tables...")
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise


def get_db() -> Generator[Session, None, None]:
    """
    Get database session for dependency injection.

    One session per request; closing it rolls back anything not committed.

    Yields:
        SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transactional(db: Session) -> Iterator[Session]:
    """
    Run a unit of work and commit it, or roll everything back.

    A stale version check on flush is reported as
    ``ConcurrentModificationException``; every other error propagates
    unchanged after the rollback.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning("Optimistic lock failure", error=str(e))
        raise ConcurrentModificationException("item", str(e)) from e
    except Exception:
        db.rollback()
        raise


def get_db_stats() -> dict:
    """
    Get database connection pool statistics.

    Returns:
        Dict with pool statistics
    """
    pool = engine.pool
    stats = {"pool_class": type(pool).__name__}

    if isinstance(pool, QueuePool):
        stats.update(
            {
                "pool_size": pool.size(),
                "checked_out": pool.checkedout(),
                "overflow": pool.overflow(),
            }
        )
    return stats

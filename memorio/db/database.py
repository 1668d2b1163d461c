from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from loguru import logger
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from memorio.db.models import Base

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite files get their parent directory created, a generous busy
    timeout so concurrent writers wait instead of failing, and foreign
    key enforcement.
    """
    url = make_url(database_url)
    connect_args: dict = {}

    if url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, "timeout": 30}
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        database_url, echo=echo, pool_pre_ping=True, connect_args=connect_args
    )

    if url.get_backend_name() == "sqlite":

        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Session factory for an engine.

    Objects stay loaded after commit so records can be returned from a
    closed session.
    """
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def configure_database(database_url: str | None = None, echo: bool | None = None) -> Engine:
    """
    (Re)bind the module-level engine and session factory.

    Called lazily with settings defaults, or explicitly by the CLI and
    tests to point at another database.
    """
    global _engine, _SessionLocal
    settings = get_settings()

    if _engine is not None:
        _engine.dispose()

    _engine = build_engine(
        database_url or settings.database_url,
        echo=settings.database_echo if echo is None else echo,
    )
    _SessionLocal = make_session_factory(_engine)
    logger.debug(f"Database configured: {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_engine() -> Engine:
    """Get the database engine (lazy initialization)."""
    if _engine is None:
        configure_database()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Get the session factory (lazy initialization)."""
    if _SessionLocal is None:
        configure_database()
    return _SessionLocal


def init_db(engine: Engine | None = None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("Database tables initialized")


def check_database_health(engine: Engine | None = None) -> tuple[str, str | None]:
    """
    Check database connectivity.

    Returns:
        Tuple of (status, error_message). Status is "ok" or "error".
    """
    try:
        with (engine or get_engine()).connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok", None
    except SQLAlchemyError as e:
        return "error", str(e)


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()

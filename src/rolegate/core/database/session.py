"""Database engine and session management."""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from rolegate.config import Settings, settings


def create_db_engine(config: Settings | None = None) -> Engine:
    """Create an engine from settings.

    Args:
        config: Settings to read the database URL from

    Returns:
        Configured SQLAlchemy engine
    """
    config = config or settings
    engine = create_engine(
        config.database_url,
        echo=config.database_echo,
        pool_pre_ping=True,  # Verify connections before use
    )
    if engine.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(engine)
    return engine


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection.

    Without it SQLite ignores ON DELETE CASCADE on the edge tables.
    """

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to an engine."""
    return sessionmaker(
        bind=engine,
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a session that commits on success and rolls back on error.

    Usage:
        with session_scope(factory) as session:
            gatekeeper = Gatekeeper(session)
            gatekeeper.allow(user).to("edit-site")
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

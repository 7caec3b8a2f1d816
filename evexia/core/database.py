"""Database connection and session management."""

from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from evexia.config import get_settings
from evexia.models.base import Base


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine with settings appropriate for the backend."""
    kwargs: Dict[str, Any] = {"echo": echo}

    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)
        # SQLite needs this for ON DELETE CASCADE / SET NULL
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    settings = get_settings()
    return create_engine(
        database_url.replace("postgresql+asyncpg://", "postgresql://"),
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
        **kwargs,
    )


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


settings = get_settings()

engine = build_engine(
    settings.database_url, echo=settings.debug and settings.environment == "development"
)

SessionLocal = sessionmaker(
    bind=engine,
    class_=Session,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session; commit on success, roll back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine = engine) -> None:
    """Initialize database with tables."""
    # Importing the package registers every model on Base.metadata
    import evexia.models  # noqa: F401  pylint: disable=import-outside-toplevel

    Base.metadata.create_all(bind=bind)

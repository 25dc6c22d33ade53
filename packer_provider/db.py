"""Local state store for build resources.

Resource records live in a SQLAlchemy database (SQLite by default) that
stands in for the orchestration host's own state persistence.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from packer_provider.config import get_settings

StateSessionFactory = sessionmaker[Session]


class Base(DeclarativeBase):
    """Declarative base of the state store tables."""


def _sqlite_file(db_url: str) -> Path | None:
    """Return the database file of a file-backed SQLite URL, else None."""
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


def get_engine(db_url: str | None = None) -> Engine:
    """Open the state store engine.

    The parent directory of a SQLite database file is created on demand so
    that the default location under ``~/.local/share`` works on first use.
    """
    db_url = db_url or get_settings().db_url

    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        db_file = _sqlite_file(db_url)
        if db_file is not None:
            db_file.parent.mkdir(parents=True, exist_ok=True)

    return create_engine(db_url, connect_args=connect_args)


def get_session_factory(engine: Engine | None = None) -> StateSessionFactory:
    """Return a session factory bound to the state store."""
    return sessionmaker(
        bind=engine or get_engine(), autoflush=False, expire_on_commit=False
    )


@contextmanager
def get_session(
    session_factory: StateSessionFactory | None = None,
) -> Iterator[Session]:
    """Run one unit of work against the state store.

    Changes are committed when the block exits normally and rolled back if
    it raises, so a failed lifecycle operation leaves stored state as it was.
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables(engine: Engine | None = None) -> None:
    """Create the ``build_resources`` table if it does not exist."""
    # Importing the models registers them on Base.metadata
    from packer_provider.resources import models  # noqa: F401

    Base.metadata.create_all(bind=engine or get_engine())


__all__ = [
    "Base",
    "StateSessionFactory",
    "create_all_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
]

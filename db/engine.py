"""SQLAlchemy engine utilities."""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def default_url() -> str:
    """Return a URL for ``exercise_tracker.db`` in the current working directory."""

    return f"sqlite:///{Path.cwd() / 'exercise_tracker.db'}"


def get_engine(url: str | None = None) -> Engine:
    """Build an engine for ``url``; SQLite connections may be shared across threads."""

    url = url or default_url()
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, echo=False)


def init_db(engine: Engine) -> Engine:
    """Create the document tables if they haven't been created."""

    from db import models  # noqa: F401 – side-effect import

    Base.metadata.create_all(engine)
    return engine

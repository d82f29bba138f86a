"""Database engine and helpers.

The engine is created explicitly from `Settings` and handed to the
application (see `lms.main.create_app`), so tests and scripts can point
at their own database. Request handlers receive a `Session` per request
through `get_session`.
"""

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from . import models  # noqa: F401  (registers tables on SQLModel.metadata)
from .config import Settings


def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine for `settings.DATABASE_URL`."""
    connect_args = {}
    if settings.DATABASE_URL.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(settings.DATABASE_URL, echo=False, connect_args=connect_args)


def create_db_and_tables(engine: Engine):
    """Create database tables using SQLModel metadata.

    Intended for local development and tests; the SQL files under
    `migrations/` describe the same schema for other deployments.
    """
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """Yield a database `Session` for FastAPI dependency injection.

    The engine comes from the application state; the session is closed
    when the request scope finishes.
    """
    with Session(request.app.state.engine) as session:
        yield session

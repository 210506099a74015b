"""Database package — async SQLAlchemy engine, session factory, Base, commit hooks."""
from gatepass.db import events  # noqa: F401  (registers session hooks)
from gatepass.db.base import Base, async_session_factory, create_tables, engine, get_db
from gatepass.db.events import stage_change

__all__ = ["Base", "async_session_factory", "create_tables", "engine", "get_db", "stage_change"]

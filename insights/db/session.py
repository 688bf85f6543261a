"""Store connection management."""

from pathlib import Path

from sqlalchemy import create_engine

from .realtime import ChangeChannel
from .store import DataStore

_engine = None
_store = None


def init_db(database_url: str, channel: ChangeChannel = None) -> DataStore:
    """Initialize the store connection."""
    global _engine, _store

    # Ensure directory exists for file-backed sqlite
    if database_url.startswith("sqlite:///") and database_url != "sqlite:///:memory:":
        Path(database_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(database_url, echo=False)
    _store = DataStore(_engine, channel)

    return _store


def get_store() -> DataStore:
    """Get the initialized store."""
    if _store is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _store


def get_engine():
    """Get the initialized engine."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine

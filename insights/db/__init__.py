"""Store client, change notifications and connection management."""

from .realtime import ChangeChannel, ChangeEvent, Subscription, INSERT, UPDATE, DELETE, ALL_EVENTS
from .store import DataStore, Query, StoreResponse, ExternalStoreError, split_columns
from .session import init_db, get_store, get_engine

__all__ = [
    "ChangeChannel",
    "ChangeEvent",
    "Subscription",
    "INSERT",
    "UPDATE",
    "DELETE",
    "ALL_EVENTS",
    "DataStore",
    "Query",
    "StoreResponse",
    "ExternalStoreError",
    "split_columns",
    "init_db",
    "get_store",
    "get_engine",
]

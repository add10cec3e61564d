"""projtrack storage layer."""

from projtrack.storage.base import DocumentStore
from projtrack.storage.sqlite_store import SQLiteStore

__all__ = ["DocumentStore", "SQLiteStore"]

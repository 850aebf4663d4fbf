"""sitedesk storage backends."""

from sitedesk.storage.base import StorageBackend
from sitedesk.storage.sqlite_store import SQLiteStore

__all__ = ["SQLiteStore", "StorageBackend"]

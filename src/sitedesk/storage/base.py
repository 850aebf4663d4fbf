"""Abstract storage interface for sitedesk."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StorageBackend(ABC):
    """Key/value store holding serialized collections.

    Each key maps to one JSON document (a list of records). The session
    decides what the keys are; the backend only stores text.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize schema and connections."""

    @abstractmethod
    async def close(self) -> None:
        """Close all connections."""

    @abstractmethod
    async def get_raw(self, key: str) -> str | None:
        """Return the stored text for key, or None if absent."""

    @abstractmethod
    async def set_raw(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value."""

    @abstractmethod
    async def clear(self) -> int:
        """Delete every key. Returns the number of keys removed."""

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Return store statistics."""

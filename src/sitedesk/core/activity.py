"""Bounded, most-recent-first activity log."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from sitedesk.models.activity import SYSTEM_PROJECT_ID, SYSTEM_PROJECT_NAME, ActivityEntry

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50

BOOTSTRAP_ENTRY_ID = "init"
BOOTSTRAP_USER = "Command Center"
BOOTSTRAP_ACTION = "site operations dashboard online"


class ActivityLog:
    """Append-only history; the newest entry is always first."""

    def __init__(
        self,
        entries: Iterable[ActivityEntry] = (),
        *,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"Log capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: list[ActivityEntry] = list(entries)[:capacity]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    @property
    def entries(self) -> list[ActivityEntry]:
        return list(self._entries)

    def prepend(self, entry: ActivityEntry) -> None:
        """Add entry as the newest, evicting the oldest beyond capacity."""
        self._entries.insert(0, entry)
        if len(self._entries) > self.capacity:
            evicted = self._entries[self.capacity:]
            del self._entries[self.capacity:]
            logger.debug("Evicted %d activity entries", len(evicted))

    def recent(self, limit: int) -> list[ActivityEntry]:
        return self._entries[:limit]

    def ensure_bootstrap(self, now: datetime | None = None) -> ActivityEntry | None:
        """Seed an empty log with the system start-up entry.

        Returns the synthesized entry, or None when the log already had
        history.
        """
        if self._entries:
            return None
        entry = ActivityEntry(
            id=BOOTSTRAP_ENTRY_ID,
            project_id=SYSTEM_PROJECT_ID,
            project_name=SYSTEM_PROJECT_NAME,
            user_name=BOOTSTRAP_USER,
            action=BOOTSTRAP_ACTION,
            timestamp=now or datetime.now(UTC),
        )
        self._entries.append(entry)
        return entry

"""Session state container: projects, activity log and resource board."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

import aiosqlite
from pydantic import TypeAdapter, ValidationError

from sitedesk.config import Config
from sitedesk.core.activity import ActivityLog
from sitedesk.core.machine import apply_command
from sitedesk.core.resources import ResourceBoard
from sitedesk.events.bus import EventBus
from sitedesk.events.types import EventType
from sitedesk.models.activity import ActivityEntry
from sitedesk.models.commands import PendingUpdate, ReportShortage
from sitedesk.models.project import DEFAULT_NEXT_STEP, DEFAULT_TEAM, Project
from sitedesk.models.resource import ResourceUnit
from sitedesk.models.user import User
from sitedesk.seed import ADMIN_USER_NAME, USERS, seed_projects, seed_resources
from sitedesk.storage.base import StorageBackend

logger = logging.getLogger(__name__)

PROJECTS_KEY = "projects"
LOGS_KEY = "logs"

_PROJECTS = TypeAdapter(list[Project])
_ENTRIES = TypeAdapter(list[ActivityEntry])


@dataclass(frozen=True)
class Snapshot:
    """Detached, read-only view of the session."""

    projects: list[Project]
    logs: list[ActivityEntry]
    resources: list[ResourceUnit]


class SessionState:
    """Owns every piece of mutable dashboard state for one process.

    Lifecycle is explicit: ``load()`` once, then ``mutate()`` /
    ``add_project()`` / ``reset()``, each of which persists before returning.
    """

    def __init__(
        self,
        store: StorageBackend,
        event_bus: EventBus,
        config: Config | None = None,
    ) -> None:
        self._store = store
        self._event_bus = event_bus
        self._config = config or Config()
        if self._config.progress_step < 1:
            raise ValueError(f"Progress step must be positive, got {self._config.progress_step}")
        self._thresholds = self._config.phase_thresholds()
        self._projects: list[Project] = []
        self._log = ActivityLog(capacity=self._config.log_capacity)
        self._board = ResourceBoard(seed_resources())
        self._loaded = False

    @property
    def users(self) -> tuple[User, ...]:
        return USERS

    def find_user(self, key: str) -> User | None:
        """Look up a roster user by id or display name."""
        for user in USERS:
            if key in (user.id, user.name):
                return user
        return None

    # --- Lifecycle ---

    async def load(self) -> Snapshot:
        """Read persisted state, falling back to seed data.

        Absent or unreadable projects fall back to the seed set; an absent or
        unreadable log starts empty. The bootstrap entry is added whenever the
        log would otherwise be empty.
        """
        projects = await self._read(PROJECTS_KEY, _PROJECTS)
        if projects is None:
            projects = seed_projects()
        entries = await self._read(LOGS_KEY, _ENTRIES) or []

        self._projects = projects
        self._log = ActivityLog(entries, capacity=self._config.log_capacity)
        self._board = ResourceBoard(seed_resources())
        self._loaded = True

        if self._log.ensure_bootstrap():
            await self.persist()

        logger.info(
            "Loaded session: %d projects, %d log entries", len(self._projects), len(self._log)
        )
        await self._event_bus.emit(
            EventType.STATE_LOADED,
            {"projects": len(self._projects), "logs": len(self._log)},
        )
        return self.snapshot()

    async def persist(self) -> None:
        """Write projects and log to the store."""
        await self._store.set_raw(PROJECTS_KEY, _dump([p.to_storage() for p in self._projects]))
        await self._store.set_raw(LOGS_KEY, _dump([e.to_storage() for e in self._log]))

    def snapshot(self) -> Snapshot:
        return Snapshot(
            projects=[p.model_copy(deep=True) for p in self._projects],
            logs=self._log.entries,
            resources=self._board.units,
        )

    def get_project(self, project_id: str) -> Project | None:
        index = self._index_of(project_id)
        return self._projects[index] if index is not None else None

    # --- Mutations ---

    async def mutate(self, command: PendingUpdate, user: User) -> Project | None:
        """Commit one confirmed command.

        Args:
            command: Command to apply
            user: Acting user recorded in the log

        Returns:
            The updated project, or None if no project has the command's id
        """
        self._require_loaded()
        index = self._index_of(command.project_id)
        if index is None:
            logger.info("Ignoring %s for unknown project %s", command.kind, command.project_id)
            return None

        transition = apply_command(
            self._projects[index],
            command,
            user,
            self._thresholds,
            step=self._config.progress_step,
        )
        self._projects[index] = transition.project
        self._log.prepend(transition.entry)
        if transition.resource_update:
            self._board.apply(transition.resource_update)

        if isinstance(command, ReportShortage):
            logger.warning(
                "Material shortage reported for %s by %s", transition.project.name, user.name
            )
        else:
            logger.info(
                "%s: %s (by %s)", transition.project.name, transition.entry.action, user.name
            )

        await self._save()
        await self._emit_commit(transition.project, transition.entry, command)
        return transition.project

    async def add_project(
        self,
        *,
        name: str,
        next_step: str | None = None,
        support_needed: list[str] | None = None,
        responsible_team: list[str] | None = None,
    ) -> Project:
        """Register a new project at the start of the lifecycle.

        Raises:
            ValueError: If name is empty or whitespace-only
        """
        self._require_loaded()
        if not name or not name.strip():
            raise ValueError("Project name cannot be empty")

        now = datetime.now(UTC)
        project = Project(
            name=name.strip(),
            next_step=(next_step or "").strip() or DEFAULT_NEXT_STEP,
            support_needed=_clean_list(support_needed),
            responsible_team=_clean_list(responsible_team) or [DEFAULT_TEAM],
            last_updated=now.isoformat(),
        )
        self._projects.append(project)
        entry = ActivityEntry(
            project_id=project.id,
            project_name=project.name,
            user_name=ADMIN_USER_NAME,
            action="new project registered",
            timestamp=now,
        )
        self._log.prepend(entry)
        logger.info("Created project: %s (id=%s)", project.name, project.id)

        await self._save()
        await self._event_bus.emit(
            EventType.PROJECT_CREATED,
            {"project_id": project.id, "name": project.name},
        )
        await self._event_bus.emit(EventType.ACTIVITY_LOGGED, {"entry_id": entry.id})
        return project

    async def reset(self, *, confirm: bool = False) -> bool:
        """Wipe persisted state and reload the seed data.

        Returns:
            True if the reset ran, False if it was aborted for lack of confirmation
        """
        if not confirm:
            logger.info("Reset aborted: not confirmed")
            return False

        removed = await self._store.clear()
        logger.warning("Reset all data (%d stored keys removed)", removed)
        await self._event_bus.emit(EventType.STATE_RESET, {"removed": removed})
        await self.load()
        return True

    # --- Internals ---

    async def _read(self, key: str, adapter: TypeAdapter):
        try:
            raw = await self._store.get_raw(key)
            if raw is None:
                return None
            return adapter.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, aiosqlite.Error) as e:
            logger.warning("Discarding unreadable %s data: %s", key, e)
            return None

    async def _save(self) -> None:
        """Persist after a commit; a failed write is logged and retried by the next one."""
        try:
            await self.persist()
        except aiosqlite.Error as e:
            logger.error("Failed to persist session state: %s", e)

    async def _emit_commit(
        self, project: Project, entry: ActivityEntry, command: PendingUpdate
    ) -> None:
        await self._event_bus.emit(
            EventType.PROJECT_UPDATED,
            {"project_id": project.id, "command": command.kind},
        )
        if isinstance(command, ReportShortage):
            await self._event_bus.emit(
                EventType.SHORTAGE_REPORTED,
                {"project_id": project.id, "name": project.name},
            )
        await self._event_bus.emit(EventType.ACTIVITY_LOGGED, {"entry_id": entry.id})

    def _index_of(self, project_id: str) -> int | None:
        for i, project in enumerate(self._projects):
            if project.id == project_id:
                return i
        return None

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError("Session not loaded. Call load() first.")


def _dump(items: list[dict]) -> str:
    return json.dumps(items, ensure_ascii=False)


def _clean_list(values: list[str] | None) -> list[str]:
    return [v.strip() for v in values or [] if v and v.strip()]

"""Confirmation gate: a command only commits once someone signs for it."""

from __future__ import annotations

import logging

from sitedesk.core.session import SessionState
from sitedesk.models.commands import PendingUpdate
from sitedesk.models.project import Project
from sitedesk.models.user import User

logger = logging.getLogger(__name__)


class ConfirmationGate:
    """Holds at most one pending command until a user confirms or cancels it.

    Issuing a new command while one is pending replaces it.
    """

    def __init__(self, session: SessionState) -> None:
        self._session = session
        self._pending: PendingUpdate | None = None

    @property
    def pending(self) -> PendingUpdate | None:
        return self._pending

    def issue(self, command: PendingUpdate) -> None:
        if self._pending is not None:
            logger.debug("Replacing pending %s with %s", self._pending.kind, command.kind)
        self._pending = command

    def cancel(self) -> PendingUpdate | None:
        """Discard the pending command, returning it if there was one."""
        discarded, self._pending = self._pending, None
        return discarded

    async def confirm(self, user: User) -> Project | None:
        """Commit the pending command as user.

        Returns:
            The updated project, or None when nothing was pending or the
            target project no longer exists
        """
        command = self._pending
        if command is None:
            return None
        self._pending = None
        return await self._session.mutate(command, user)

"""Resource board: the fixed set of logistics categories."""

from __future__ import annotations

from collections.abc import Iterable

from sitedesk.core.machine import ResourceUpdate
from sitedesk.models.resource import ResourceUnit


class ResourceBoard:
    def __init__(self, units: Iterable[ResourceUnit]) -> None:
        self._units: dict[str, ResourceUnit] = {u.id: u for u in units}

    @property
    def units(self) -> list[ResourceUnit]:
        return list(self._units.values())

    def get(self, unit_id: str) -> ResourceUnit | None:
        return self._units.get(unit_id)

    def apply(self, update: ResourceUpdate) -> ResourceUnit | None:
        """Overwrite a unit's status and message. Unknown units are ignored."""
        unit = self._units.get(update.unit_id)
        if unit is None:
            return None
        updated = unit.model_copy(update={"status": update.status, "message": update.message})
        self._units[update.unit_id] = updated
        return updated

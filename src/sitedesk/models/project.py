"""Project model and its phase/health/status vocabularies."""

from __future__ import annotations

import uuid
from enum import StrEnum

from pydantic import BaseModel, Field


class Phase(StrEnum):
    SITE_SURVEY = "site_survey"
    MATERIAL_PREP = "material_prep"
    INSTALLATION = "installation"
    ACCEPTANCE_TESTING = "acceptance_testing"
    COMPLETED = "completed"


# Lifecycle order, earliest first
PHASES: tuple[Phase, ...] = tuple(Phase)


class Health(StrEnum):
    NORMAL = "normal"
    MISSING_MATERIAL = "missing_material"
    BLOCKED = "blocked"


class ProjectStatus(StrEnum):
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"


DEFAULT_TEAM = "Unassigned"
DEFAULT_NEXT_STEP = "Initial site survey and drawing review"


class Project(BaseModel):
    """A construction project tracked on the dashboard."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    name: str = Field(min_length=1)
    progress: int = Field(default=0, ge=0, le=100)
    current_phase: Phase = Phase.SITE_SURVEY
    next_step: str = DEFAULT_NEXT_STEP
    support_needed: list[str] = Field(default_factory=list)
    responsible_team: list[str] = Field(default_factory=lambda: [DEFAULT_TEAM], min_length=1)
    status: ProjectStatus = ProjectStatus.ACTIVE
    health: Health = Health.NORMAL
    last_updated: str | None = None

    def to_storage(self) -> dict:
        return self.model_dump(mode="json")

    def to_response(self, *, detail: str = "summary") -> dict:
        data = {
            "_v": "1.0",
            "id": self.id,
            "name": self.name,
            "progress": self.progress,
            "phase": self.current_phase.value,
            "health": self.health.value,
        }
        if detail != "summary":
            data.update(
                {
                    "next_step": self.next_step,
                    "support_needed": self.support_needed,
                    "responsible_team": self.responsible_team,
                    "status": self.status.value,
                    "last_updated": self.last_updated,
                }
            )
        return data

"""Operator commands, one variant per kind.

A pending update is exactly one of these; only ``SetPhase`` carries a payload.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from sitedesk.models.project import Phase


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: str


class AdvanceProgress(_Command):
    kind: Literal["advance-progress"] = "advance-progress"


class ReportShortage(_Command):
    kind: Literal["report-shortage"] = "report-shortage"


class SetPhase(_Command):
    kind: Literal["set-phase"] = "set-phase"
    target_phase: Phase


PendingUpdate = Annotated[
    AdvanceProgress | ReportShortage | SetPhase,
    Field(discriminator="kind"),
]

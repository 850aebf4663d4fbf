"""Phase/progress state machine.

Each committed command turns one project into its next state and produces
exactly one activity entry. Shortage reports additionally update the
procurement unit on the resource board. Nothing here touches storage or the
event bus; the session applies the returned ``Transition``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from sitedesk.core.phases import MAX_PROGRESS, PhaseThresholds
from sitedesk.models.activity import ActivityEntry
from sitedesk.models.commands import AdvanceProgress, PendingUpdate, ReportShortage, SetPhase
from sitedesk.models.project import PHASES, Health, Phase, Project
from sitedesk.models.resource import PROCUREMENT_UNIT_ID, ResourceStatus
from sitedesk.models.user import User

DEFAULT_STEP = 10


@dataclass(frozen=True)
class ResourceUpdate:
    unit_id: str
    status: ResourceStatus
    message: str


# updates, log action, urgent flag, resource side effect
_Outcome = tuple[dict, str, bool, ResourceUpdate | None]


@dataclass(frozen=True)
class Transition:
    """Result of applying one command."""

    project: Project
    entry: ActivityEntry
    resource_update: ResourceUpdate | None = None


def apply_command(
    project: Project,
    command: PendingUpdate,
    user: User,
    thresholds: PhaseThresholds,
    *,
    step: int = DEFAULT_STEP,
    now: datetime | None = None,
) -> Transition:
    """Apply command to project on behalf of user.

    Args:
        project: Current project state (left untouched)
        command: The confirmed command; its project_id must match project
        user: Acting user recorded in the log entry
        thresholds: Phase threshold table used to reconcile progress and phase
        step: Progress increment for AdvanceProgress
        now: Commit time, defaults to the current UTC time

    Returns:
        Transition with the new project state and its log entry
    """
    if command.project_id != project.id:
        raise ValueError(f"Command targets {command.project_id}, not {project.id}")
    if step < 1:
        raise ValueError(f"Progress step must be positive, got {step}")

    now = now or datetime.now(UTC)

    if isinstance(command, AdvanceProgress):
        updates, action, urgent, resource = _advance(project, thresholds, step)
    elif isinstance(command, ReportShortage):
        updates, action, urgent, resource = _shortage(project)
    elif isinstance(command, SetPhase):
        updates, action, urgent, resource = _set_phase(project, command.target_phase, thresholds)
    else:
        raise TypeError(f"Unknown command: {command!r}")

    updates["last_updated"] = now.isoformat()
    next_project = project.model_copy(update=updates)
    entry = ActivityEntry(
        project_id=project.id,
        project_name=project.name,
        user_name=user.name,
        action=action,
        urgent=urgent,
        timestamp=now,
    )
    return Transition(project=next_project, entry=entry, resource_update=resource)


def _advance(project: Project, thresholds: PhaseThresholds, step: int) -> _Outcome:
    progress = min(project.progress + step, MAX_PROGRESS)
    phase = thresholds.phase_for(progress)
    updates: dict = {"progress": progress, "current_phase": phase}
    if progress == MAX_PROGRESS:
        updates["health"] = Health.NORMAL
    return updates, f"progress advanced to {progress}% ({phase.value})", False, None


def _shortage(project: Project) -> _Outcome:
    resource = ResourceUpdate(
        unit_id=PROCUREMENT_UNIT_ID,
        status=ResourceStatus.URGENT,
        message=f"{project.name} is short of material",
    )
    return {"health": Health.MISSING_MATERIAL}, "material shortage reported", True, resource


def _set_phase(project: Project, target: Phase, thresholds: PhaseThresholds) -> _Outcome:
    progress = reconcile_progress(project.progress, target, thresholds)
    updates: dict = {"current_phase": target, "progress": progress}
    if target == Phase.COMPLETED:
        updates["health"] = Health.NORMAL
    return updates, f"phase switched to {target.value}", False, None


def reconcile_progress(progress: int, target: Phase, thresholds: PhaseThresholds) -> int:
    """Progress value that goes with a manual jump to target.

    Jumping to the first phase always resets progress to 0, even if progress
    is already inside the survey band. Otherwise progress is pulled into the
    target's band: raised to its minimum when below, lowered to its minimum
    when it has reached the next phase.
    """
    if target == PHASES[0]:
        return 0
    if target == Phase.COMPLETED:
        return MAX_PROGRESS

    floor = thresholds.minimum(target)
    ceiling = thresholds.next_minimum(target)
    if progress < floor:
        return floor
    if ceiling is not None and progress >= ceiling:
        return floor
    return progress

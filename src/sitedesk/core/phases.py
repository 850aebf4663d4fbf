"""Progress thresholds that tie each phase to a band of progress values."""

from __future__ import annotations

from dataclasses import dataclass

from sitedesk.models.project import PHASES, Phase

MAX_PROGRESS = 100

DEFAULT_MATERIAL_PREP = 20
DEFAULT_INSTALLATION = 50
DEFAULT_ACCEPTANCE_TESTING = 80


@dataclass(frozen=True)
class PhaseThresholds:
    """Minimum progress of each phase.

    Site survey always starts at 0 and completion is always 100; the three
    phases in between are configurable but must be strictly ascending.
    """

    material_prep: int = DEFAULT_MATERIAL_PREP
    installation: int = DEFAULT_INSTALLATION
    acceptance_testing: int = DEFAULT_ACCEPTANCE_TESTING

    def __post_init__(self) -> None:
        bounds = [0, self.material_prep, self.installation, self.acceptance_testing, MAX_PROGRESS]
        if any(lower >= upper for lower, upper in zip(bounds, bounds[1:])):
            raise ValueError(
                "Phase thresholds must be strictly ascending within (0, 100): "
                f"{self.material_prep}, {self.installation}, {self.acceptance_testing}"
            )

    def minimum(self, phase: Phase) -> int:
        """Lowest progress value that belongs to phase."""
        return {
            Phase.SITE_SURVEY: 0,
            Phase.MATERIAL_PREP: self.material_prep,
            Phase.INSTALLATION: self.installation,
            Phase.ACCEPTANCE_TESTING: self.acceptance_testing,
            Phase.COMPLETED: MAX_PROGRESS,
        }[phase]

    def phase_for(self, progress: int) -> Phase:
        """Phase implied by a progress value (highest threshold reached)."""
        for phase in reversed(PHASES):
            if progress >= self.minimum(phase):
                return phase
        return Phase.SITE_SURVEY

    def next_minimum(self, phase: Phase) -> int | None:
        """Minimum of the phase after this one, None for the last phase."""
        idx = PHASES.index(phase)
        if idx + 1 >= len(PHASES):
            return None
        return self.minimum(PHASES[idx + 1])

"""sitedesk configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from sitedesk.core.phases import PhaseThresholds


@dataclass
class Config:
    """sitedesk configuration."""

    workspace_path: Path = field(default_factory=lambda: Path.home() / ".sitedesk")
    log_level: str = "INFO"
    wal_mode: bool = True

    # Activity log
    log_capacity: int = 50

    # Progress policy: step per advance and minimum progress of each phase
    progress_step: int = 10
    threshold_material_prep: int = 20
    threshold_installation: int = 50
    threshold_acceptance_testing: int = 80

    # Advisory service (Gemini)
    advisory_model: str = "gemini-3-flash-preview"
    briefing_max_tokens: int = 300
    summary_max_tokens: int = 500
    briefing_log_window: int = 5

    @classmethod
    def load(cls, workspace_path: Path | None = None) -> Config:
        """Load config from YAML file, env vars, then defaults."""
        config = cls()

        if workspace_path:
            config.workspace_path = workspace_path

        env_path = os.environ.get("SITEDESK_WORKSPACE")
        if env_path:
            config.workspace_path = Path(env_path)

        env_log = os.environ.get("SITEDESK_LOG_LEVEL")
        if env_log:
            config.log_level = env_log

        config_file = config.workspace_path / "config.yaml"
        if config_file.exists():
            with open(config_file) as f:
                data = yaml.safe_load(f) or {}
            for key, value in data.items():
                if hasattr(config, key):
                    expected_type = type(getattr(config, key))
                    if expected_type is Path:
                        setattr(config, key, Path(value))
                    else:
                        setattr(config, key, expected_type(value))

        return config

    @property
    def db_path(self) -> Path:
        return self.workspace_path / "sitedesk.db"

    @property
    def api_key(self) -> str | None:
        return os.environ.get("GEMINI_API_KEY")

    def save(self) -> None:
        """Save current config to YAML."""
        self.workspace_path.mkdir(parents=True, exist_ok=True)
        config_file = self.workspace_path / "config.yaml"
        data = {
            "log_level": self.log_level,
            "wal_mode": self.wal_mode,
            "log_capacity": self.log_capacity,
            "progress_step": self.progress_step,
            "threshold_material_prep": self.threshold_material_prep,
            "threshold_installation": self.threshold_installation,
            "threshold_acceptance_testing": self.threshold_acceptance_testing,
            "advisory_model": self.advisory_model,
            "briefing_max_tokens": self.briefing_max_tokens,
            "summary_max_tokens": self.summary_max_tokens,
            "briefing_log_window": self.briefing_log_window,
        }
        with open(config_file, "w") as f:
            yaml.dump(data, f, default_flow_style=False)

    def phase_thresholds(self) -> PhaseThresholds:
        """Build the phase threshold table from the configured boundaries."""
        from sitedesk.core.phases import PhaseThresholds

        return PhaseThresholds(
            material_prep=self.threshold_material_prep,
            installation=self.threshold_installation,
            acceptance_testing=self.threshold_acceptance_testing,
        )

"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from sitedesk.config import Config
from sitedesk.core.phases import PhaseThresholds


def test_defaults(tmp_path: Path):
    config = Config(workspace_path=tmp_path)
    assert config.log_capacity == 50
    assert config.progress_step == 10
    assert config.phase_thresholds() == PhaseThresholds(20, 50, 80)
    assert config.db_path == tmp_path / "sitedesk.db"


def test_load_yaml(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("SITEDESK_WORKSPACE", raising=False)
    monkeypatch.delenv("SITEDESK_LOG_LEVEL", raising=False)
    (tmp_path / "config.yaml").write_text(
        yaml.dump({"threshold_material_prep": 25, "threshold_acceptance_testing": 75, "bogus": 1})
    )
    config = Config.load(tmp_path)
    assert config.threshold_material_prep == 25
    assert config.threshold_acceptance_testing == 75
    assert config.phase_thresholds().phase_for(75).value == "acceptance_testing"
    assert not hasattr(config, "bogus")


def test_env_overrides(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SITEDESK_WORKSPACE", str(tmp_path / "elsewhere"))
    monkeypatch.setenv("SITEDESK_LOG_LEVEL", "DEBUG")
    config = Config.load(tmp_path)
    assert config.workspace_path == tmp_path / "elsewhere"
    assert config.log_level == "DEBUG"


def test_save_round_trip(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("SITEDESK_WORKSPACE", raising=False)
    Config(workspace_path=tmp_path, log_capacity=40, progress_step=5).save()
    loaded = Config.load(tmp_path)
    assert loaded.log_capacity == 40
    assert loaded.progress_step == 5


def test_api_key_from_env(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k-123")
    assert Config().api_key == "k-123"


def test_invalid_thresholds(tmp_path: Path):
    config = Config(workspace_path=tmp_path, threshold_installation=10)
    with pytest.raises(ValueError):
        config.phase_thresholds()

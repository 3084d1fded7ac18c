"""Tests for settings resolution."""

import tempfile
from pathlib import Path

import pytest
import yaml

from provreg.config import load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("PROVREG_HOME", "PROVREG_STATE_DIR", "PROVREG_LOG_LEVEL", "PROVREG_CALLER"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_under_home(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("PROVREG_HOME", tmpdir)
        settings = load_settings()
        assert settings.home == Path(tmpdir)
        assert settings.state_dir == Path(tmpdir) / "state"
        assert settings.log_level == "WARNING"
        assert settings.default_caller == ""


def test_yaml_file(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("PROVREG_HOME", tmpdir)
        config = Path(tmpdir) / "config.yaml"
        with open(config, "w") as f:
            yaml.dump({"state_dir": str(Path(tmpdir) / "elsewhere"), "log_level": "debug", "caller": "0xabc"}, f)

        settings = load_settings()
        assert settings.state_dir == Path(tmpdir) / "elsewhere"
        assert settings.log_level == "DEBUG"
        assert settings.default_caller == "0xabc"


def test_environment_overrides_file(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        config = Path(tmpdir) / "custom.yaml"
        with open(config, "w") as f:
            yaml.dump({"log_level": "debug"}, f)
        monkeypatch.setenv("PROVREG_HOME", tmpdir)
        monkeypatch.setenv("PROVREG_LOG_LEVEL", "error")
        monkeypatch.setenv("PROVREG_STATE_DIR", str(Path(tmpdir) / "env-state"))

        settings = load_settings(config)
        assert settings.log_level == "ERROR"
        assert settings.state_dir == Path(tmpdir) / "env-state"


def test_non_mapping_config_rejected(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        config = Path(tmpdir) / "bad.yaml"
        config.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_settings(config)

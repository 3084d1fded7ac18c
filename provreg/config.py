"""Settings for the command-line tools.

Values come from (lowest to highest precedence) built-in defaults, an
optional YAML file at ``~/.provreg/config.yaml``, and environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

ENV_HOME = "PROVREG_HOME"
ENV_STATE_DIR = "PROVREG_STATE_DIR"
ENV_LOG_LEVEL = "PROVREG_LOG_LEVEL"
ENV_CALLER = "PROVREG_CALLER"


@dataclass
class Settings:
    """Resolved settings."""

    home: Path
    state_dir: Path
    log_level: str = "WARNING"
    default_caller: str = ""


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Load settings from *path* (or the default config file) and the environment."""
    home = Path(os.environ.get(ENV_HOME) or Path.home() / ".provreg")
    config_path = Path(path) if path else home / "config.yaml"

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            loaded = yaml.safe_load(f)
        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")
        data = loaded or {}

    state_dir = os.environ.get(ENV_STATE_DIR) or data.get("state_dir") or home / "state"
    return Settings(
        home=home,
        state_dir=Path(state_dir).expanduser(),
        log_level=(os.environ.get(ENV_LOG_LEVEL) or data.get("log_level") or "WARNING").upper(),
        default_caller=os.environ.get(ENV_CALLER) or data.get("caller", ""),
    )

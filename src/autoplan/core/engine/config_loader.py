"""
YAML → AutoplanConfig loader.

Loads engine settings from autoplan.yaml (bundled with the package) and
optionally merges user overrides from ~/.autoplan/autoplan.yaml.

Usage:
    from autoplan.core.engine.config_loader import load_config
    cfg = load_config()
    cfg.exercise_count_for("Core")   # 8 unless overridden

A bundled file that cannot be parsed raises; a broken user override is
logged and ignored so a typo there never blocks the daily run.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..config import AutoplanConfig, build_config

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; non-mapping documents read as {}."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path:
    """Return the path to the bundled autoplan.yaml."""
    ref = importlib.resources.files("autoplan").joinpath("autoplan.yaml")
    with importlib.resources.as_file(ref) as p:
        return Path(p)


def get_state_dir() -> Path:
    """Return the state directory (AUTOPLAN_STATE_DIR or ~/.autoplan)."""
    override = os.environ.get("AUTOPLAN_STATE_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".autoplan"


def get_user_yaml_path() -> Path | None:
    """Return <state dir>/autoplan.yaml if it exists, else None."""
    p = get_state_dir() / "autoplan.yaml"
    return p if p.exists() else None


def load_model_config(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge raw configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/autoplan/autoplan.yaml
    2. User override (explicit *user_path*, else <state dir>/autoplan.yaml)

    Returns:
        Merged dict of config sections
    """
    config = _load_yaml_file(get_bundled_yaml_path())

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None:
        try:
            user_cfg = _load_yaml_file(user)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable config override %s: %s", user, e)
            user_cfg = {}
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def load_config(user_path: Path | None = None) -> AutoplanConfig:
    """Load the merged YAML configuration as an AutoplanConfig."""
    return build_config(load_model_config(user_path))

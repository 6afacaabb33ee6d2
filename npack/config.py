"""
Configuration management for npack.

Settings come from NPACK_* environment variables, optionally layered over a
YAML file named by NPACK_CONFIG.
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic_settings import BaseSettings

from npack import __version__
from npack.manifest import HOOK_STAGES


class NpackSettings(BaseSettings):
    """Engine settings."""

    # Version the host reports to package compatibility checks
    host_version: str = __version__

    # Workspace pointer
    pointer_name: str = "current"
    pointer_mode: Literal["symlink", "marker"] = "symlink"

    # Hooks
    shell: str | None = None
    disabled_hooks: list[str] = []

    # Remote archives
    download_timeout: float = 60.0

    model_config = {"env_prefix": "NPACK_"}


def load_config(path: Path) -> dict[str, Any]:
    """
    Load configuration values from a YAML file.

    Returns:
        Configuration dictionary
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    return config


def get_settings() -> NpackSettings:
    """
    Build settings from the environment (and NPACK_CONFIG file, if set).

    A new instance is built on every call so changes to the environment
    are picked up between operations.
    """
    config_path = os.environ.get("NPACK_CONFIG")
    file_values = load_config(Path(config_path)) if config_path else {}

    # Environment variables win over file values
    env_keys = {
        name
        for name in NpackSettings.model_fields
        if f"NPACK_{name.upper()}" in os.environ
    }
    settings = NpackSettings(**{k: v for k, v in file_values.items() if k not in env_keys})

    unknown = set(settings.disabled_hooks) - set(HOOK_STAGES)
    if unknown:
        raise ValueError(f"Unknown hook stage(s) in disabled_hooks: {', '.join(sorted(unknown))}")

    return settings

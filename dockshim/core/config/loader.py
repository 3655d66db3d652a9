"""
Configuration loader — reads dockshim.yml into a Settings model.

The file is optional. Lookup walks upward from the working directory so
commands can be run from subdirectories. Environment variables override
the file; the CLI overrides both.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from dockshim.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "dockshim.yml"

# Environment variable → Settings field
ENV_OVERRIDES = {
    "DOCKSHIM_CONTAINER_PATH": "container_path",
    "DOCKSHIM_COMPOSE_FILE": "compose_file",
    "DOCKSHIM_COMPOSE_PROJECT": "compose_project",
}


class ConfigError(Exception):
    """Raised when configuration is unreadable or invalid."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for dockshim.yml starting from *start_dir* (default: cwd), walking up.

    Returns:
        Path to dockshim.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_file(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Settings may sit at top level or under a "dockshim" key
    nested = data.get("dockshim")
    if isinstance(nested, dict):
        return dict(nested)
    return data


def load_settings(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    search: bool = True,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to dockshim.yml. If None and *search* is set,
            searches upward from the working directory.
        environ: Environment to read overrides from (default: os.environ).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None and search:
        path = find_config_file()

    data = _read_file(path) if path is not None else {}

    env = os.environ if environ is None else environ
    for var, field in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field] = value

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Backend executable: %s", settings.container_path)
    return settings

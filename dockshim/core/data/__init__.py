"""
Static catalogs shipped with the package.

Loads JSON catalogs from ``dockshim/core/data/catalogs/`` once, on first
access, and caches them for the process lifetime.

Usage::

    from dockshim.core.data import get_registry

    sections = get_registry().docker_commands   # list[CommandSection]
"""

from __future__ import annotations

import json
import logging
from functools import cached_property
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent


class CatalogCommand(BaseModel):
    """One Docker-style command with a usage example."""

    name: str
    summary: str
    example: str

    @property
    def command_line(self) -> str:
        """The example as a full command line (``docker <example>``)."""
        return f"docker {self.example}"


class CommandSection(BaseModel):
    """A titled group of catalog commands."""

    title: str
    commands: list[CatalogCommand] = Field(default_factory=list)


def _load_json(relative_path: str) -> list | dict:
    """Load a JSON file relative to the data directory."""
    path = _DATA_DIR / relative_path
    if not path.exists():
        logger.warning("Data file not found: %s", path)
        return []
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class DataRegistry:
    """Lazily loaded, cached catalogs. One instance per process."""

    @cached_property
    def docker_commands(self) -> list[CommandSection]:
        """Docker command catalog grouped into sections (Common, Runtime, …)."""
        data = _load_json("catalogs/docker_commands.json")
        sections = [CommandSection.model_validate(item) for item in data]
        logger.debug(
            "Loaded %d catalog commands in %d sections",
            sum(len(s.commands) for s in sections),
            len(sections),
        )
        return sections

    def find_command(self, name: str) -> CatalogCommand | None:
        """Look up a catalog command by name (case-insensitive)."""
        wanted = name.lower()
        for section in self.docker_commands:
            for command in section.commands:
                if command.name == wanted:
                    return command
        return None


# ── Module-level singleton ───────────────────────────────────────

_registry: DataRegistry | None = None


def get_registry() -> DataRegistry:
    """Return the process-level DataRegistry singleton."""
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = DataRegistry()
    return _registry

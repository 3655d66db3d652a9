"""Compose helpers — argument building and compose file discovery."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

# Checked in this order.
_COMPOSE_FILENAMES = (
    "compose.yaml",
    "compose.yml",
    "docker-compose.yaml",
    "docker-compose.yml",
)


def compose_arguments(
    compose_file: str,
    project_name: str,
    subcommand: Sequence[str],
) -> list[str]:
    """``compose [-f FILE] [-p PROJECT] <subcommand...>``.

    Blank (or whitespace-only) file and project values are omitted.
    """
    args = ["compose"]
    file = (compose_file or "").strip()
    project = (project_name or "").strip()
    if file:
        args += ["-f", file]
    if project:
        args += ["-p", project]
    args += list(subcommand)
    return args


def find_compose_file(project_root: Path) -> Path | None:
    """Return the first compose file found in *project_root*, or None."""
    for name in _COMPOSE_FILENAMES:
        path = project_root / name
        if path.is_file():
            return path
    return None

"""
Settings model — how to reach the backend CLI.

Loaded from dockshim.yml (optional), then environment variables, then
CLI flags. Everything has a default, so an empty file or no file at all
is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Runtime configuration for the engine and the CLI."""

    container_path: str = "container"       # executable name or path
    search_dirs: list[str] = Field(default_factory=list)  # extra dirs after the built-ins
    compose_file: str = ""                  # blank = auto-detect in cwd
    compose_project: str = ""
    log_max_lines: int = Field(default=5000, ge=1)

"""
Shared plumbing for CLI commands — settings, engine and error exits.

Settings and the engine are built lazily on first use so ``--help`` works
even when dockshim.yml is broken.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

import click

from dockshim.core.config.loader import ConfigError, load_settings
from dockshim.core.models.execution import OutputLine
from dockshim.core.models.settings import Settings
from dockshim.core.services.command_line import CommandLineError
from dockshim.core.services.engine import ContainerEngine
from dockshim.core.services.process_runner import ProcessRunnerError
from dockshim.core.services.transcript import tail_lines


def fail(message: object) -> NoReturn:
    click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


@contextmanager
def backend_errors() -> Iterator[None]:
    """Turn backend and command-line errors into a red message and exit 1."""
    try:
        yield
    except (ProcessRunnerError, CommandLineError) as e:
        fail(e)


def get_settings(ctx: click.Context) -> Settings:
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        config_path: Path | None = obj.get("config_path")
        try:
            settings = load_settings(config_path)
        except ConfigError as e:
            fail(e)
        if obj.get("container_path"):
            settings = settings.model_copy(update={"container_path": obj["container_path"]})
        obj["settings"] = settings
    return obj["settings"]


def get_engine(ctx: click.Context) -> ContainerEngine:
    obj = ctx.ensure_object(dict)
    if "engine" not in obj:
        obj["engine"] = ContainerEngine.from_settings(get_settings(ctx))
    return obj["engine"]


def echo_lines(lines: Iterable[OutputLine]) -> None:
    for item in lines:
        click.echo(item.line, err=item.source == "stderr")


def echo_stream(stream, max_lines: int | None = None) -> None:
    """Print a line stream until it ends.

    With *max_lines* only the last lines are printed, once the stream is
    finished. Ctrl-C cancels the backend process.
    """
    with backend_errors(), stream:
        if max_lines is None:
            echo_lines(stream)
        else:
            echo_lines(tail_lines(stream, max_lines))

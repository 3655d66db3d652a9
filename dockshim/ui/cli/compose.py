"""
CLI commands for Compose — up, down, pull, build, ps, logs.

The compose file is taken from ``--file``, then dockshim.yml, then the
first compose file found in the working directory.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from dockshim.core.models.execution import ExecutionResult
from dockshim.core.services.compose import find_compose_file
from dockshim.ui.cli.common import backend_errors, echo_stream, get_engine, get_settings


def _compose_options(ctx: click.Context) -> dict:
    settings = get_settings(ctx)
    opts = ctx.obj.get("compose", {})

    compose_file = opts.get("file") or settings.compose_file
    if not compose_file:
        found = find_compose_file(Path.cwd())
        compose_file = str(found) if found else ""

    return {
        "compose_file": compose_file,
        "project_name": opts.get("project") or settings.compose_project,
    }


def _finish(result: ExecutionResult, as_json: bool = False) -> None:
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        if result.stdout.strip():
            click.echo(result.stdout.rstrip())
        if result.stderr.strip():
            click.echo(result.stderr.rstrip(), err=True)
    if not result.ok:
        sys.exit(1)


@click.group()
@click.option("--file", "-f", "compose_file", default=None, help="Compose file to use.")
@click.option("--project-name", "-p", default=None, help="Compose project name.")
@click.pass_context
def compose(ctx: click.Context, compose_file: str | None, project_name: str | None) -> None:
    """Compose — up, down, pull, build, ps, logs."""
    ctx.ensure_object(dict)
    ctx.obj["compose"] = {"file": compose_file, "project": project_name}


@compose.command("up")
@click.option("--attach", is_flag=True, help="Stay attached instead of running detached.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def compose_up(ctx: click.Context, attach: bool, as_json: bool) -> None:
    """Create and start the project's services."""
    with backend_errors():
        result = get_engine(ctx).compose_up(detached=not attach, **_compose_options(ctx))
    _finish(result, as_json)


@compose.command("down")
@click.option("--volumes", is_flag=True, help="Also remove named volumes.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def compose_down(ctx: click.Context, volumes: bool, as_json: bool) -> None:
    """Stop and remove the project's services."""
    with backend_errors():
        result = get_engine(ctx).compose_down(remove_volumes=volumes, **_compose_options(ctx))
    _finish(result, as_json)


@compose.command("pull")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def compose_pull(ctx: click.Context, as_json: bool) -> None:
    """Pull service images."""
    with backend_errors():
        result = get_engine(ctx).compose_pull(**_compose_options(ctx))
    _finish(result, as_json)


@compose.command("build")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def compose_build(ctx: click.Context, as_json: bool) -> None:
    """Build service images."""
    with backend_errors():
        result = get_engine(ctx).compose_build(**_compose_options(ctx))
    _finish(result, as_json)


@compose.command("ps")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def compose_ps(ctx: click.Context, as_json: bool) -> None:
    """List the project's containers."""
    with backend_errors():
        result = get_engine(ctx).compose_ps(**_compose_options(ctx))
    _finish(result, as_json)


@compose.command("logs")
@click.argument("service", required=False, default="")
@click.option("--no-follow", is_flag=True, help="Print current logs and exit.")
@click.option("--tail", type=click.IntRange(min=1), default=None, help="With --no-follow, only the last N lines.")
@click.pass_context
def compose_logs(ctx: click.Context, service: str, no_follow: bool, tail: int | None) -> None:
    """Follow service logs (Ctrl-C to stop)."""
    engine = get_engine(ctx)
    max_lines = (tail or get_settings(ctx).log_max_lines) if no_follow else None
    stream = engine.compose_logs(service, follow=not no_follow, **_compose_options(ctx))
    echo_stream(stream, max_lines)

"""
Free-form commands — run, docker, stream, events — plus the command
catalog and the dashboard summary.

``run`` passes arguments to the backend verbatim; ``docker`` translates
Docker spellings to the backend's native ones first. Either accepts a
single quoted command line (``dockshim docker "ps --all"``) or plain
arguments after ``--``.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence

import click

from dockshim.core.data import get_registry
from dockshim.core.services.command_line import normalized_arguments, strip_program_prefix
from dockshim.core.services.transcript import render_result
from dockshim.ui.cli.common import backend_errors, echo_stream, fail, get_engine

_PASSTHROUGH = {"ignore_unknown_options": True, "allow_interspersed_args": False}


def _arguments(words: Sequence[str]) -> list[str]:
    """One word is a command line to tokenize; several are argv already.

    Argv keeps a leading ``container``: ``docker container ls`` is the
    Docker management spelling, not the backend program name.
    """
    if len(words) == 1:
        return normalized_arguments(words[0])
    return strip_program_prefix(list(words), prefixes=("docker",))


@click.command(context_settings=_PASSTHROUGH)
@click.argument("words", nargs=-1, type=click.UNPROCESSED)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(ctx: click.Context, words: tuple[str, ...], as_json: bool) -> None:
    """Run a backend command verbatim and print a transcript."""
    with backend_errors():
        arguments = _arguments(words)
        result = get_engine(ctx).run_command(arguments, check_exit_code=False)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        click.echo(render_result(result))
    if not result.ok:
        sys.exit(1)


@click.command(context_settings=_PASSTHROUGH)
@click.argument("words", nargs=-1, type=click.UNPROCESSED)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Only list the native commands that would be tried.")
@click.pass_context
def docker(ctx: click.Context, words: tuple[str, ...], as_json: bool, dry_run: bool) -> None:
    """Run a Docker-style command through its native equivalents."""
    engine = get_engine(ctx)
    with backend_errors():
        arguments = _arguments(words)
        if dry_run:
            for candidate in engine.docker_compatible_candidates(arguments):
                click.echo(f"{engine.container_path} {' '.join(candidate)}")
            return
        result = engine.run_docker_compatible(arguments, check_exit_code=False)

    if as_json:
        data = result.to_dict()
        data["requested"] = arguments
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(render_result(result, requested=arguments))
    if not result.ok:
        sys.exit(1)


@click.command(context_settings=_PASSTHROUGH)
@click.argument("words", nargs=-1, type=click.UNPROCESSED)
@click.option("--native", is_flag=True, help="Pass arguments verbatim instead of translating.")
@click.pass_context
def stream(ctx: click.Context, words: tuple[str, ...], native: bool) -> None:
    """Stream a command's output line by line (Ctrl-C to stop)."""
    engine = get_engine(ctx)
    with backend_errors():
        arguments = _arguments(words)
    if native:
        echo_stream(engine.stream_command(arguments))
    else:
        echo_stream(engine.stream_docker_compatible(arguments))


@click.command()
@click.pass_context
def events(ctx: click.Context) -> None:
    """Follow backend events (Ctrl-C to stop)."""
    echo_stream(get_engine(ctx).stream_events())


@click.command()
@click.argument("name", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def catalog(name: str | None, as_json: bool) -> None:
    """List known Docker commands with examples, or show one by NAME."""
    registry = get_registry()

    if name:
        command = registry.find_command(name)
        if command is None:
            fail(f"Unknown command: {name}")
        if as_json:
            click.echo(json.dumps(command.model_dump(), indent=2))
        else:
            click.secho(command.name, fg="cyan", bold=True)
            click.echo(f"   {command.summary}")
            click.echo(f"   $ {command.command_line}")
        return

    sections = registry.docker_commands
    if as_json:
        click.echo(json.dumps([s.model_dump() for s in sections], indent=2))
        return

    for section in sections:
        click.secho(f"📚 {section.title}", fg="cyan", bold=True)
        for command in section.commands:
            click.echo(f"   {command.name:<12} {command.summary}")
        click.echo()


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def summary(ctx: click.Context, as_json: bool) -> None:
    """Container and image counts plus builder state."""
    with backend_errors():
        data = get_engine(ctx).summary()

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.secho("🐳 Summary", fg="cyan", bold=True)
    click.echo(f"   Containers: {data['containers']['total']} ({data['containers']['running']} running)")
    click.echo(f"   Images:     {data['images']}")
    icon = "🟢" if data["builder"]["running"] else "🔴"
    click.echo(f"   Builder:    {icon} {data['builder']['message']}")

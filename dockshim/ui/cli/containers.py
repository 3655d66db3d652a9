"""
CLI commands for containers — list, lifecycle, inspect, logs.
"""

from __future__ import annotations

import json

import click

from dockshim.ui.cli.common import backend_errors, echo_stream, get_engine, get_settings


@click.group()
def containers() -> None:
    """Containers — list, start, stop, kill, rm, inspect, logs."""


@containers.command("list")
@click.option("--running", is_flag=True, help="Only show running containers.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_(ctx: click.Context, running: bool, as_json: bool) -> None:
    """List containers."""
    with backend_errors():
        items = get_engine(ctx).list_containers(all_=not running)

    if as_json:
        click.echo(json.dumps([c.model_dump(exclude={"raw"}) for c in items], indent=2))
        return

    if not items:
        click.secho("No containers found.", fg="yellow")
        return

    click.secho(f"📦 Containers ({len(items)}):", fg="cyan", bold=True)
    for c in items:
        icon = "🟢" if c.state == "running" else "🔴" if c.state == "stopped" else "⚪"
        click.echo(f"   {icon} {c.name:<30} {c.image}")
        click.echo(f"      Status: {c.status or '-'}  Ports: {c.ports or '-'}")
    click.echo()


def _lifecycle(verb: str, past: str):
    @containers.command(verb, help=f"{verb.capitalize()} a container.")
    @click.argument("container_id")
    @click.pass_context
    def command(ctx: click.Context, container_id: str) -> None:
        engine = get_engine(ctx)
        action = getattr(engine, f"{verb}_container")
        with backend_errors():
            action(container_id)
        click.secho(f"✅ {past} {container_id}", fg="green")

    return command


container_start = _lifecycle("start", "Started")
container_stop = _lifecycle("stop", "Stopped")
container_kill = _lifecycle("kill", "Killed")


@containers.command("rm")
@click.argument("container_id")
@click.option("--force", "-f", is_flag=True, help="Remove even if running.")
@click.pass_context
def container_rm(ctx: click.Context, container_id: str, force: bool) -> None:
    """Delete a container."""
    with backend_errors():
        get_engine(ctx).delete_container(container_id, force=force)
    click.secho(f"✅ Removed {container_id}", fg="green")


@containers.command("inspect")
@click.argument("container_id")
@click.pass_context
def container_inspect(ctx: click.Context, container_id: str) -> None:
    """Print the backend's inspect output for a container."""
    with backend_errors():
        click.echo(get_engine(ctx).inspect_container(container_id))


@containers.command("logs")
@click.argument("container_id")
@click.option("--no-follow", is_flag=True, help="Print current logs and exit.")
@click.option("--boot", is_flag=True, help="Show boot logs instead of stdio.")
@click.option("--tail", type=click.IntRange(min=1), default=None, help="With --no-follow, only the last N lines.")
@click.pass_context
def container_logs(
    ctx: click.Context,
    container_id: str,
    no_follow: bool,
    boot: bool,
    tail: int | None,
) -> None:
    """Stream a container's logs (Ctrl-C to stop)."""
    engine = get_engine(ctx)
    max_lines = (tail or get_settings(ctx).log_max_lines) if no_follow else None
    echo_stream(engine.container_logs(container_id, follow=not no_follow, boot=boot), max_lines)

"""
CLI commands for backend system services and the image builder.

Thin wrappers over ``ContainerEngine``.
"""

from __future__ import annotations

import json

import click

from dockshim.ui.cli.common import backend_errors, echo_stream, get_engine, get_settings


@click.group()
def system() -> None:
    """System services — start, stop, status, logs."""


@system.command("start")
@click.pass_context
def system_start(ctx: click.Context) -> None:
    """Start the backend system services."""
    with backend_errors():
        get_engine(ctx).system_start()
    click.secho("✅ System services started", fg="green")


@system.command("stop")
@click.pass_context
def system_stop(ctx: click.Context) -> None:
    """Stop the backend system services."""
    with backend_errors():
        get_engine(ctx).system_stop()
    click.secho("✅ System services stopped", fg="green")


@system.command("status")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def system_status(ctx: click.Context, as_json: bool) -> None:
    """Show whether system services are running."""
    with backend_errors():
        status = get_engine(ctx).system_status()

    if as_json:
        click.echo(json.dumps(status.model_dump(), indent=2))
        return

    if status.is_running:
        click.secho(f"🟢 {status.message}", fg="green")
    else:
        click.secho(f"🔴 {status.message}", fg="yellow")


@system.command("logs")
@click.option("--no-follow", is_flag=True, help="Print current logs and exit.")
@click.option("--tail", type=click.IntRange(min=1), default=None, help="With --no-follow, only the last N lines.")
@click.pass_context
def system_logs(ctx: click.Context, no_follow: bool, tail: int | None) -> None:
    """Stream system logs (Ctrl-C to stop)."""
    engine = get_engine(ctx)
    max_lines = (tail or get_settings(ctx).log_max_lines) if no_follow else None
    echo_stream(engine.system_logs(follow=not no_follow), max_lines)


# ── Builder ─────────────────────────────────────────────────────────


@click.group()
def builder() -> None:
    """Image builder — status, start, stop."""


@builder.command("status")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def builder_status(ctx: click.Context, as_json: bool) -> None:
    """Show whether the builder is running."""
    with backend_errors():
        status = get_engine(ctx).builder_status()

    if as_json:
        click.echo(json.dumps(status.model_dump(), indent=2))
        return

    icon = "🟢" if status.is_running else "🔴"
    click.echo(f"🔨 Builder: {icon} {status.message}")


@builder.command("start")
@click.option("--cpus", type=int, default=None, help="CPUs to give the builder.")
@click.option("--memory", default=None, help="Memory for the builder (e.g. 4g).")
@click.pass_context
def builder_start(ctx: click.Context, cpus: int | None, memory: str | None) -> None:
    """Start the image builder."""
    with backend_errors():
        get_engine(ctx).builder_start(cpus=cpus, memory=memory)
    click.secho("✅ Builder started", fg="green")


@builder.command("stop")
@click.pass_context
def builder_stop(ctx: click.Context) -> None:
    """Stop the image builder."""
    with backend_errors():
        get_engine(ctx).builder_stop()
    click.secho("✅ Builder stopped", fg="green")

"""
dockshim — CLI entrypoint.

Usage:
    python -m dockshim.main --help
    dockshim system status
    dockshim docker ps --all
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from dockshim import __version__
from dockshim.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="dockshim")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to dockshim.yml (default: auto-detect).",
)
@click.option(
    "--container-path",
    default=None,
    help="Backend executable name or path (overrides config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    container_path: str | None,
) -> None:
    """dockshim — Docker-style commands on top of the `container` CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["container_path"] = container_path

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("DOCKSHIM_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("DOCKSHIM_LOG_FILE"),
        log_file_level=os.environ.get("DOCKSHIM_LOG_FILE_LEVEL"),
    )


# ── Register sub-groups ─────────────────────────────────────────────

from dockshim.ui.cli.command import catalog, docker, events, run, stream, summary  # noqa: E402
from dockshim.ui.cli.compose import compose  # noqa: E402
from dockshim.ui.cli.containers import containers  # noqa: E402
from dockshim.ui.cli.images import images  # noqa: E402
from dockshim.ui.cli.system import builder, system  # noqa: E402

cli.add_command(system)
cli.add_command(builder)
cli.add_command(containers)
cli.add_command(images)
cli.add_command(compose)
cli.add_command(run)
cli.add_command(docker)
cli.add_command(stream)
cli.add_command(events)
cli.add_command(catalog)
cli.add_command(summary)


if __name__ == "__main__":
    cli()

"""
CLI commands for local images.
"""

from __future__ import annotations

import json

import click

from dockshim.ui.cli.common import backend_errors, get_engine


@click.group()
def images() -> None:
    """Images — list, pull, rm, inspect."""


@images.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_(ctx: click.Context, as_json: bool) -> None:
    """List local images."""
    with backend_errors():
        items = get_engine(ctx).list_images()

    if as_json:
        click.echo(json.dumps([i.model_dump(exclude={"raw"}) for i in items], indent=2))
        return

    if not items:
        click.secho("No images found.", fg="yellow")
        return

    click.secho(f"🖼️  Images ({len(items)}):", fg="cyan", bold=True)
    for i in items:
        click.echo(f"   {i.reference:<50} {i.size or ''}")
    click.echo()


@images.command("pull")
@click.argument("reference")
@click.pass_context
def image_pull(ctx: click.Context, reference: str) -> None:
    """Pull an image."""
    with backend_errors():
        get_engine(ctx).pull_image(reference)
    click.secho(f"✅ Pulled {reference}", fg="green")


@images.command("rm")
@click.argument("reference")
@click.option("--force", "-f", is_flag=True, help="Remove even if in use.")
@click.pass_context
def image_rm(ctx: click.Context, reference: str, force: bool) -> None:
    """Delete an image."""
    with backend_errors():
        get_engine(ctx).delete_image(reference, force=force)
    click.secho(f"✅ Removed {reference}", fg="green")


@images.command("inspect")
@click.argument("reference")
@click.pass_context
def image_inspect(ctx: click.Context, reference: str) -> None:
    """Print the backend's inspect output for an image."""
    with backend_errors():
        click.echo(get_engine(ctx).inspect_image(reference))

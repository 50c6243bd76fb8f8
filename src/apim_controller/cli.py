"""API Management tag controller CLI (apim-tag).

Usage:
    apim-tag id render SUB RG SERVICE NAME    # Print a canonical tag ID
    apim-tag id parse ID                      # Decode a tag ID
    apim-tag apply tag.yaml [--id ID]         # Create or update a tag
    apim-tag show ID                          # Show the remote tag
    apim-tag delete ID                        # Delete a tag (idempotent)

Commands that talk to Azure read their configuration from the environment
(see Config.from_env) and authenticate with Managed Identity.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from pathlib import Path

import click

from .config import Config, ConfigurationError
from .main import build_reconciler, setup_logging
from .reconciler import ReconcileError, TagReconciler
from .resource_id import MalformedIdentifierError, TagId
from .security import SecretlessViolationError
from .spec_loader import SpecLoadError, load_tag_spec

CLI_VERSION = "0.1.0"


def get_reconciler() -> TagReconciler:
    """Load configuration, set up logging and build a reconciler.

    Raises:
        click.ClickException: If configuration or credentials are invalid.
    """
    try:
        config = Config.from_env()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    setup_logging(config)

    try:
        return build_reconciler(config)
    except SecretlessViolationError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=CLI_VERSION, prog_name="apim-tag")
def cli() -> None:
    """Manage Azure API Management tags declaratively."""
    pass


# =============================================================================
# Resource ID Commands
# =============================================================================


@cli.group(name="id")
def id_group() -> None:
    """Render and parse tag resource IDs."""
    pass


@id_group.command(name="render")
@click.argument("subscription_id")
@click.argument("resource_group")
@click.argument("service_name")
@click.argument("name")
def render_id(subscription_id: str, resource_group: str, service_name: str, name: str) -> None:
    """Print the canonical resource ID of a tag."""
    try:
        tag_id = TagId(
            subscription_id=subscription_id,
            resource_group=resource_group,
            service_name=service_name,
            name=name,
        )
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    click.echo(tag_id.id())


@id_group.command(name="parse")
@click.argument("resource_id")
def parse_id(resource_id: str) -> None:
    """Decode a tag resource ID into its parts (JSON)."""
    try:
        tag_id = TagId.parse(resource_id)
    except MalformedIdentifierError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps(asdict(tag_id), indent=2))


# =============================================================================
# Reconciliation Commands
# =============================================================================


@cli.command()
@click.argument("spec_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--id", "existing_id", default=None, help="ID of an already managed tag.")
@click.option("--timeout", type=float, default=None, help="Per-call timeout in seconds.")
def apply(spec_file: Path, existing_id: str | None, timeout: float | None) -> None:
    """Create or update the tag described by SPEC_FILE."""
    try:
        spec = load_tag_spec(spec_file)
    except SpecLoadError as e:
        raise click.ClickException(str(e)) from e

    reconciler = get_reconciler()
    try:
        tag_id = asyncio.run(reconciler.create_or_update(spec, existing_id, timeout))
    except (ReconcileError, MalformedIdentifierError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(tag_id.id())


@cli.command()
@click.argument("resource_id")
@click.option("--timeout", type=float, default=None, help="Per-call timeout in seconds.")
def show(resource_id: str, timeout: float | None) -> None:
    """Show the remote state of a tag (JSON)."""
    reconciler = get_reconciler()
    try:
        remote = asyncio.run(reconciler.read(resource_id, timeout))
    except (ReconcileError, MalformedIdentifierError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(
        json.dumps(
            {
                "exists": remote.exists,
                "id": remote.identity.id() if remote.identity else None,
                "displayName": remote.display_name,
            },
            indent=2,
        )
    )


@cli.command()
@click.argument("resource_id")
@click.option("--timeout", type=float, default=None, help="Per-call timeout in seconds.")
def delete(resource_id: str, timeout: float | None) -> None:
    """Delete a tag. Succeeds if the tag is already gone."""
    reconciler = get_reconciler()
    try:
        asyncio.run(reconciler.delete(resource_id, timeout))
    except (ReconcileError, MalformedIdentifierError) as e:
        raise click.ClickException(str(e)) from e

    click.secho(f"Deleted {resource_id}", fg="green")


if __name__ == "__main__":
    cli()

"""CLI error handling helpers."""

import logging

import click

from networth.domain.errors import DomainError, StoreError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def handle_store_error(ctx: click.Context, error: StoreError) -> None:
    """Render a store failure and exit with failure."""
    logger.debug("Store failure in %s on %s", error.operation, error.collection, exc_info=error)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)

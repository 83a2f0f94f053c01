"""
eostx CLI

Command-line tooling around the eostx client library.

Commands:
  keygen     - Create a local signing key
  whoami     - Show the public key of the local signing key
  get-block  - Fetch a block from the node
  transfer   - Send a transfer
  push       - Sign and push a transaction from a JSON file
  info       - Show configuration
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
import httpx

from .config import get_chain_id, get_http_endpoint
from .errors import EosError
from .keys import EOSTX_ENV, generate_key, load_private_key, public_key, save_private_key
from .rpc.abi import MessageRegistry
from .rpc.api import ChainApi


# ============ Constants ============

VERSION = "0.3.0"


# ============ Banner ============


def _print_banner() -> None:
    click.echo()
    click.echo(
        click.style("  ◆ ", fg="cyan")
        + click.style("E O S T X", fg="bright_white", bold=True)
        + click.style(f"  v{VERSION}", dim=True)
    )
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="eostx")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """eostx: build, sign and broadcast transactions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.push import push
from .commands.transfer import transfer

cli.add_command(transfer)
cli.add_command(push)


# ============ Identity ============


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing key")
def keygen(force: bool) -> None:
    """Create a new signing key in ~/.eostx/.env."""
    if EOSTX_ENV.exists() and not force:
        try:
            existing = load_private_key(EOSTX_ENV)
        except ValueError:
            existing = None
        if existing:
            click.echo(f"Key already exists: {public_key(existing)}")
            click.echo("Use --force to replace it.")
            sys.exit(1)

    private_key, pub = generate_key()
    path = save_private_key(private_key, EOSTX_ENV)
    click.secho("Key created.", fg="green")
    click.echo(f"Public key: {pub}")
    click.echo(f"Stored in:  {path}")


@cli.command()
def whoami() -> None:
    """Show the public key of the local signing key."""
    try:
        pk = load_private_key()
        click.echo(f"Public key: {public_key(pk)}")
    except ValueError:
        click.echo("No key found.")
        click.echo("Run 'eostx keygen' to create one.")
        sys.exit(1)


# ============ Chain ============


@cli.command("get-block")
@click.argument("block_num_or_id")
@click.option(
    "--http-endpoint",
    envvar="EOS_HTTP_ENDPOINT",
    default="http://127.0.0.1:8888",
    help="Node endpoint",
)
def get_block(block_num_or_id: str, http_endpoint: str) -> None:
    """Fetch a block by number or id."""
    ref: int | str = int(block_num_or_id) if block_num_or_id.isdigit() else block_num_or_id
    try:
        block = asyncio.run(ChainApi(http_endpoint).get_block(ref))
    except (EosError, httpx.HTTPError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)
    click.echo(json.dumps(block, indent=2, sort_keys=True))


# ============ Info ============


@cli.command()
def info() -> None:
    """Show configuration and available system messages."""
    _print_banner()

    click.secho("  Status ─────────────────────────────────", fg="cyan")
    click.echo()
    click.echo(click.style("  Endpoint:    ", dim=True) + get_http_endpoint())
    click.echo(click.style("  Chain ID:    ", dim=True) + get_chain_id())
    try:
        pk = load_private_key()
        click.echo(
            click.style("  Public key:  ", dim=True)
            + click.style(public_key(pk), fg="bright_white")
        )
    except ValueError:
        click.echo(
            click.style("  Public key:  ", dim=True)
            + click.style("not initialized", fg="yellow")
            + click.style("  (run: eostx keygen)", dim=True)
        )
    click.echo()

    click.secho("  System messages ────────────────────────", fg="cyan")
    click.echo()
    registry = MessageRegistry.system()
    for name in registry:
        descriptor = registry.get(name)
        click.echo(
            click.style("  ", dim=True)
            + click.style(f"{name:<11}", fg="bright_white", bold=True)
            + click.style("  ◇  ", fg="cyan")
            + click.style(", ".join(descriptor.field_names), dim=True)
        )
    click.echo()


# ============ Entry Points ============


def main() -> None:
    """eostx CLI entry point."""
    cli()


if __name__ == "__main__":
    main()

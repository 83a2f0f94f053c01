"""
Push - Sign and push a transaction described in a JSON file.

The file holds a transaction dict (scope, messages, optional header),
validated against schemas/transaction.schema.json before signing.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
import httpx

from ..client import Client
from ..config import ClientConfig
from ..errors import EosError
from ..keys import load_private_key, static_key_provider
from ..schema import SchemaValidationError


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--no-broadcast", is_flag=True, help="Sign only, print the transaction")
@click.option("--no-sign", is_flag=True, help="Do not sign")
@click.option(
    "--http-endpoint",
    envvar="EOS_HTTP_ENDPOINT",
    default="http://127.0.0.1:8888",
    help="Node endpoint",
)
def push(path: Path, no_broadcast: bool, no_sign: bool, http_endpoint: str) -> None:
    """Sign and push the transaction in PATH."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        click.secho(f"ERROR: Invalid JSON: {exc}", fg="red")
        sys.exit(1)

    overrides = {"http_endpoint": http_endpoint}
    if not no_sign:
        try:
            overrides["key_provider"] = static_key_provider(load_private_key())
        except ValueError as exc:
            click.secho(f"ERROR: {exc}", fg="red")
            sys.exit(1)

    client = Client(ClientConfig.from_env(**overrides))

    try:
        result = asyncio.run(
            client.transaction(payload, sign=not no_sign, broadcast=not no_broadcast)
        )
    except SchemaValidationError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        for error in exc.errors:
            click.echo(f"  - {error}")
        sys.exit(1)
    except (EosError, httpx.HTTPError) as exc:
        click.secho(f"Push failed: {exc}", fg="red")
        sys.exit(1)

    if result.broadcast:
        click.secho("SUCCESS: Transaction broadcast", fg="green")
        click.echo(json.dumps(result.receipt, indent=2, sort_keys=True))
    else:
        click.echo(json.dumps(result.transaction.to_dict(), indent=2, ensure_ascii=False))

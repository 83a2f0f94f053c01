"""
Transfer - Send tokens with the system contract's transfer message.

Signs with the key in ~/.eostx/.env (or PRIVATE_KEY).
"""

from __future__ import annotations

import asyncio
import json
import sys

import click
import httpx

from ..client import Client
from ..config import ClientConfig
from ..errors import EosError
from ..keys import load_private_key, static_key_provider


@click.command()
@click.argument("sender")
@click.argument("recipient")
@click.argument("amount", type=int)
@click.option("--memo", default="", help="Transfer memo")
@click.option("--authorization", "-a", multiple=True, help="account@permission (repeatable)")
@click.option("--scope", "-s", multiple=True, help="Scope account (repeatable)")
@click.option("--no-broadcast", is_flag=True, help="Sign only, print the transaction")
@click.option(
    "--http-endpoint",
    envvar="EOS_HTTP_ENDPOINT",
    default="http://127.0.0.1:8888",
    help="Node endpoint",
)
def transfer(
    sender: str,
    recipient: str,
    amount: int,
    memo: str,
    authorization: tuple[str, ...],
    scope: tuple[str, ...],
    no_broadcast: bool,
    http_endpoint: str,
) -> None:
    """Transfer AMOUNT from SENDER to RECIPIENT."""
    try:
        private_key = load_private_key()
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    client = Client(
        ClientConfig.from_env(
            http_endpoint=http_endpoint,
            key_provider=static_key_provider(private_key),
        )
    )

    options = {}
    if authorization:
        options["authorization"] = list(authorization)
    if scope:
        options["scope"] = list(scope)

    try:
        result = asyncio.run(
            client.transfer(
                sender, recipient, amount, memo, broadcast=not no_broadcast, **options
            )
        )
    except (EosError, httpx.HTTPError) as exc:
        click.secho(f"Transfer failed: {exc}", fg="red")
        sys.exit(1)

    if result.broadcast:
        click.secho("SUCCESS: Transaction broadcast", fg="green")
        click.echo(json.dumps(result.receipt, indent=2, sort_keys=True))
    else:
        click.echo(json.dumps(result.transaction.to_dict(), indent=2, ensure_ascii=False))

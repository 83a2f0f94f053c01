from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

from eostx import Client, ClientConfig
from eostx.config import DEFAULT_HTTP_ENDPOINT


def test_defaults(tmp_path: Path) -> None:
    with patch.dict(os.environ, {}, clear=True):
        config = ClientConfig.from_env(tmp_path / "missing.env")

    assert config.http_endpoint == DEFAULT_HTTP_ENDPOINT
    assert config.key_provider is None
    assert config.broadcast and config.sign


def test_from_env_file(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "EOS_HTTP_ENDPOINT=http://node:8888\nEOS_CHAIN_ID=abcd\nPRIVATE_KEY=0x" + "11" * 32 + "\n",
        encoding="utf-8",
    )

    with patch.dict(os.environ, {}, clear=True):
        config = ClientConfig.from_env(env_path)

    assert config.http_endpoint == "http://node:8888"
    assert config.chain_id == "abcd"
    assert config.key_provider(transaction=None) == ["0x" + "11" * 32]


def test_explicit_provider_wins(tmp_path: Path) -> None:
    signer = lambda **_: "sig"  # noqa: E731
    with patch.dict(os.environ, {"PRIVATE_KEY": "0x" + "11" * 32}, clear=True):
        config = ClientConfig.from_env(tmp_path / "missing.env", sign_provider=signer)

    assert config.sign_provider is signer
    assert config.key_provider is None


def test_client_overrides() -> None:
    client = Client.testnet(broadcast=False)
    assert client.config.http_endpoint == "http://t1readonly.eos.io"
    assert client.config.broadcast is False
    assert client.chain.http_endpoint == "http://t1readonly.eos.io"

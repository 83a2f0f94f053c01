"""
Client configuration.

Values come from explicit arguments first, then the environment (with an
optional .env file loaded through python-dotenv), then module defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv

from .keys.local import EOSTX_ENV
from .keys.providers import static_key_provider

# Default endpoint (local testnet node)
DEFAULT_HTTP_ENDPOINT = "http://127.0.0.1:8888"
DEFAULT_CHAIN_ID = "0" * 64
DEFAULT_EXPIRE_IN_SECONDS = 60


def get_http_endpoint() -> str:
    """Get the node endpoint from environment or default."""
    return os.environ.get("EOS_HTTP_ENDPOINT", DEFAULT_HTTP_ENDPOINT)


def get_chain_id() -> str:
    """Get the chain ID from environment or default."""
    return os.environ.get("EOS_CHAIN_ID", DEFAULT_CHAIN_ID)


@dataclass(frozen=True)
class ClientConfig:
    http_endpoint: str = DEFAULT_HTTP_ENDPOINT
    chain_id: str = DEFAULT_CHAIN_ID
    sign_provider: Optional[Callable[..., Any]] = None
    key_provider: Optional[Callable[..., Any]] = None
    broadcast: bool = True
    sign: bool = True
    expire_in_seconds: int = DEFAULT_EXPIRE_IN_SECONDS
    timeout: float = 30.0

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None, **overrides: Any) -> "ClientConfig":
        """
        Build a config from the environment.

        A PRIVATE_KEY found in the environment becomes a static key
        provider unless a provider is passed explicitly.
        """
        env_path = env_path or EOSTX_ENV
        if env_path.exists():
            load_dotenv(env_path, override=False)

        values: dict[str, Any] = {
            "http_endpoint": get_http_endpoint(),
            "chain_id": get_chain_id(),
        }
        private_key = os.environ.get("PRIVATE_KEY")
        if private_key and "sign_provider" not in overrides and "key_provider" not in overrides:
            values["key_provider"] = static_key_provider(private_key)
        values.update(overrides)
        return cls(**values)

    def with_options(self, **overrides: Any) -> "ClientConfig":
        return replace(self, **overrides)

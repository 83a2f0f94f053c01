"""
Keys - Local key management and key/sign providers.

Private keys are secp256k1 keys handled by eth-account. A key provider
hands private keys to the signing resolver; a sign provider produces the
signatures itself so keys never leave it.
"""

from .local import (
    EOSTX_DIR,
    EOSTX_ENV,
    generate_key,
    load_private_key,
    public_key,
    recover,
    save_private_key,
    sign,
)
from .providers import env_key_provider, resolve_provider_result, static_key_provider

__all__ = [
    "EOSTX_DIR",
    "EOSTX_ENV",
    "env_key_provider",
    "generate_key",
    "load_private_key",
    "public_key",
    "recover",
    "resolve_provider_result",
    "save_private_key",
    "sign",
    "static_key_provider",
]

"""
secp256k1 key handling for transaction signing.

Keys are stored in ~/.eostx/.env as PRIVATE_KEY (hex format).

The public key of a private key is represented by its checksummed
address; that is the identifier exchanged with the node when asking for
the required signing keys.
"""

from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, set_key
from eth_account import Account
from eth_account.messages import encode_defunct

from ..errors import SignatureError


# Default config directory
EOSTX_DIR = Path.home() / ".eostx"
EOSTX_ENV = EOSTX_DIR / ".env"


def _normalize(private_key: str) -> str:
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    return private_key


def generate_key() -> tuple[str, str]:
    """
    Generate a new secp256k1 keypair.

    Returns:
        Tuple of (private_key_hex, public_key)
    """
    private_key = "0x" + secrets.token_hex(32)
    return private_key, Account.from_key(private_key).address


def save_private_key(private_key: str, env_path: Optional[Path] = None) -> Path:
    """
    Save private key to .env file, keeping any other entries.

    Args:
        private_key: 0x-prefixed hex private key
        env_path: Path to .env file (default: ~/.eostx/.env)

    Returns:
        Path to the saved .env file
    """
    env_path = env_path or EOSTX_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.touch(exist_ok=True)
    set_key(env_path, "PRIVATE_KEY", private_key, quote_mode="never")

    if os.name != "nt":
        env_path.chmod(0o600)

    return env_path


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load private key from .env file or environment.

    Raises:
        ValueError: If PRIVATE_KEY is not set anywhere
    """
    env_path = env_path or EOSTX_ENV

    if env_path.exists():
        load_dotenv(env_path, override=True)

    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        raise ValueError(
            f"PRIVATE_KEY not found. Run 'eostx keygen' or set "
            f"PRIVATE_KEY in {env_path}"
        )

    return _normalize(private_key)


def public_key(private_key: str) -> str:
    """Public identifier (checksummed address) for a private key."""
    return Account.from_key(_normalize(private_key)).address


def sign(buf: bytes, private_key: str) -> str:
    """
    Sign serialized transaction bytes (EIP-191 personal_sign).

    Returns:
        Hex signature string
    """
    account = Account.from_key(_normalize(private_key))
    signed = account.sign_message(encode_defunct(primitive=buf))
    return signed.signature.hex()


def recover(buf: bytes, signature: str) -> str:
    """Recover the public identifier that produced ``signature`` over ``buf``."""
    try:
        return Account.recover_message(
            encode_defunct(primitive=buf),
            signature=bytes.fromhex(signature.removeprefix("0x")),
        )
    except Exception as exc:
        raise SignatureError("Invalid transaction signature.") from exc

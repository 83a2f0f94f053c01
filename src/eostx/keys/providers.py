"""
Helpers for caller-supplied key and sign providers.

A provider may return a single value, a list of values, or an awaitable
resolving to either. ``resolve_provider_result`` flattens all of those
into one ordered list.
"""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Callable, Optional

from ..utils import as_list
from .local import load_private_key


async def resolve_provider_result(result: Any) -> list[str]:
    if inspect.isawaitable(result):
        result = await result
    values = as_list(result)
    for value in values:
        if not isinstance(value, str):
            raise TypeError(f"Provider returned {type(value).__name__}, expected str")
    return values


def static_key_provider(keys: str | list[str]) -> Callable[..., list[str]]:
    """Key provider that always hands out the same private key(s)."""
    fixed = as_list(keys)

    def provider(**_: Any) -> list[str]:
        return list(fixed)

    return provider


def env_key_provider(env_path: Optional[Path] = None) -> Callable[..., str]:
    """Key provider reading PRIVATE_KEY from the environment on each call."""

    def provider(**_: Any) -> str:
        return load_private_key(env_path)

    return provider

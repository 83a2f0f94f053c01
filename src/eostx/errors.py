"""
Error taxonomy for eostx.

Every error raised by the library derives from ``EosError``. Errors raised
by user callbacks inside a batch are never wrapped: they propagate to the
caller exactly as raised.
"""

from __future__ import annotations


class EosError(Exception):
    pass


class ConfigurationError(EosError):
    """Signing was requested but no key or sign provider is configured."""


class InvalidUsageError(EosError):
    """An operation was used in a way the builder does not allow."""


class UnknownContractError(EosError):
    """The node has no ABI for the requested contract."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown key: {name}")
        self.name = name


class RollbackError(EosError):
    """Raise inside a batch callback to discard the batch.

    Like any other exception raised by the callback, it reaches the caller
    unchanged.
    """


class ChainApiError(EosError):
    def __init__(self, message: str, error: object | None = None) -> None:
        super().__init__(message)
        self.error = error


class BroadcastError(EosError):
    """The node rejected (or never received) a signed transaction."""

    def __init__(self, message: str, transaction: dict | None = None) -> None:
        super().__init__(message)
        self.transaction = transaction


class CodecError(EosError, ValueError):
    pass


class SignatureError(EosError, ValueError):
    pass

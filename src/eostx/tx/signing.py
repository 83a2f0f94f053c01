"""
Signing resolver - turns an assembled transaction into a signed one.

Steps, each of which may suspend:
    1. fill the TaPoS header from the chain head (get_info + get_block)
    2. collect signatures from the sign provider, or sign locally with the
       keys from the key provider
    3. optionally broadcast via push_transaction

No retries. A broadcast failure surfaces as BroadcastError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

import httpx

from .. import keys
from ..codec import serialize_transaction
from ..config import ClientConfig
from ..errors import BroadcastError, ChainApiError, ConfigurationError
from ..keys.providers import resolve_provider_result
from ..rpc.api import ChainApi
from ..utils import expiration_from
from .models import Transaction, TransactionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyComparison:
    """Outcome of comparing candidate keys with the keys the chain requires."""

    candidates: frozenset[str]
    required: frozenset[str]

    @property
    def missing(self) -> frozenset[str]:
        return self.required - self.candidates

    @property
    def unused(self) -> frozenset[str]:
        return self.candidates - self.required

    @property
    def matches(self) -> bool:
        return self.candidates == self.required


def compare_keys(candidates: Iterable[str], required: Iterable[str]) -> KeyComparison:
    return KeyComparison(candidates=frozenset(candidates), required=frozenset(required))


class SigningResolver:
    def __init__(self, chain: ChainApi, config: ClientConfig) -> None:
        self.chain = chain
        self.config = config

    def serialize(self, transaction: Transaction) -> bytes:
        return serialize_transaction(transaction, chain_id=self.config.chain_id)

    async def prepare_header(self, transaction: Transaction) -> None:
        """Reference the current head block unless the header is already set."""
        if transaction.has_header:
            return
        info = await self.chain.get_info()
        head_num = int(info["head_block_num"])
        block = await self.chain.get_block(head_num)
        transaction.ref_block_num = head_num & 0xFFFF
        transaction.ref_block_prefix = int(block["ref_block_prefix"])
        transaction.expiration = expiration_from(
            info["head_block_time"], self.config.expire_in_seconds
        )

    async def required_keys(
        self, transaction: Transaction, candidate_keys: Iterable[str]
    ) -> KeyComparison:
        """Ask the chain which candidate keys must sign, and compare."""
        candidates = list(candidate_keys)
        await self.prepare_header(transaction)
        result = await self.chain.get_required_keys(
            transaction.to_dict(include_signatures=False), candidates
        )
        return compare_keys(candidates, result["required_keys"])

    async def finalize(
        self,
        transaction: Transaction,
        *,
        sign: Optional[bool] = None,
        broadcast: Optional[bool] = None,
        key_provider: Optional[Callable[..., Any]] = None,
        sign_provider: Optional[Callable[..., Any]] = None,
    ) -> TransactionResult:
        sign = self.config.sign if sign is None else sign
        broadcast = self.config.broadcast if broadcast is None else broadcast

        await self.prepare_header(transaction)

        if sign:
            signatures = await self._collect_signatures(
                transaction,
                key_provider or self.config.key_provider,
                sign_provider or self.config.sign_provider,
            )
            transaction.signatures = [*transaction.signatures, *signatures]
        else:
            transaction.signatures = []

        receipt = None
        if broadcast:
            receipt = await self._broadcast(transaction)
        return TransactionResult(transaction=transaction, receipt=receipt)

    async def _collect_signatures(
        self,
        transaction: Transaction,
        key_provider: Optional[Callable[..., Any]],
        sign_provider: Optional[Callable[..., Any]],
    ) -> list[str]:
        buf = self.serialize(transaction)

        if sign_provider is not None:
            signatures = await resolve_provider_result(
                sign_provider(sign=keys.sign, buf=buf, transaction=transaction)
            )
            logger.debug("sign provider returned %d signature(s)", len(signatures))
            return signatures

        if key_provider is not None:
            private_keys = await resolve_provider_result(key_provider(transaction=transaction))
            logger.debug("key provider returned %d key(s)", len(private_keys))
            return [keys.sign(buf, private_key) for private_key in private_keys]

        raise ConfigurationError("No sign_provider or key_provider configured")

    async def _broadcast(self, transaction: Transaction) -> dict[str, Any]:
        signed = transaction.to_dict()
        try:
            receipt = await self.chain.push_transaction(signed)
        except (ChainApiError, httpx.HTTPError) as exc:
            raise BroadcastError(f"Broadcast failed: {exc}", transaction=signed) from exc
        logger.info(
            "broadcast transaction with %d message(s)", len(transaction.messages)
        )
        return receipt or {}

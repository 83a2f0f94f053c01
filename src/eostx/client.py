"""
eostx client.

The client ties together the chain API, the signing resolver, the batch
coordinator and the system contract's message surface:

    client = Client.testnet(key_provider=static_key_provider(private_key))
    result = await client.transfer("inita", "initb", 1, "")

    result = await client.transaction(lambda tr: (
        tr.transfer("inita", "initb", 1, ""),
        tr.transfer("inita", "initc", 1, ""),
    ))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from .config import ClientConfig
from .errors import InvalidUsageError
from .rpc.abi import MessageRegistry
from .rpc.api import ChainApi
from .rpc.transport import JsonRpcTransport
from .tx.batch import BatchContext, BatchCoordinator
from .tx.builder import TransactionBuilder, encode_message
from .tx.contract import ContractHandle, load_contract
from .tx.models import Transaction, TransactionResult
from .tx.signing import KeyComparison, SigningResolver

logger = logging.getLogger(__name__)

TESTNET_HTTP_ENDPOINT = "http://t1readonly.eos.io"

TRANSACTION_OPTIONS = frozenset({"broadcast", "sign"})


class Client:
    """
    Args:
        config: Client configuration (default: ClientConfig())
        chain: Pre-built ChainApi (default: built from config)
        transport: Transport for the default ChainApi
        **overrides: ClientConfig fields overriding ``config``
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        chain: Optional[ChainApi] = None,
        transport: Optional[JsonRpcTransport] = None,
        **overrides: Any,
    ) -> None:
        config = config or ClientConfig()
        if overrides:
            config = config.with_options(**overrides)
        self.config = config
        self.chain = chain or ChainApi(
            config.http_endpoint, transport=transport, timeout=config.timeout
        )
        self.coordinator = BatchCoordinator(SigningResolver(self.chain, config))
        self.system = TransactionBuilder(self, MessageRegistry.system())
        self._contracts: dict[str, ContractHandle] = {}

    @classmethod
    def testnet(cls, **overrides: Any) -> "Client":
        overrides.setdefault("http_endpoint", TESTNET_HTTP_ENDPOINT)
        return cls(**overrides)

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None, **overrides: Any) -> "Client":
        transport = overrides.pop("transport", None)
        chain = overrides.pop("chain", None)
        return cls(ClientConfig.from_env(env_path, **overrides), chain=chain, transport=transport)

    def __getattr__(self, name: str) -> Any:
        system = self.__dict__.get("system")
        if system is None or name.startswith("_") or name not in system.message_types:
            raise AttributeError(f"'Client' object has no attribute {name!r}")
        return getattr(system, name)

    # ============ Contracts ============

    async def contract(self, name: str) -> ContractHandle:
        """Load (once) and return the handle for contract ``name``."""
        handle = self._contracts.get(name)
        if handle is None:
            handle = await load_contract(self, name)
            self._contracts[name] = handle
        return handle

    # ============ Transactions ============

    def transaction(
        self,
        target: Any,
        callback: Any = None,
        *,
        sign: Optional[bool] = None,
        broadcast: Optional[bool] = None,
    ) -> Any:
        """
        Build one atomic transaction.

        ``target`` is one of:
            - a callback, receiving the system contract builder
            - a contract name, with ``callback`` receiving its handle
            - a list of contract names, with ``callback`` receiving a
              dict of handles keyed by name
            - a Transaction or transaction dict, signed as given

        For a callback or a transaction, the second argument may instead
        be an options dict (``broadcast``, ``sign``).

        Returns a coroutine resolving to TransactionResult, or None when a
        batch is already open in the current context.
        """
        if isinstance(callback, dict):
            unknown = set(callback) - TRANSACTION_OPTIONS
            if unknown:
                raise InvalidUsageError(f"Unknown option(s): {', '.join(sorted(unknown))}")
            sign = callback.get("sign", sign)
            broadcast = callback.get("broadcast", broadcast)
            callback = None

        if isinstance(target, (Transaction, dict)):
            if callback is not None:
                raise InvalidUsageError("A custom transaction takes an options dict, not a callback")
            return self._custom_transaction(target, sign=sign, broadcast=broadcast)

        if callable(target) and callback is None:
            return self.system.transaction(target, sign=sign, broadcast=broadcast)

        if callback is None:
            raise InvalidUsageError("transaction() needs a callback")

        names = [target] if isinstance(target, str) else list(target)
        if all(name in self._contracts for name in names):
            return self._run_contracts(target, names, callback, sign, broadcast)
        if self.coordinator.active is not None:
            missing = [name for name in names if name not in self._contracts]
            raise InvalidUsageError(
                f"Contract(s) {', '.join(missing)} not loaded; "
                "await client.contract(name) before opening the transaction"
            )
        return self._load_and_run(target, names, callback, sign, broadcast)

    def _bind_contracts(self, target: Any, names: list[str], batch: BatchContext) -> Any:
        handles = {name: self._contracts[name].bind(batch) for name in names}
        if isinstance(target, str):
            return handles[target]
        return handles

    def _run_contracts(
        self,
        target: Any,
        names: list[str],
        callback: Callable[[Any], Any],
        sign: Optional[bool],
        broadcast: Optional[bool],
    ) -> Any:
        return self.coordinator.run(
            callback,
            lambda batch: self._bind_contracts(target, names, batch),
            sign=sign,
            broadcast=broadcast,
        )

    async def _load_and_run(
        self,
        target: Any,
        names: list[str],
        callback: Callable[[Any], Any],
        sign: Optional[bool],
        broadcast: Optional[bool],
    ) -> Optional[TransactionResult]:
        for name in names:
            await self.contract(name)
        pending = self._run_contracts(target, names, callback, sign, broadcast)
        if pending is None:
            return None
        return await pending

    def _registry_for(self, code: str) -> Optional[MessageRegistry]:
        if code == self.system.code:
            return self.system.registry
        handle = self._contracts.get(code)
        return handle.registry if handle is not None else None

    def _encode_messages(self, transaction: Transaction) -> None:
        for message in transaction.messages:
            registry = self._registry_for(message.code)
            if registry is None:
                raise InvalidUsageError(
                    f"Contract {message.code} not loaded; "
                    f"await client.contract({message.code!r}) first"
                )
            encode_message(registry, message)

    def _custom_transaction(
        self,
        target: Transaction | dict[str, Any],
        *,
        sign: Optional[bool],
        broadcast: Optional[bool],
    ) -> Any:
        transaction = target if isinstance(target, Transaction) else Transaction.from_dict(target)
        batch = self.coordinator.active
        if batch is not None:
            self._encode_messages(transaction)
            batch.extend(transaction)
            return None

        codes = sorted({message.code for message in transaction.messages})
        unloaded = [code for code in codes if self._registry_for(code) is None]
        if unloaded:
            return self._load_and_finalize(transaction, unloaded, sign, broadcast)

        self._encode_messages(transaction)
        return self.coordinator.resolver.finalize(transaction, sign=sign, broadcast=broadcast)

    async def _load_and_finalize(
        self,
        transaction: Transaction,
        names: list[str],
        sign: Optional[bool],
        broadcast: Optional[bool],
    ) -> TransactionResult:
        for name in names:
            await self.contract(name)
        self._encode_messages(transaction)
        return await self.coordinator.resolver.finalize(transaction, sign=sign, broadcast=broadcast)

    # ============ Chain reads ============

    async def get_info(self) -> dict[str, Any]:
        return await self.chain.get_info()

    async def get_block(self, block_num_or_id: int | str) -> dict[str, Any]:
        return await self.chain.get_block(block_num_or_id)

    async def get_required_keys(
        self, transaction: Transaction | dict[str, Any], candidate_keys: Iterable[str]
    ) -> dict[str, Any]:
        if isinstance(transaction, Transaction):
            transaction = transaction.to_dict(include_signatures=False)
        return await self.chain.get_required_keys(transaction, candidate_keys)

    async def verify_required_keys(
        self, transaction: Transaction, candidate_keys: Iterable[str]
    ) -> KeyComparison:
        """Compare ``candidate_keys`` against the keys the chain requires."""
        return await self.coordinator.resolver.required_keys(transaction, candidate_keys)

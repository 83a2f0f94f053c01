"""
Contract facade.

A ContractHandle exposes one callable per message type declared in the
contract's ABI, all sharing the client's builder and batch coordinator.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..errors import ChainApiError, UnknownContractError
from ..rpc.abi import MessageRegistry
from .builder import TransactionBuilder

if TYPE_CHECKING:
    from ..client import Client

logger = logging.getLogger(__name__)


class ContractHandle(TransactionBuilder):
    @property
    def name(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ContractHandle({self.code!r}, messages={self.message_types!r})"


async def load_contract(client: "Client", name: str) -> ContractHandle:
    """
    Look up a contract's ABI and build its handle.

    Raises:
        UnknownContractError: If the node has no ABI for ``name``
    """
    try:
        raw_abi: Any = await client.chain.get_abi(name)
    except ChainApiError as exc:
        if "unknown key" in str(exc):
            raise UnknownContractError(name) from exc
        raise
    if not raw_abi:
        raise UnknownContractError(name)
    logger.debug("loaded ABI for %s", name)
    return ContractHandle(client, MessageRegistry.from_abi(name, raw_abi))

"""
Chain API client.

Async JSON-RPC 2.0 client for the node's chain endpoints. Every method
is a single request; there are no retry loops here.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Iterable, Optional

from ..errors import ChainApiError
from .transport import HttpxTransport, JsonRpcTransport

logger = logging.getLogger(__name__)

_request_ids = itertools.count(1)


class ChainApi:
    """
    Node chain API.

    Args:
        http_endpoint: Node URL (JSON-RPC endpoint)
        transport: Transport implementation (default: HttpxTransport)
        timeout: Request timeout for the default transport
    """

    def __init__(
        self,
        http_endpoint: str,
        transport: Optional[JsonRpcTransport] = None,
        timeout: float = 30.0,
    ) -> None:
        self.http_endpoint = http_endpoint
        self._transport = transport or HttpxTransport(timeout=timeout)

    async def _rpc_call(self, method: str, params: dict[str, Any]) -> Any:
        """
        Make a JSON-RPC call.

        Returns:
            Result field from the RPC response

        Raises:
            ChainApiError: If the node returns an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(_request_ids),
        }
        logger.debug("rpc %s -> %s", method, self.http_endpoint)
        data = await self._transport.post_json(self.http_endpoint, payload)

        if "error" in data:
            error = data["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ChainApiError(f"RPC error: {message}", error=error)

        return data.get("result")

    async def get_info(self) -> dict[str, Any]:
        return await self._rpc_call("get_info", {})

    async def get_block(self, block_num_or_id: int | str) -> dict[str, Any]:
        return await self._rpc_call("get_block", {"block_num_or_id": block_num_or_id})

    async def get_required_keys(
        self, transaction: dict[str, Any], candidate_keys: Iterable[str]
    ) -> dict[str, Any]:
        """
        Ask the node which of the candidate keys must sign the transaction.

        Returns:
            Dict with a ``required_keys`` list
        """
        result = await self._rpc_call(
            "get_required_keys",
            {"transaction": transaction, "available_keys": list(candidate_keys)},
        )
        return {"required_keys": list((result or {}).get("required_keys", []))}

    async def get_abi(self, account_name: str) -> Optional[dict[str, Any]]:
        """
        Fetch a contract ABI.

        Returns:
            The ABI dict, or None when the node has no ABI for the account
        """
        result = await self._rpc_call("get_code", {"account_name": account_name})
        if not result:
            return None
        return result.get("abi") or None

    async def push_transaction(self, signed_transaction: dict[str, Any]) -> dict[str, Any]:
        return await self._rpc_call("push_transaction", {"transaction": signed_transaction})

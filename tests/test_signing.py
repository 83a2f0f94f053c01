"""Signing resolver: provider selection, key checks and broadcast errors."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from _node import PUBKEY, WIF, FakeNode
from eostx import (
    BroadcastError,
    ChainApiError,
    Client,
    ConfigurationError,
    Message,
    Transaction,
    compare_keys,
    generate_key,
    public_key,
    static_key_provider,
)
from eostx.keys import recover


def _transfer_tx(**header: Any) -> Transaction:
    message = Message(
        code="eos",
        type="transfer",
        data={"from": "inita", "to": "initb", "amount": 1, "memo": ""},
        authorization=["inita"],
    )
    return Transaction(scope=["inita", "initb"], messages=[message], **header)


class TestProviders:
    @pytest.mark.asyncio
    async def test_no_provider_configured(self, node: FakeNode) -> None:
        client = Client(transport=node)
        with pytest.raises(ConfigurationError):
            await client.transfer("inita", "initb", 1, "", False)
        assert "push_transaction" not in node.methods()

    @pytest.mark.asyncio
    async def test_no_provider_needed_without_signing(self, node: FakeNode) -> None:
        client = Client(transport=node, sign=False)
        result = await client.transfer("inita", "initb", 1, "", False)
        assert result.transaction.signatures == []

    @pytest.mark.asyncio
    async def test_signature_list_keeps_provider_order(self, node: FakeNode) -> None:
        client = Client(transport=node, sign_provider=lambda **_: ["sig-b", "sig-a"])
        result = await client.transfer("inita", "initb", 1, "", False)
        assert result.transaction.signatures == ["sig-b", "sig-a"]

    @pytest.mark.asyncio
    async def test_sign_provider_wins_over_key_provider(self, node: FakeNode) -> None:
        def key_provider(**_: Any) -> str:
            raise AssertionError("key provider must not be consulted")

        client = Client(
            transport=node,
            sign_provider=lambda **_: "sig",
            key_provider=key_provider,
        )
        result = await client.transfer("inita", "initb", 1, "", False)
        assert result.transaction.signatures == ["sig"]

    @pytest.mark.asyncio
    async def test_key_provider_keys_sign_locally(self, node: FakeNode) -> None:
        other, other_pub = generate_key()
        client = Client(transport=node, key_provider=static_key_provider([WIF, other]))

        result = await client.transfer("inita", "initb", 1, "", False)

        buf = client.coordinator.resolver.serialize(result.transaction)
        signers = [recover(buf, sig) for sig in result.transaction.signatures]
        assert signers == [PUBKEY, other_pub]

    @pytest.mark.asyncio
    async def test_provider_returning_non_string(self, node: FakeNode) -> None:
        client = Client(transport=node, sign_provider=lambda **_: [b"raw"])
        with pytest.raises(TypeError):
            await client.transfer("inita", "initb", 1, "", False)


class TestHeader:
    @pytest.mark.asyncio
    async def test_existing_header_is_kept(self, client: Client, node: FakeNode) -> None:
        tx = _transfer_tx(ref_block_num=7, ref_block_prefix=99, expiration="2018-01-01T00:00:00")

        result = await client.transaction(tx, broadcast=False)

        assert result.transaction.ref_block_num == 7
        assert "get_info" not in node.methods()

    @pytest.mark.asyncio
    async def test_expire_in_seconds(self, node: FakeNode) -> None:
        client = Client(transport=node, sign=False, broadcast=False, expire_in_seconds=3600)
        result = await client.transaction(_transfer_tx())
        assert result.transaction.expiration == "2017-09-01T13:00:00"


class TestRequiredKeys:
    def test_compare_keys(self) -> None:
        comparison = compare_keys(["k1", "k2"], ["k2", "k3"])
        assert comparison.missing == {"k3"}
        assert comparison.unused == {"k1"}
        assert not comparison.matches
        assert compare_keys(["k1"], ["k1"]).matches

    @pytest.mark.asyncio
    async def test_verify_required_keys(self, client: Client, node: FakeNode) -> None:
        node.required_keys = [PUBKEY]
        other = public_key("0x" + "22" * 32)

        comparison = await client.verify_required_keys(_transfer_tx(), [PUBKEY, other])

        assert comparison.required == {PUBKEY}
        assert comparison.unused == {other}
        assert not comparison.matches
        method, params = node.calls[-1]
        assert method == "get_required_keys"
        assert params["available_keys"] == [PUBKEY, other]
        assert "signatures" not in params["transaction"]


class FailingPushNode(FakeNode):
    async def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        if payload["method"] == "push_transaction":
            raise httpx.ConnectError("connection refused")
        return await super().post_json(url, payload)


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_node_rejection(self, client: Client, node: FakeNode) -> None:
        node.push_error = "transaction declares authority it does not have"

        with pytest.raises(BroadcastError, match="does not have") as excinfo:
            await client.transfer("inita", "initb", 1, "")

        assert isinstance(excinfo.value.__cause__, ChainApiError)
        assert excinfo.value.transaction["signatures"]
        assert node.methods().count("push_transaction") == 1

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        node = FailingPushNode()
        client = Client(transport=node, sign_provider=lambda **_: "sig")

        with pytest.raises(BroadcastError, match="connection refused"):
            await client.transfer("inita", "initb", 1, "")

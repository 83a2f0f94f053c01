"""
End-to-end transaction behavior against an in-memory node.

Covers standalone messages, key and sign providers, authorization and
scope canonicalization, contract handles, multi-message transactions and
rollback.
"""

from __future__ import annotations

import asyncio

import pytest

from _node import PUBKEY, WIF, FakeNode, sign_provider
from eostx import (
    Authorization,
    Client,
    CodecError,
    InvalidUsageError,
    RollbackError,
    UnknownContractError,
    serialize_transaction,
)


def _custom_transfer(code: str = "eos") -> dict:
    return {
        "scope": ["initb", "inita"],
        "messages": [
            {
                "code": code,
                "type": "transfer",
                "data": {"from": "inita", "to": "initb", "amount": "13", "memo": "爱"},
                "authorization": [{"account": "inita", "permission": "active"}],
            }
        ],
    }


class TestProviders:
    @pytest.mark.asyncio
    async def test_key_provider(self, node: FakeNode) -> None:
        def key_provider(*, transaction):
            assert transaction.messages[0].type == "transfer"

            async def resolve() -> str:
                return WIF

            return resolve()

        client = Client(transport=node, key_provider=key_provider)
        result = await client.transfer("inita", "initb", 1, "", False)

        assert len(result.transaction.signatures) == 1
        assert isinstance(result.transaction.signatures[0], str)
        assert node.pushed == []

    @pytest.mark.asyncio
    async def test_sign_provider_with_required_keys(self, node: FakeNode) -> None:
        client: Client

        async def custom_sign_provider(*, sign, buf, transaction):
            res = await client.get_required_keys(transaction, [PUBKEY])
            assert res["required_keys"] == [PUBKEY]
            return sign(buf, WIF)

        client = Client(transport=node, sign_provider=custom_sign_provider)
        result = await client.transfer("inita", "initb", 2, "", False)

        assert len(result.transaction.signatures) == 1
        assert "get_required_keys" in node.methods()

    @pytest.mark.asyncio
    async def test_sign_promise(self, node: FakeNode) -> None:
        async def promise_signer(**kwargs):
            return sign_provider(**kwargs)

        client = Client(transport=node, sign_provider=promise_signer)
        result = await client.transfer("inita", "initb", 1, "", False)
        assert len(result.transaction.signatures) == 1


class TestStandalone:
    @pytest.mark.asyncio
    async def test_newaccount_broadcast(self, client: Client, node: FakeNode) -> None:
        result = await client.newaccount({
            "creator": "inita",
            "name": "a12345",
            "owner": PUBKEY,
            "active": PUBKEY,
            "recovery": "inita",
            "deposit": "1.0000 EOS",
        })

        assert result.broadcast
        assert len(node.pushed) == 1
        message = result.transaction.messages[0]
        assert message.authorization == [Authorization("inita", "active")]
        assert result.transaction.scope == ["a12345", "inita"]

    @pytest.mark.asyncio
    async def test_transfer_broadcast(self, client: Client, node: FakeNode) -> None:
        result = await client.transfer("inita", "initb", 1, "")

        assert result.receipt["transaction_id"]
        assert node.pushed == [result.transaction.to_dict()]

    @pytest.mark.asyncio
    async def test_custom_authorization(self, client: Client, node: FakeNode) -> None:
        result = await client.transfer("inita", "initb", 1, "", {"authorization": "inita@owner"})

        pushed = node.pushed[0]["messages"][0]
        assert pushed["authorization"] == [{"account": "inita", "permission": "owner"}]
        assert result.broadcast

    @pytest.mark.asyncio
    async def test_custom_authorization_sorting(self, client: Client) -> None:
        result = await client.transfer(
            "inita", "initb", 1, "",
            {"authorization": ["initb@owner", "inita@owner"], "broadcast": False},
        )

        ans = [
            {"account": "inita", "permission": "owner"},
            {"account": "initb", "permission": "owner"},
        ]
        assert result.transaction.messages[0].to_dict()["authorization"] == ans

    @pytest.mark.asyncio
    async def test_custom_scope_sorted(self, client: Client, node: FakeNode) -> None:
        await client.transfer("inita", "initb", 2, "", {"scope": ["initb", "inita"]})
        assert node.pushed[0]["scope"] == ["inita", "initb"]

    @pytest.mark.asyncio
    async def test_custom_scope_array(self, client: Client) -> None:
        result = await client.transfer(
            "inita", "initb", 1, "", {"scope": ["joe", "billy"], "broadcast": False}
        )
        assert result.transaction.scope == ["billy", "joe"]

    @pytest.mark.asyncio
    async def test_no_broadcast(self, client: Client, node: FakeNode) -> None:
        result = await client.transfer("inita", "initb", 1, "", broadcast=False)

        assert result.receipt is None
        assert "push_transaction" not in node.methods()

    @pytest.mark.asyncio
    async def test_no_broadcast_no_sign(self, client: Client) -> None:
        result = await client.transfer("inita", "initb", 1, "", broadcast=False, sign=False)
        assert result.transaction.signatures == []

    @pytest.mark.asyncio
    async def test_header_references_head_block(self, client: Client) -> None:
        result = await client.transfer("inita", "initb", 1, "", False)

        tx = result.transaction
        assert tx.ref_block_num == 70_001 & 0xFFFF
        assert tx.ref_block_prefix == 3_054_874_223
        assert tx.expiration == "2017-09-01T12:01:00"


class TestContracts:
    @pytest.mark.asyncio
    async def test_unknown_contract(self, client: Client, node: FakeNode) -> None:
        with pytest.raises(UnknownContractError, match="unknown key"):
            await client.contract("a1234512")
        assert node.methods() == ["get_code"]

    @pytest.mark.asyncio
    async def test_message_to_contract(self, client: Client) -> None:
        eos = await client.contract("eos")

        first, second = await asyncio.gather(
            eos.transfer("inita", "initd", 1, ""),
            eos.transfer("initd", "inita", 1, ""),
        )

        # transaction sent on each command
        assert len(first.transaction.messages) == 1
        assert len(second.transaction.messages) == 1

    @pytest.mark.asyncio
    async def test_message_to_contract_atomic(self, client: Client, node: FakeNode) -> None:
        amounts = iter(range(1, 10))

        def issue(eos) -> None:
            amt = next(amounts)
            assert eos.transfer("inita", "initf", amt, "") is None
            assert eos.transfer("initf", "inita", amt, "") is None

        # contracts can be a string or list
        by_list = await client.transaction(["eos"], lambda contracts: issue(contracts["eos"]))
        by_name = await client.transaction("eos", issue)

        assert len(by_list.transaction.messages) == 2
        assert len(by_name.transaction.messages) == 2
        assert len(node.pushed) == 2

    @pytest.mark.asyncio
    async def test_contract_transaction_nesting(self, client: Client) -> None:
        eos = await client.contract("eos")

        def issue(tr) -> None:
            tr.transfer("inita", "initd", 1, "")
            tr.transfer("inita", "inite", 1, "")

        batched = eos.transaction(issue)
        standalone = eos.transfer("inita", "initf", 1, "")

        assert len((await batched).transaction.messages) == 2
        assert len((await standalone).transaction.messages) == 1


class TestMultiMessage:
    @pytest.mark.asyncio
    async def test_multi_message_broadcast(self, client: Client, node: FakeNode) -> None:
        def issue(tr) -> None:
            assert tr.transfer("inita", "initb", 1, "") is None
            assert tr.transfer({"from": "inita", "to": "initc", "amount": 1, "memo": ""}) is None

        result = await client.transaction(issue)

        assert len(result.transaction.messages) == 2
        assert result.transaction.scope == ["inita", "initb", "initc"]
        assert [m.data["to"] for m in result.transaction.messages] == ["initb", "initc"]
        assert len(node.pushed) == 1

    @pytest.mark.asyncio
    async def test_no_inner_callback(self, client: Client, node: FakeNode) -> None:
        with pytest.raises(InvalidUsageError, match="Callback during a transaction"):
            await client.transaction(
                lambda tr: tr.okproducer("inita", "inita", 1, lambda result: None)
            )
        assert node.pushed == []

    @pytest.mark.asyncio
    async def test_error_rollback(self, client: Client, node: FakeNode) -> None:
        error = RuntimeError("rollback")

        def issue(tr) -> None:
            tr.transfer("inita", "initb", 1, "")
            raise error

        with pytest.raises(RuntimeError, match="rollback") as excinfo:
            await client.transaction(issue)

        assert excinfo.value is error
        assert node.calls == []

    @pytest.mark.asyncio
    async def test_rejected_future_rollback(self, client: Client, node: FakeNode) -> None:
        def issue(tr):
            tr.transfer("inita", "initb", 1, "")
            future = asyncio.get_running_loop().create_future()
            future.set_exception(RollbackError("rollback"))
            return future

        with pytest.raises(RollbackError, match="rollback"):
            await client.transaction(issue)
        assert node.calls == []

    @pytest.mark.asyncio
    async def test_async_callback_rollback(self, client: Client, node: FakeNode) -> None:
        async def issue(tr) -> None:
            tr.transfer("inita", "initb", 1, "")
            await asyncio.sleep(0)
            raise ValueError("rollback after await")

        with pytest.raises(ValueError, match="rollback"):
            await client.transaction(issue)
        assert node.pushed == []

    @pytest.mark.asyncio
    async def test_custom_transfer(self, client: Client, node: FakeNode) -> None:
        result = await client.transaction(_custom_transfer(), broadcast=False)

        assert result.transaction.scope == ["inita", "initb"]
        assert result.transaction.messages[0].data["memo"] == "爱"
        assert len(result.transaction.signatures) == 1
        assert node.pushed == []


class TestCustomTransaction:
    @pytest.mark.asyncio
    async def test_options_dict_as_second_argument(self, client: Client, node: FakeNode) -> None:
        result = await client.transaction(_custom_transfer(), {"broadcast": False})

        assert not result.broadcast
        assert len(result.transaction.signatures) == 1
        assert node.pushed == []

    def test_rejects_callback_and_unknown_options(self, client: Client) -> None:
        with pytest.raises(InvalidUsageError, match="options dict"):
            client.transaction(_custom_transfer(), lambda tr: None)
        with pytest.raises(InvalidUsageError, match="Unknown option"):
            client.transaction(_custom_transfer(), {"scope": ["inita"]})

    @pytest.mark.asyncio
    async def test_serializes_like_a_built_message(self, client: Client) -> None:
        built = await client.transfer("inita", "initb", 13, "爱", broadcast=False)
        custom = await client.transaction(_custom_transfer(), broadcast=False)

        assert custom.transaction.messages[0].hex_data == built.transaction.messages[0].hex_data
        assert serialize_transaction(custom.transaction) == serialize_transaction(built.transaction)

    def test_payload_checked_before_any_call(self, client: Client, node: FakeNode) -> None:
        payload = _custom_transfer()
        del payload["messages"][0]["data"]["to"]

        with pytest.raises(CodecError, match="missing field"):
            client.transaction(payload)
        assert node.calls == []
        assert node.pushed == []

    @pytest.mark.asyncio
    async def test_loads_contract_for_unknown_code(self, client: Client, node: FakeNode) -> None:
        node.abis["currency"] = node.abis["eos"]

        result = await client.transaction(_custom_transfer("currency"), broadcast=False)

        assert node.methods()[0] == "get_code"
        assert result.transaction.messages[0].hex_data is not None

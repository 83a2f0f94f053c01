"""
Codec adapter - message payload encoding and transaction serialization.

Message payloads are ABI-encoded with eth-abi after mapping each ABI field
type onto an eth-abi type. Transactions are serialized as RFC 8785
canonical JSON, so the bytes handed to signers depend only on the logical
content of the transaction.
"""

from __future__ import annotations

import re
from typing import Any, Optional

import rfc8785
from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError

from .errors import CodecError
from .rpc.abi import Abi
from .tx.models import Transaction

STRING_TYPES = frozenset({
    "name",
    "account_name",
    "permission_name",
    "string",
    "asset",
    "public_key",
    "signature",
    "time",
    "checksum",
})

_INT_RE = re.compile(r"^u?int(8|16|32|64|128|256)$")


def abi_type(abi: Abi, type_name: str) -> str:
    """Map an ABI field type onto the equivalent eth-abi type string."""
    if type_name.endswith("[]"):
        return abi_type(abi, type_name[:-2]) + "[]"
    resolved = abi.resolve_type(type_name)
    if resolved in STRING_TYPES:
        return "string"
    if _INT_RE.match(resolved) or resolved in ("bool", "bytes"):
        return resolved
    if abi.is_struct(resolved):
        inner = ",".join(abi_type(abi, t) for _, t in abi.struct_fields(resolved))
        return f"({inner})"
    raise CodecError(f"Unsupported ABI type: {type_name}")


def _coerce(abi: Abi, type_name: str, value: Any, path: str) -> Any:
    if type_name.endswith("[]"):
        if not isinstance(value, (list, tuple)):
            raise CodecError(f"{path}: expected a list")
        return [_coerce(abi, type_name[:-2], v, f"{path}[{i}]") for i, v in enumerate(value)]

    resolved = abi.resolve_type(type_name)
    if resolved in STRING_TYPES:
        if not isinstance(value, str):
            raise CodecError(f"{path}: expected a string, got {type(value).__name__}")
        return value
    if _INT_RE.match(resolved):
        if isinstance(value, bool):
            raise CodecError(f"{path}: expected an integer")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise CodecError(f"{path}: expected an integer, got {value!r}") from exc
    if resolved == "bool":
        return bool(value)
    if resolved == "bytes":
        if isinstance(value, str):
            return bytes.fromhex(value.removeprefix("0x"))
        return bytes(value)
    if abi.is_struct(resolved):
        return tuple(_struct_values(abi, resolved, value, path))
    raise CodecError(f"Unsupported ABI type: {type_name}")


def _struct_values(abi: Abi, struct_name: str, data: Any, path: str) -> list[Any]:
    fields = abi.struct_fields(struct_name)
    if isinstance(data, (list, tuple)):
        if len(data) != len(fields):
            raise CodecError(f"{path}: expected {len(fields)} values, got {len(data)}")
        data = dict(zip((name for name, _ in fields), data))
    if not isinstance(data, dict):
        raise CodecError(f"{path}: expected an object")

    unknown = set(data) - {name for name, _ in fields}
    if unknown:
        raise CodecError(f"{path}: unknown field(s) {', '.join(sorted(unknown))}")

    values = []
    for name, type_name in fields:
        if name not in data:
            raise CodecError(f"{path}: missing field {name}")
        values.append(_coerce(abi, type_name, data[name], f"{path}.{name}"))
    return values


def encode(abi: Abi, message_type: str, data: Any) -> bytes:
    """
    ABI-encode a message payload.

    Args:
        abi: ABI of the contract the message belongs to
        message_type: Action name (resolved to its struct)
        data: Field values as a dict (or list in field order)

    Raises:
        CodecError: On unknown types, missing or unknown fields, bad values
    """
    struct = abi.action_type(message_type) or message_type
    try:
        fields = abi.struct_fields(struct)
    except KeyError as exc:
        raise CodecError(f"Message type {message_type} not found in ABI") from exc

    types = [abi_type(abi, t) for _, t in fields]
    values = _struct_values(abi, struct, data, message_type)
    try:
        return abi_encode(types, values)
    except (EncodingError, OverflowError) as exc:
        raise CodecError(f"{message_type}: {exc}") from exc


def serialize_transaction(transaction: Transaction, chain_id: Optional[str] = None) -> bytes:
    """Canonical bytes of the unsigned transaction (RFC 8785 JCS)."""
    payload: dict[str, Any] = transaction.to_dict(include_signatures=False)
    if chain_id is not None:
        payload = {"chain_id": chain_id, "transaction": payload}
    return rfc8785.dumps(payload)

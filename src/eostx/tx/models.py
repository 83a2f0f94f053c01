"""
Transaction data model.

A Transaction keeps its scope sorted and unique and each message's
authorization sorted by (account, permission). Messages stay in the order
they were issued.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..schema import SchemaRegistry
from ..utils import as_list, sorted_unique

DEFAULT_PERMISSION = "active"


@dataclass(frozen=True, order=True)
class Authorization:
    account: str
    permission: str = DEFAULT_PERMISSION

    @classmethod
    def parse(cls, value: "str | dict[str, str] | Authorization") -> "Authorization":
        """Accept ``"account"``, ``"account@permission"``, a dict, or an Authorization."""
        if isinstance(value, Authorization):
            return value
        if isinstance(value, dict):
            return cls(value["account"], value.get("permission") or DEFAULT_PERMISSION)
        account, _, permission = str(value).partition("@")
        if not account:
            raise ValueError(f"Invalid authorization: {value!r}")
        return cls(account, permission or DEFAULT_PERMISSION)

    def to_dict(self) -> dict[str, str]:
        return {"account": self.account, "permission": self.permission}


def normalize_authorization(values: Any) -> list[Authorization]:
    return sorted({Authorization.parse(v) for v in as_list(values)})


@dataclass
class Message:
    code: str
    type: str
    data: Any
    authorization: list[Authorization] = field(default_factory=list)
    hex_data: Optional[str] = None

    def __post_init__(self) -> None:
        self.authorization = normalize_authorization(self.authorization)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Message":
        return cls(
            code=payload["code"],
            type=payload["type"],
            data=payload["data"],
            authorization=payload.get("authorization", []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "type": self.type,
            "authorization": [a.to_dict() for a in self.authorization],
            "data": self.hex_data if self.hex_data is not None else self.data,
        }


@dataclass
class Transaction:
    scope: list[str] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    signatures: list[str] = field(default_factory=list)
    ref_block_num: Optional[int] = None
    ref_block_prefix: Optional[int] = None
    expiration: Optional[str] = None

    def __post_init__(self) -> None:
        self.scope = sorted_unique(self.scope)

    def add_message(self, message: Message, scope: Iterable[str] = ()) -> None:
        self.messages.append(message)
        self.merge_scope(scope)

    def merge_scope(self, scope: Iterable[str]) -> None:
        self.scope = sorted_unique([*self.scope, *as_list(scope)])

    @property
    def has_header(self) -> bool:
        return None not in (self.ref_block_num, self.ref_block_prefix, self.expiration)

    @classmethod
    def from_dict(cls, payload: dict[str, Any], registry: SchemaRegistry | None = None) -> "Transaction":
        registry = registry or SchemaRegistry.default()
        registry.validate_instance(payload, "transaction.schema.json")
        return cls(
            scope=payload.get("scope", []),
            messages=[Message.from_dict(m) for m in payload["messages"]],
            signatures=list(payload.get("signatures", [])),
            ref_block_num=payload.get("ref_block_num"),
            ref_block_prefix=payload.get("ref_block_prefix"),
            expiration=payload.get("expiration"),
        )

    def to_dict(self, include_signatures: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for key in ("ref_block_num", "ref_block_prefix", "expiration"):
            if getattr(self, key) is not None:
                payload[key] = getattr(self, key)
        payload["scope"] = list(self.scope)
        payload["messages"] = [m.to_dict() for m in self.messages]
        if include_signatures:
            payload["signatures"] = list(self.signatures)
        return payload


@dataclass(frozen=True)
class TransactionResult:
    transaction: Transaction
    receipt: Optional[dict[str, Any]] = None

    @property
    def broadcast(self) -> bool:
        return self.receipt is not None


__all__ = [
    "Authorization",
    "DEFAULT_PERMISSION",
    "Message",
    "Transaction",
    "TransactionResult",
    "normalize_authorization",
]

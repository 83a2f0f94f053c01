"""
ABI handling - bundled system ABI plus the message dispatch table.

The system contract's ABI ships with the package (rpc/abis/*.abi.json)
so its message types are callable before any node round trip. Other
contracts' ABIs come from the node via ChainApi.get_abi.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterator, Optional

ABI_DIR = Path(__file__).resolve().parent / "abis"

SYSTEM_CONTRACT = "eos"

# Field types whose values name accounts
ACCOUNT_TYPES = frozenset({"name", "account_name"})


@lru_cache(maxsize=16)
def load_abi(contract_name: str) -> dict[str, Any]:
    """
    Load a bundled ABI.

    Args:
        contract_name: Contract name (e.g., "eos")

    Raises:
        FileNotFoundError: If no ABI is bundled for the contract
    """
    abi_path = ABI_DIR / f"{contract_name}.abi.json"

    if not abi_path.exists():
        raise FileNotFoundError(f"ABI not bundled: {abi_path}")

    with abi_path.open("r", encoding="utf-8") as f:
        return json.load(f)


class Abi:
    """Read-only view over a contract ABI (typedefs, structs and actions)."""

    def __init__(self, raw: dict[str, Any]) -> None:
        self.raw = raw
        self._typedefs = {t["new_type_name"]: t["type"] for t in raw.get("types", [])}
        self._structs = {s["name"]: s for s in raw.get("structs", [])}
        self._actions = {a["action_name"]: a["type"] for a in raw.get("actions", [])}

    def resolve_type(self, type_name: str) -> str:
        seen = set()
        while type_name in self._typedefs and type_name not in seen:
            seen.add(type_name)
            type_name = self._typedefs[type_name]
        return type_name

    def is_struct(self, type_name: str) -> bool:
        return self.resolve_type(type_name) in self._structs

    def struct_fields(self, struct_name: str) -> list[tuple[str, str]]:
        """Fields of a struct in declaration order, base struct fields first."""
        struct = self._structs.get(self.resolve_type(struct_name))
        if struct is None:
            raise KeyError(f"Struct {struct_name} not found in ABI")
        fields: list[tuple[str, str]] = []
        if struct.get("base"):
            fields.extend(self.struct_fields(struct["base"]))
        raw_fields = struct.get("fields", [])
        if isinstance(raw_fields, dict):
            fields.extend(raw_fields.items())
        else:
            fields.extend((f["name"], f["type"]) for f in raw_fields)
        return fields

    def action_type(self, action_name: str) -> Optional[str]:
        return self._actions.get(action_name)

    def action_names(self) -> list[str]:
        return list(self._actions)


@dataclass(frozen=True)
class MessageDescriptor:
    """How to build one message type of one contract."""

    code: str
    type: str
    struct: str
    fields: tuple[tuple[str, str], ...]
    account_fields: tuple[str, ...]

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)


class MessageRegistry:
    """Dispatch table from message type to MessageDescriptor for one contract."""

    def __init__(self, code: str, abi: Abi) -> None:
        self.code = code
        self.abi = abi
        self._descriptors: dict[str, MessageDescriptor] = {}
        for action_name in abi.action_names():
            struct = abi.action_type(action_name) or action_name
            fields = tuple(abi.struct_fields(struct))
            account_fields = tuple(
                name for name, type_name in fields
                if type_name in ACCOUNT_TYPES or abi.resolve_type(type_name) in ACCOUNT_TYPES
            )
            self._descriptors[action_name] = MessageDescriptor(
                code=code,
                type=action_name,
                struct=struct,
                fields=fields,
                account_fields=account_fields,
            )

    @classmethod
    def from_abi(cls, code: str, raw_abi: dict[str, Any]) -> "MessageRegistry":
        return cls(code, Abi(raw_abi))

    @classmethod
    def system(cls) -> "MessageRegistry":
        return cls.from_abi(SYSTEM_CONTRACT, load_abi(SYSTEM_CONTRACT))

    def get(self, message_type: str) -> Optional[MessageDescriptor]:
        return self._descriptors.get(message_type)

    def __contains__(self, message_type: object) -> bool:
        return message_type in self._descriptors

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

"""
Transaction builder.

Turns a message invocation such as ``transfer("inita", "initb", 1, "")``
into either a standalone single-message transaction (returned as a
coroutine) or an entry in the open batch (returning None).

Invocation forms:
    builder.transfer("inita", "initb", 1, "")                 positional fields
    builder.transfer({"from": "inita", "to": "initb", ...})   named fields
    builder.transfer("inita", "initb", 1, "", False)          broadcast=False
    builder.transfer("inita", "initb", 1, "", {"scope": [...]})
    builder.transfer("inita", "initb", 1, "", authorization="inita@owner")
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..codec import encode
from ..errors import CodecError, InvalidUsageError
from ..rpc.abi import MessageDescriptor, MessageRegistry
from ..utils import sorted_unique
from .batch import BatchContext
from .models import Authorization, Message, Transaction, TransactionResult

if TYPE_CHECKING:
    from ..client import Client

logger = logging.getLogger(__name__)

OPTION_KEYS = frozenset({"authorization", "scope", "broadcast", "sign", "callback"})


def parse_invocation(
    descriptor: MessageDescriptor, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split invocation arguments into (field data, options)."""
    field_names = descriptor.field_names
    positional = list(args)
    options: dict[str, Any] = {}

    if positional and callable(positional[-1]):
        options["callback"] = positional.pop()

    if positional and isinstance(positional[0], dict) and len(positional) <= 2:
        data = dict(positional[0])
        rest = positional[1:]
    else:
        data = dict(zip(field_names, positional))
        rest = positional[len(field_names):]

    if len(rest) > 1:
        raise InvalidUsageError(
            f"{descriptor.type} takes {len(field_names)} field(s) plus options, "
            f"got {len(positional)} positional argument(s)"
        )
    if rest:
        extra = rest[0]
        if isinstance(extra, bool):
            options["broadcast"] = extra
        elif isinstance(extra, dict):
            options.update(extra)
        else:
            raise InvalidUsageError(f"Unexpected options value: {extra!r}")

    for key, value in kwargs.items():
        if key in OPTION_KEYS:
            options[key] = value
        elif key in field_names:
            data[key] = value
        elif key.rstrip("_") in field_names:
            # from_ -> from
            data[key.rstrip("_")] = value
        else:
            raise InvalidUsageError(f"{descriptor.type} has no field or option {key!r}")

    unknown = set(options) - OPTION_KEYS
    if unknown:
        raise InvalidUsageError(f"Unknown option(s): {', '.join(sorted(unknown))}")
    return data, options


def build_message(
    registry: MessageRegistry,
    descriptor: MessageDescriptor,
    data: dict[str, Any],
    options: dict[str, Any],
) -> tuple[Message, list[str]]:
    """Encode the payload and derive default authorization and scope."""
    hex_data = encode(registry.abi, descriptor.type, data).hex()

    account_values = [data[name] for name in descriptor.account_fields]

    authorization = options.get("authorization")
    if not authorization:
        if not account_values:
            raise InvalidUsageError(
                f"{descriptor.type} has no account field; pass authorization explicitly"
            )
        authorization = Authorization(account_values[0])

    scope = options.get("scope")
    if not scope:
        scope = account_values

    message = Message(
        code=descriptor.code,
        type=descriptor.type,
        data=data,
        authorization=authorization,
        hex_data=hex_data,
    )
    return message, sorted_unique(scope)


def encode_message(registry: MessageRegistry, message: Message) -> Message:
    """
    Fill ``hex_data`` for a message assembled outside the builder.

    String data is taken as already-encoded hex.

    Raises:
        InvalidUsageError: If the contract has no such message type
        CodecError: If the data does not match the message struct
    """
    if message.hex_data is not None:
        return message
    if isinstance(message.data, str):
        try:
            bytes.fromhex(message.data.removeprefix("0x"))
        except ValueError as exc:
            raise CodecError(f"{message.type}: data is not hex: {exc}") from exc
        message.hex_data = message.data.removeprefix("0x")
        return message
    if message.type not in registry:
        raise InvalidUsageError(f"Contract {registry.code} has no message type {message.type!r}")
    message.hex_data = encode(registry.abi, message.type, message.data).hex()
    return message


class TransactionBuilder:
    """
    Callable surface for one contract's message types.

    ``builder.<type>(...)`` and ``builder.invoke("<type>", ...)`` are the
    same thing. A builder bound to a batch always appends to that batch;
    an unbound builder appends to the batch open in the current context,
    or builds a standalone transaction when there is none.
    """

    def __init__(
        self,
        client: "Client",
        registry: MessageRegistry,
        batch: Optional[BatchContext] = None,
    ) -> None:
        self._client = client
        self._registry = registry
        self._batch = batch

    @property
    def code(self) -> str:
        return self._registry.code

    @property
    def registry(self) -> MessageRegistry:
        return self._registry

    @property
    def message_types(self) -> list[str]:
        return list(self._registry)

    def bind(self, batch: BatchContext) -> "TransactionBuilder":
        return type(self)(self._client, self._registry, batch)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_") or name not in self._registry:
            raise AttributeError(f"{type(self).__name__!r} has no message type {name!r}")

        def call(*args: Any, **kwargs: Any) -> Any:
            return self.invoke(name, *args, **kwargs)

        call.__name__ = name
        return call

    def __dir__(self) -> list[str]:
        return [*super().__dir__(), *self._registry]

    def invoke(self, message_type: str, *args: Any, **kwargs: Any) -> Any:
        descriptor = self._registry.get(message_type)
        if descriptor is None:
            raise InvalidUsageError(f"Contract {self.code} has no message type {message_type!r}")

        data, options = parse_invocation(descriptor, args, kwargs)
        callback = options.pop("callback", None)
        batch = self._batch or self._client.coordinator.active

        if batch is not None:
            if callback is not None:
                raise InvalidUsageError("Callback during a transaction")
            if "broadcast" in options or "sign" in options:
                logger.debug("%s: broadcast/sign options ignored inside a batch", message_type)
            message, scope = build_message(self._registry, descriptor, data, options)
            batch.append(message, scope)
            return None

        message, scope = build_message(self._registry, descriptor, data, options)
        transaction = Transaction(scope=scope, messages=[message])
        return self._standalone(transaction, options, callback)

    async def _standalone(
        self,
        transaction: Transaction,
        options: dict[str, Any],
        callback: Optional[Callable[[TransactionResult], Any]],
    ) -> TransactionResult:
        result = await self._client.coordinator.resolver.finalize(
            transaction,
            sign=options.get("sign"),
            broadcast=options.get("broadcast"),
        )
        if callback is not None:
            returned = callback(result)
            if inspect.isawaitable(returned):
                await returned
        return result

    def transaction(
        self,
        callback: Callable[["TransactionBuilder"], Any],
        *,
        sign: Optional[bool] = None,
        broadcast: Optional[bool] = None,
    ) -> Any:
        """Run ``callback`` against this builder inside one atomic transaction."""
        return self._client.coordinator.run(
            callback, self.bind, sign=sign, broadcast=broadcast
        )

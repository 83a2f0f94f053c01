__all__ = [
    # Client
    "Client",
    "ClientConfig",
    # Transactions
    "Authorization",
    "Message",
    "Transaction",
    "TransactionResult",
    "TransactionBuilder",
    "ContractHandle",
    "BatchState",
    "KeyComparison",
    "compare_keys",
    # Chain
    "ChainApi",
    "HttpxTransport",
    "JsonRpcTransport",
    "MessageRegistry",
    # Codec
    "encode",
    "serialize_transaction",
    # Keys
    "generate_key",
    "load_private_key",
    "public_key",
    "sign",
    "static_key_provider",
    "env_key_provider",
    # Errors
    "EosError",
    "BroadcastError",
    "ChainApiError",
    "CodecError",
    "ConfigurationError",
    "InvalidUsageError",
    "RollbackError",
    "SignatureError",
    "UnknownContractError",
]

from .client import Client
from .codec import encode, serialize_transaction
from .config import ClientConfig
from .errors import (
    BroadcastError,
    ChainApiError,
    CodecError,
    ConfigurationError,
    EosError,
    InvalidUsageError,
    RollbackError,
    SignatureError,
    UnknownContractError,
)
from .keys import (
    env_key_provider,
    generate_key,
    load_private_key,
    public_key,
    sign,
    static_key_provider,
)
from .rpc.abi import MessageRegistry
from .rpc.api import ChainApi
from .rpc.transport import HttpxTransport, JsonRpcTransport
from .tx.batch import BatchState
from .tx.builder import TransactionBuilder
from .tx.contract import ContractHandle
from .tx.models import Authorization, Message, Transaction, TransactionResult
from .tx.signing import KeyComparison, compare_keys

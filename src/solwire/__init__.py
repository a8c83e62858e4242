__all__ = [
    # Connection
    "Connection",
    # Transport
    "HttpTransport",
    "RpcTransport",
    # Configuration
    "Commitment",
    "ConfirmOptions",
    "SendOptions",
    "SimulateOptions",
    "cluster_url",
    # Keys
    "Keypair",
    "PublicKey",
    "generate_keypair",
    "load_keypair",
    "save_secret_key",
    # Transactions
    "AccountMeta",
    "Message",
    "Transaction",
    "TransactionInstruction",
    # Errors
    "SolwireError",
    "AccountNotFoundError",
    "MethodNotFoundError",
    "InvalidIdResponseError",
    "GenericRpcError",
    "InputValidationError",
]

from .config import Commitment, ConfirmOptions, SendOptions, SimulateOptions, cluster_url
from .connection import Connection
from .errors import (
    AccountNotFoundError,
    GenericRpcError,
    InputValidationError,
    InvalidIdResponseError,
    MethodNotFoundError,
    SolwireError,
)
from .keys import Keypair, PublicKey, generate_keypair, load_keypair, save_secret_key
from .rpc import HttpTransport, RpcTransport
from .transaction import AccountMeta, Message, Transaction, TransactionInstruction

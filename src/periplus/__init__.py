__all__ = [
    # Client
    "EVMClient",
    "EVMConfig",
    "EVMPlugin",
    "ToolDefinition",
    # Networks
    "COMMON_NETWORKS",
    "NetworkDescriptor",
    "NetworkRegistry",
    # Identities
    "HD_WALLET_COUNT",
    "Identity",
    "IdentityPool",
    "verify_message",
    # Models
    "AccountBalance",
    "BlockInfo",
    "ContractCallResult",
    "ContractTransactionResult",
    "DeployedContract",
    "ENSInfo",
    "EventLog",
    "FeeData",
    "GasEstimation",
    "LogFilter",
    "TransactionReceipt",
    "TransactionRequest",
    "TransactionResult",
    "WalletInfo",
    # Errors
    "ConfigurationError",
    "ConfirmationCancelled",
    "ConfirmationTimeout",
    "InvalidRequestError",
    "NetworkNotConfigured",
    "NoIdentityAvailable",
    "PeriplusError",
    "RpcError",
    "SubmissionError",
    "ToolParameterError",
    "TransactionReverted",
]

from .client import EVMClient
from .config import EVMConfig
from .errors import (
    ConfigurationError,
    ConfirmationCancelled,
    ConfirmationTimeout,
    InvalidRequestError,
    NetworkNotConfigured,
    NoIdentityAvailable,
    PeriplusError,
    RpcError,
    SubmissionError,
    ToolParameterError,
    TransactionReverted,
)
from .plugin import EVMPlugin, ToolDefinition
from .pneuma.networks import COMMON_NETWORKS, NetworkDescriptor, NetworkRegistry
from .sigil.eth import HD_WALLET_COUNT, Identity, IdentityPool, verify_message
from .spec.models import (
    AccountBalance,
    BlockInfo,
    ContractCallResult,
    ContractTransactionResult,
    DeployedContract,
    ENSInfo,
    EventLog,
    FeeData,
    GasEstimation,
    LogFilter,
    TransactionReceipt,
    TransactionRequest,
    TransactionResult,
    WalletInfo,
)

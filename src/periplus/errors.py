"""
Error taxonomy for Periplus.

Every failure surfaced to a caller derives from ``PeriplusError``.  The
``exit_code`` attribute is used by the CLI.  Lookups that find nothing
(missing block, unknown transaction hash) are not errors and return None.
"""

from __future__ import annotations

from typing import Any, Optional


class PeriplusError(RuntimeError):
    exit_code: int = 1


class ConfigurationError(PeriplusError):
    """Malformed network descriptor, key, mnemonic or setting."""

    exit_code = 2


class NetworkNotConfigured(PeriplusError):
    exit_code = 3

    def __init__(self, network: str) -> None:
        super().__init__(f"Network not configured: {network}")
        self.network = network


class NoIdentityAvailable(PeriplusError):
    exit_code = 4

    def __init__(self, address: Optional[str] = None) -> None:
        if address:
            message = f"No wallet available for address: {address}"
        else:
            message = "No wallet available"
        super().__init__(message)
        self.address = address


class SubmissionError(PeriplusError):
    """The node (or the signer) rejected a transaction.  Never retried."""

    exit_code = 5

    def __init__(self, message: str, tx_hash: Optional[str] = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class TransactionReverted(SubmissionError):
    pass


class ConfirmationTimeout(PeriplusError):
    exit_code = 6

    def __init__(self, tx_hash: str, timeout: float) -> None:
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout}s")
        self.tx_hash = tx_hash
        self.timeout = timeout


class ConfirmationCancelled(PeriplusError):
    exit_code = 6

    def __init__(self, tx_hash: str) -> None:
        super().__init__(f"Wait for transaction {tx_hash} was cancelled")
        self.tx_hash = tx_hash


class InvalidRequestError(PeriplusError, ValueError):
    exit_code = 7


class ToolParameterError(InvalidRequestError):
    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class RpcError(PeriplusError):
    """JSON-RPC level failure (transport error or ``error`` member)."""

    exit_code = 8

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


__all__ = [
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

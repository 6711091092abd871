"""
JSON-RPC connection to a single EVM network.

Lightweight alternative to web3.py: uses httpx for HTTP and returns raw
JSON-RPC results (hex QUANTITY strings).  Normalization into result records
happens in the façades.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from typing import Any, Optional, Union

import httpx

from ..errors import (
    ConfigurationError,
    ConfirmationCancelled,
    ConfirmationTimeout,
    RpcError,
)
from ..utils import from_quantity, to_quantity
from .networks import NetworkDescriptor

logger = logging.getLogger(__name__)

BlockTag = Union[int, str]

DEFAULT_TIMEOUT = 30.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 2.0


def _block_param(block: Optional[BlockTag]) -> str:
    if block is None:
        return "latest"
    if isinstance(block, int):
        return to_quantity(block)
    return block


class RpcConnection:
    """
    A live handle to one network's RPC endpoint.

    Args:
        key: Logical network name ("mainnet", "polygon", ...)
        descriptor: Static network description
        timeout: HTTP timeout in seconds
        transport: Optional httpx transport (tests plug a mock node here)

    Raises:
        ConfigurationError: If the RPC URL is malformed or not http(s)
    """

    def __init__(
        self,
        key: str,
        descriptor: NetworkDescriptor,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        try:
            url = httpx.URL(descriptor.rpc_url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise ConfigurationError(f"Invalid RPC URL for {key}: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(
                f"Invalid RPC URL for {key}: {descriptor.rpc_url!r} (http/https required)"
            )

        self.key = key
        self.descriptor = descriptor
        self.url = url
        self._ids = itertools.count(1)
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def __repr__(self) -> str:
        return f"RpcConnection({self.key!r}, chain_id={self.descriptor.chain_id})"

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Raw transport
    # ------------------------------------------------------------------

    def request(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: If the transport fails or the node returns an error
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        logger.debug("%s -> %s", self.key, method)

        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise RpcError(f"RPC transport error ({self.key}): {exc}") from exc
        except ValueError as exc:
            raise RpcError(f"RPC returned invalid JSON ({self.key}): {exc}") from exc

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise RpcError(
                    error.get("message", str(error)),
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(str(error))

        return data.get("result")

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    def chain_id(self) -> int:
        return from_quantity(self.request("eth_chainId"))

    def block_number(self) -> int:
        return from_quantity(self.request("eth_blockNumber"))

    def get_balance(self, address: str, block: Optional[BlockTag] = None) -> int:
        return from_quantity(self.request("eth_getBalance", [address, _block_param(block)]))

    def get_transaction_count(self, address: str, block: Optional[BlockTag] = None) -> int:
        return from_quantity(
            self.request("eth_getTransactionCount", [address, _block_param(block)])
        )

    def gas_price(self) -> int:
        return from_quantity(self.request("eth_gasPrice"))

    def max_priority_fee(self) -> int:
        return from_quantity(self.request("eth_maxPriorityFeePerGas"))

    def get_block(self, block: Optional[BlockTag] = None, full: bool = False) -> Optional[dict]:
        return self.request("eth_getBlockByNumber", [_block_param(block), full])

    def get_transaction(self, tx_hash: str) -> Optional[dict]:
        return self.request("eth_getTransactionByHash", [tx_hash])

    def get_receipt(self, tx_hash: str) -> Optional[dict]:
        return self.request("eth_getTransactionReceipt", [tx_hash])

    def estimate_gas(self, tx: dict) -> int:
        return from_quantity(self.request("eth_estimateGas", [tx]))

    def call(self, tx: dict, block: Optional[BlockTag] = None) -> str:
        return self.request("eth_call", [tx, _block_param(block)])

    def get_logs(self, log_filter: dict) -> list[dict]:
        return self.request("eth_getLogs", [log_filter]) or []

    def send_raw_transaction(self, raw_tx: str) -> str:
        """
        Send a signed raw transaction.

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        return self.request("eth_sendRawTransaction", [raw_tx])

    def wait_for_receipt(
        self,
        tx_hash: str,
        confirmations: int = 1,
        timeout: float = DEFAULT_RECEIPT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        cancel: Optional[threading.Event] = None,
    ) -> dict:
        """
        Wait until a transaction has the requested number of confirmations.

        Args:
            tx_hash: Transaction hash
            confirmations: Blocks on top of (and including) the inclusion block
            timeout: Maximum wait time in seconds
            poll_interval: Polling interval in seconds
            cancel: Event that aborts the wait when set

        Returns:
            Transaction receipt dict

        Raises:
            ConfirmationTimeout: If not confirmed within timeout
            ConfirmationCancelled: If ``cancel`` was set
        """
        start = time.monotonic()
        while True:
            if cancel is not None and cancel.is_set():
                raise ConfirmationCancelled(tx_hash)

            receipt = self.get_receipt(tx_hash)
            if receipt is not None and receipt.get("blockNumber") is not None:
                if confirmations <= 1:
                    return receipt
                included = from_quantity(receipt["blockNumber"])
                if self.block_number() - included + 1 >= confirmations:
                    return receipt

            if time.monotonic() - start >= timeout:
                raise ConfirmationTimeout(tx_hash, timeout)

            # Event.wait doubles as an interruptible sleep
            if cancel is not None:
                cancel.wait(poll_interval)
            else:
                time.sleep(poll_interval)

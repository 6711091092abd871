"""
Transaction Builder - Build, sign, send and confirm EVM transactions.

Uses eth-account for signing and the httpx-based JSON-RPC connection for
sending.  ``send`` blocks until the transaction has one confirmation so a
single call yields a final, inspectable result.

Fee policy (``select_fee_fields``):
1. ``maxFeePerGas`` and ``maxPriorityFeePerGas`` both given → EIP-1559
   (type 2) transaction; any ``gasPrice`` is dropped.
2. else ``gasPrice`` given → legacy transaction.
3. else no fee fields; the builder fills wallet defaults from fee data.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import (
    InvalidRequestError,
    RpcError,
    SubmissionError,
    TransactionReverted,
)
from ..sigil.eth import Identity, IdentityPool
from ..spec.models import (
    FeeData,
    GasEstimation,
    TransactionReceipt,
    TransactionRequest,
    TransactionResult,
)
from ..utils import (
    format_units,
    from_quantity,
    parse_int,
    parse_units,
    to_checksum_address,
    to_quantity,
)
from .pool import ConnectionPool
from .rpc import DEFAULT_POLL_INTERVAL, DEFAULT_RECEIPT_TIMEOUT, RpcConnection

logger = logging.getLogger(__name__)

# ethers' default priority fee when the node has no eth_maxPriorityFeePerGas
DEFAULT_PRIORITY_FEE = 1_000_000_000


def select_fee_fields(
    gas_price: Optional[int],
    max_fee_per_gas: Optional[int],
    max_priority_fee_per_gas: Optional[int],
) -> dict[str, int]:
    """
    Pick the fee fields of a transaction.

    Returns:
        ``{"maxFeePerGas", "maxPriorityFeePerGas"}``, ``{"gasPrice"}`` or ``{}``
    """
    if max_fee_per_gas is not None and max_priority_fee_per_gas is not None:
        return {
            "maxFeePerGas": max_fee_per_gas,
            "maxPriorityFeePerGas": max_priority_fee_per_gas,
        }
    if gas_price is not None:
        return {"gasPrice": gas_price}
    return {}


def get_fee_data(connection: RpcConnection) -> FeeData:
    """
    Current fee data of a network.

    ``max_fee_per_gas`` is ``2 * baseFee + priority`` when the latest block
    carries a base fee; otherwise only ``gas_price`` is reported.
    """
    gas_price = connection.gas_price()
    block = connection.get_block("latest") or {}
    base_fee = from_quantity(block.get("baseFeePerGas"))
    if base_fee is None:
        return FeeData(gas_price=gas_price)

    try:
        priority = connection.max_priority_fee()
    except RpcError:
        priority = DEFAULT_PRIORITY_FEE
    return FeeData(
        gas_price=gas_price,
        max_fee_per_gas=base_fee * 2 + priority,
        max_priority_fee_per_gas=priority,
    )


@dataclass(frozen=True)
class PreparedTransaction:
    """An unsigned transaction and the identity that will sign it."""
    tx: dict[str, Any]
    signer: Identity
    connection: RpcConnection


class TransactionBuilder:
    """
    Builds and submits transactions for the identities of a pool.

    Args:
        connections: Connection pool (fee data, submission)
        identities: Identity pool (signers)
        receipt_timeout: Seconds to wait for the first confirmation
        poll_interval: Receipt polling interval in seconds
    """

    def __init__(
        self,
        connections: ConnectionPool,
        identities: IdentityPool,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.connections = connections
        self.identities = identities
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval

    # ------------------------------------------------------------------
    # Signer resolution
    # ------------------------------------------------------------------

    def resolve_signer(
        self, address: Optional[str] = None, network: Optional[str] = None
    ) -> tuple[RpcConnection, Identity]:
        """
        Resolve (connection, identity) as one consistent pair.

        Held under the pool lock so a concurrent ``switch_to`` cannot hand
        out an identity bound to another network than the one read here.

        Raises:
            NetworkNotConfigured: If the network is absent
            NoIdentityAvailable: If no identity matches
        """
        with self.connections.lock:
            connection = self.connections.get(network)
            identity = self.identities.resolve(address)
            if identity.connection is not connection:
                identity = identity.bind(connection)
        return connection, identity

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def prepare(
        self,
        request: TransactionRequest,
        network: Optional[str] = None,
        fill_defaults: bool = True,
    ) -> PreparedTransaction:
        """
        Build an unsigned transaction dict for ``request``.

        With ``fill_defaults`` the nonce, gas limit, chain id and fee fields
        missing from the request are taken from the node.
        """
        connection, signer = self.resolve_signer(request.from_, network)
        decimals = connection.descriptor.native_currency_decimals

        tx: dict[str, Any] = {
            "from": signer.address,
            "value": parse_units(request.value, decimals),
            "data": request.data or "0x",
        }
        if request.to:
            tx["to"] = to_checksum_address(request.to)

        gas_limit = parse_int(request.gas_limit, "gasLimit")
        if gas_limit is not None:
            tx["gas"] = gas_limit
        if request.nonce is not None:
            tx["nonce"] = request.nonce
        if request.chain_id is not None:
            tx["chainId"] = request.chain_id

        tx.update(
            select_fee_fields(
                parse_int(request.gas_price, "gasPrice"),
                parse_int(request.max_fee_per_gas, "maxFeePerGas"),
                parse_int(request.max_priority_fee_per_gas, "maxPriorityFeePerGas"),
            )
        )

        if fill_defaults:
            try:
                self._fill_defaults(tx, connection)
            except RpcError as exc:
                # nonce / fee / gas estimation rejected by the node
                raise SubmissionError(str(exc)) from exc

        return PreparedTransaction(tx=tx, signer=signer, connection=connection)

    def _fill_defaults(self, tx: dict[str, Any], connection: RpcConnection) -> None:
        if "nonce" not in tx:
            tx["nonce"] = connection.get_transaction_count(tx["from"], "pending")
        if "chainId" not in tx:
            tx["chainId"] = connection.descriptor.chain_id
        if "gasPrice" not in tx and "maxFeePerGas" not in tx:
            fees = get_fee_data(connection)
            tx.update(
                select_fee_fields(
                    fees.gas_price, fees.max_fee_per_gas, fees.max_priority_fee_per_gas
                )
            )
        if "gas" not in tx:
            tx["gas"] = connection.estimate_gas(_to_rpc_call(tx))

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        prepared: PreparedTransaction,
        cancel: Optional[threading.Event] = None,
    ) -> tuple[str, TransactionReceipt]:
        """
        Sign, send and wait for one confirmation.

        Returns:
            Tuple of (tx_hash, receipt)

        Raises:
            SubmissionError: If signing or sending is rejected
            TransactionReverted: If the receipt reports failure
            ConfirmationTimeout / ConfirmationCancelled: From the wait
        """
        tx = dict(prepared.tx)
        tx.pop("from", None)
        try:
            raw_tx, local_hash = prepared.signer.sign_transaction(tx)
        except Exception as exc:
            raise SubmissionError(f"Failed to sign transaction: {exc}") from exc

        try:
            tx_hash = prepared.connection.send_raw_transaction(raw_tx) or local_hash
        except RpcError as exc:
            raise SubmissionError(str(exc)) from exc
        logger.info("Transaction sent: %s", tx_hash)

        raw_receipt = prepared.connection.wait_for_receipt(
            tx_hash,
            timeout=self.receipt_timeout,
            poll_interval=self.poll_interval,
            cancel=cancel,
        )
        receipt = TransactionReceipt.from_rpc(raw_receipt)
        logger.info("Transaction confirmed in block %s", receipt.block_number)

        if receipt.status == 0:
            raise TransactionReverted(f"Transaction reverted: {tx_hash}", tx_hash=tx_hash)
        return tx_hash, receipt

    def send(
        self,
        request: TransactionRequest,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TransactionResult:
        """
        Send native currency (or raw calldata) and wait for confirmation.

        Raises:
            NoIdentityAvailable: If no signer matches ``request.from_``
            InvalidRequestError: If an amount or fee field is malformed
            SubmissionError: If the node rejects the transaction
        """
        if not request.to:
            raise InvalidRequestError("Recipient address (to) is required")

        prepared = self.prepare(request, network)

        tx = prepared.tx
        symbol = prepared.connection.descriptor.native_currency_symbol
        logger.info(
            "Sending %s %s from %s to %s", request.value or "0", symbol, tx["from"], tx["to"]
        )
        tx_hash, receipt = self.submit(prepared, cancel=cancel)

        return TransactionResult(
            hash=tx_hash,
            from_=tx["from"],
            to=tx["to"],
            value=str(tx["value"]),
            data=tx["data"],
            gas_limit=str(tx["gas"]),
            nonce=tx["nonce"],
            chain_id=tx["chainId"],
            gas_price=_opt_str(tx.get("gasPrice")),
            max_fee_per_gas=_opt_str(tx.get("maxFeePerGas")),
            max_priority_fee_per_gas=_opt_str(tx.get("maxPriorityFeePerGas")),
            block_number=receipt.block_number,
            block_hash=receipt.block_hash,
            status=receipt.status,
        )

    # ------------------------------------------------------------------
    # Estimation
    # ------------------------------------------------------------------

    def estimate_gas(
        self, request: TransactionRequest, network: Optional[str] = None
    ) -> GasEstimation:
        """
        Estimate gas and cost for ``request`` without signing.

        The sender is the requested address, else the default identity if
        the pool has one, else omitted.
        """
        connection = self.connections.get(network)
        decimals = connection.descriptor.native_currency_decimals

        call: dict[str, Any] = {
            "value": to_quantity(parse_units(request.value, decimals)),
            "data": request.data or "0x",
        }
        if request.to:
            call["to"] = to_checksum_address(request.to)
        sender = request.from_
        if sender is None and len(self.identities):
            sender = self.identities.resolve().address
        if sender:
            call["from"] = to_checksum_address(sender)

        gas_limit = connection.estimate_gas(call)
        fees = get_fee_data(connection)

        if fees.supports_eip1559:
            return GasEstimation(
                gas_limit=str(gas_limit),
                max_fee_per_gas=str(fees.max_fee_per_gas),
                max_priority_fee_per_gas=str(fees.max_priority_fee_per_gas),
                estimated_cost=format_units(gas_limit * fees.max_fee_per_gas, decimals),
            )
        if fees.gas_price is not None:
            return GasEstimation(
                gas_limit=str(gas_limit),
                gas_price=str(fees.gas_price),
                estimated_cost=format_units(gas_limit * fees.gas_price, decimals),
            )
        return GasEstimation(gas_limit=str(gas_limit), estimated_cost="0")


def _opt_str(value: Optional[int]) -> Optional[str]:
    return None if value is None else str(value)


def _to_rpc_call(tx: dict[str, Any]) -> dict[str, Any]:
    """Render a transaction dict as an ``eth_call``/``eth_estimateGas`` object."""
    call: dict[str, Any] = {}
    for key, value in tx.items():
        if key in ("nonce", "chainId", "gas"):
            continue
        call[key] = to_quantity(value) if isinstance(value, int) else value
    return call


__all__ = [
    "DEFAULT_PRIORITY_FEE",
    "PreparedTransaction",
    "TransactionBuilder",
    "get_fee_data",
    "select_fee_fields",
]

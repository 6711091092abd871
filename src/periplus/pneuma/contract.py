"""
Contract Façade - dynamic contract calls, transactions and deployment.

``call`` and ``send_transaction`` never raise: any failure is reported in
the ``error`` field so one bad method/argument combination cannot abort a
batch of agent-directed calls.  ``deploy`` does not soften failures and
propagates them.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from ..errors import SubmissionError
from ..spec.models import (
    ContractCallResult,
    ContractTransactionResult,
    DeployedContract,
    TransactionRequest,
)
from ..utils import to_checksum_address
from .abi import (
    decode_function_result,
    encode_deployment,
    encode_function_call,
    find_function,
    named_outputs,
    to_json_safe,
)
from .pool import ConnectionPool
from .tx import TransactionBuilder

logger = logging.getLogger(__name__)


class ContractFacade:
    def __init__(self, connections: ConnectionPool, builder: TransactionBuilder) -> None:
        self.connections = connections
        self.builder = builder

    def call(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: Optional[list] = None,
        network: Optional[str] = None,
    ) -> ContractCallResult:
        """Read-only invocation (``eth_call``) against the latest block."""
        args = list(args or [])
        try:
            connection = self.connections.get(network)
            calldata = encode_function_call(abi, method, args)
            data = connection.call({"to": to_checksum_address(address), "data": calldata})
            entry = find_function(abi, method, len(args))
            values = decode_function_result(abi, method, data or "0x", len(args))
        except Exception as exc:
            logger.debug("Contract call %s on %s failed: %s", method, address, exc)
            return ContractCallResult(result=None, error=str(exc))

        if not values:
            return ContractCallResult(result=None, decoded=None)
        result = to_json_safe(values[0]) if len(values) == 1 else to_json_safe(list(values))
        return ContractCallResult(result=result, decoded=named_outputs(entry, values))

    def send_transaction(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        args: Optional[list] = None,
        from_: Optional[str] = None,
        value: Optional[str] = None,
        gas_limit: Optional[str] = None,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ContractTransactionResult:
        """State-changing invocation; blocks for one confirmation."""
        args = list(args or [])
        tx_hash = ""
        try:
            calldata = encode_function_call(abi, method, args)
            request = TransactionRequest(
                to=address, from_=from_, value=value, data=calldata, gas_limit=gas_limit
            )
            prepared = self.builder.prepare(request, network)
            logger.info("Calling %s on %s", method, address)
            tx_hash, receipt = self.builder.submit(prepared, cancel=cancel)
        except Exception as exc:
            # broadcast but unconfirmed or reverted: keep the in-flight hash
            tx_hash = getattr(exc, "tx_hash", None) or tx_hash
            logger.error("Contract transaction %s on %s failed: %s", method, address, exc)
            return ContractTransactionResult(
                hash=tx_hash,
                from_="",
                to=address,
                value="0",
                data="0x",
                error=str(exc),
            )

        tx = prepared.tx
        return ContractTransactionResult(
            hash=tx_hash,
            from_=tx["from"],
            to=tx["to"],
            value=str(tx["value"]),
            data=tx["data"],
            receipt=receipt,
        )

    def deploy(
        self,
        abi: list[dict[str, Any]],
        bytecode: str,
        args: Optional[list] = None,
        from_: Optional[str] = None,
        gas_limit: Optional[str] = None,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> DeployedContract:
        """
        Deploy a contract and wait until its address is assigned.

        Raises:
            NoIdentityAvailable: If no signer matches ``from_``
            SubmissionError: If the creation transaction is rejected or reverts
        """
        data = encode_deployment(abi, bytecode, list(args or []))
        request = TransactionRequest(to=None, from_=from_, data=data, gas_limit=gas_limit)
        prepared = self.builder.prepare(request, network)

        logger.info("Deploying contract...")
        tx_hash, receipt = self.builder.submit(prepared, cancel=cancel)
        logger.info("Contract deployment tx: %s", tx_hash)

        if not receipt.contract_address:
            raise SubmissionError(
                f"No contract address in receipt of {tx_hash}", tx_hash=tx_hash
            )
        address = to_checksum_address(receipt.contract_address)
        logger.info("Contract deployed at: %s", address)
        return DeployedContract(address=address, abi=abi, transaction_hash=tx_hash)

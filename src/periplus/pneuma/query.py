"""
Read-only queries against a network.  No identity is needed.

Lookups that find nothing (unknown block, unknown transaction hash) return
None rather than raising.
"""

from __future__ import annotations

import threading
from typing import Optional

from ..spec.models import (
    AccountBalance,
    BlockInfo,
    ENSInfo,
    EventLog,
    FeeData,
    LogFilter,
    TransactionResult,
)
from ..utils import format_units, to_checksum_address
from .ens import resolve_name
from .networks import NetworkDescriptor
from .pool import ConnectionPool
from .rpc import DEFAULT_POLL_INTERVAL, DEFAULT_RECEIPT_TIMEOUT
from .tx import get_fee_data


class QueryFacade:
    def __init__(
        self,
        connections: ConnectionPool,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.connections = connections
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval

    def get_balance(self, address: str, network: Optional[str] = None) -> AccountBalance:
        """Native balance (wei and formatted) plus the confirmed nonce."""
        connection = self.connections.get(network)
        address = to_checksum_address(address)
        balance = connection.get_balance(address)
        nonce = connection.get_transaction_count(address)
        return AccountBalance(
            address=address,
            balance=str(balance),
            formatted_balance=format_units(
                balance, connection.descriptor.native_currency_decimals
            ),
            nonce=nonce,
        )

    def get_block(
        self, block_number: Optional[int] = None, network: Optional[str] = None
    ) -> Optional[BlockInfo]:
        """Block by number, latest if omitted; None if it does not exist."""
        raw = self.connections.get(network).get_block(block_number)
        if raw is None:
            return None
        return BlockInfo.from_rpc(raw)

    def get_transaction(
        self,
        tx_hash: str,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[TransactionResult]:
        """
        Transaction by hash with its receipt attached.

        Waits for inclusion if the transaction is still pending.
        """
        connection = self.connections.get(network)
        raw = connection.get_transaction(tx_hash)
        if raw is None:
            return None
        receipt = connection.wait_for_receipt(
            tx_hash,
            timeout=self.receipt_timeout,
            poll_interval=self.poll_interval,
            cancel=cancel,
        )
        return TransactionResult.from_rpc(raw, receipt)

    def get_logs(self, log_filter: LogFilter, network: Optional[str] = None) -> list[EventLog]:
        raw_logs = self.connections.get(network).get_logs(log_filter.to_rpc())
        return [EventLog.from_rpc(raw) for raw in raw_logs]

    def resolve_name(self, name: str, network: Optional[str] = None) -> ENSInfo:
        return resolve_name(self.connections.get(network), name)

    def get_fee_data(self, network: Optional[str] = None) -> FeeData:
        return get_fee_data(self.connections.get(network))

    def get_network(self, network: Optional[str] = None) -> Optional[NetworkDescriptor]:
        """Descriptor matching the chain id the node reports, if registered."""
        chain_id = self.connections.get(network).chain_id()
        return self.connections.registry.find_by_chain_id(chain_id)

    def wait_for_transaction(
        self,
        tx_hash: str,
        confirmations: int = 1,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> dict:
        return self.connections.get(network).wait_for_receipt(
            tx_hash,
            confirmations=confirmations,
            timeout=self.receipt_timeout,
            poll_interval=self.poll_interval,
            cancel=cancel,
        )

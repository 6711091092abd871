"""
EVM client - composition root of Periplus.

Wires the network registry, connection pool, identity pool and the
transaction / query / contract façades together.  Every operation takes
an optional ``network`` argument; when omitted the pool's current network
at call time is used.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

import httpx

from .config import EVMConfig
from .pneuma.contract import ContractFacade
from .pneuma.networks import NetworkDescriptor, NetworkRegistry
from .pneuma.pool import ConnectionPool
from .pneuma.query import QueryFacade
from .pneuma.tx import TransactionBuilder
from .sigil.eth import Identity, IdentityPool, verify_message
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
    TransactionRequest,
    TransactionResult,
    WalletInfo,
)

logger = logging.getLogger(__name__)


def _wallet_info(identity: Identity) -> WalletInfo:
    return WalletInfo(
        address=identity.address,
        public_key=identity.public_key,
        private_key=identity.private_key,
        mnemonic=identity.mnemonic,
        path=identity.derivation_path if identity.mnemonic else None,
    )


class EVMClient:
    """
    Multi-network EVM client.

    Args:
        config: Client configuration (default: ``EVMConfig.from_env()``)
        transport: Optional httpx transport shared by every connection
    """

    def __init__(
        self,
        config: Optional[EVMConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config or EVMConfig.from_env()

        self.registry = NetworkRegistry(self.config.networks)
        self.registry.with_rpc_overrides(self.config.rpc_overrides)

        self.connections = ConnectionPool(
            self.registry,
            default_network=self.config.default_network,
            timeout=self.config.provider_timeout,
            transport=transport,
        )

        initial = (
            self.connections.get() if self.connections.current in self.connections else None
        )
        self.identities = IdentityPool(
            initial,
            private_keys=self.config.private_keys,
            mnemonic=self.config.mnemonic,
            hd_path=self.config.hd_path,
            account_index=self.config.account_index,
            lock=self.connections.lock,
        )
        self.connections.on_switch(self.identities.rebind)

        self.transactions = TransactionBuilder(
            self.connections,
            self.identities,
            receipt_timeout=self.config.receipt_timeout,
            poll_interval=self.config.poll_interval,
        )
        self.queries = QueryFacade(
            self.connections,
            receipt_timeout=self.config.receipt_timeout,
            poll_interval=self.config.poll_interval,
        )
        self.contracts = ContractFacade(self.connections, self.transactions)

    def __enter__(self) -> "EVMClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.connections.close()

    # ============ Networks ============

    @property
    def current_network(self) -> str:
        return self.connections.current

    def switch_network(self, network: str) -> None:
        """
        Switch the current network and rebind every identity to it.

        Raises:
            NetworkNotConfigured: If the network is not in the pool
        """
        self.connections.switch_to(network)

    def get_network(self, network: Optional[str] = None) -> Optional[NetworkDescriptor]:
        return self.queries.get_network(network)

    # ============ Queries ============

    def get_balance(self, address: str, network: Optional[str] = None) -> AccountBalance:
        return self.queries.get_balance(address, network)

    def get_block(
        self, block_number: Optional[int] = None, network: Optional[str] = None
    ) -> Optional[BlockInfo]:
        return self.queries.get_block(block_number, network)

    def get_transaction(
        self,
        tx_hash: str,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[TransactionResult]:
        return self.queries.get_transaction(tx_hash, network, cancel=cancel)

    def get_logs(self, log_filter: LogFilter, network: Optional[str] = None) -> list[EventLog]:
        return self.queries.get_logs(log_filter, network)

    def resolve_ens(self, name: str, network: Optional[str] = None) -> ENSInfo:
        return self.queries.resolve_name(name, network)

    def get_gas_prices(self, network: Optional[str] = None) -> FeeData:
        return self.queries.get_fee_data(network)

    def wait_for_transaction(
        self,
        tx_hash: str,
        confirmations: int = 1,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> dict:
        return self.queries.wait_for_transaction(tx_hash, confirmations, network, cancel=cancel)

    # ============ Transactions ============

    def send_transaction(
        self,
        request: TransactionRequest,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TransactionResult:
        return self.transactions.send(request, network, cancel=cancel)

    def estimate_gas(
        self, request: TransactionRequest, network: Optional[str] = None
    ) -> GasEstimation:
        return self.transactions.estimate_gas(request, network)

    # ============ Wallets ============

    def create_wallet(self) -> WalletInfo:
        return _wallet_info(self.identities.create())

    def import_wallet(self, private_key: str) -> WalletInfo:
        return _wallet_info(self.identities.import_key(private_key))

    def get_wallet_addresses(self) -> list[str]:
        return self.identities.addresses()

    def get_identity(self, address: Optional[str] = None) -> Identity:
        return self.identities.resolve(address)

    def sign_message(self, message: str, address: Optional[str] = None) -> str:
        return self.identities.sign_message(message, address)

    def verify_message(self, message: str, signature: str) -> str:
        return verify_message(message, signature)

    # ============ Contracts ============

    def call_contract(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        params: Optional[list] = None,
        network: Optional[str] = None,
    ) -> ContractCallResult:
        return self.contracts.call(address, abi, method, params, network=network)

    def send_contract_transaction(
        self,
        address: str,
        abi: list[dict[str, Any]],
        method: str,
        params: Optional[list] = None,
        from_: Optional[str] = None,
        value: Optional[str] = None,
        gas_limit: Optional[str] = None,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ContractTransactionResult:
        return self.contracts.send_transaction(
            address,
            abi,
            method,
            params,
            from_=from_,
            value=value,
            gas_limit=gas_limit,
            network=network,
            cancel=cancel,
        )

    def deploy_contract(
        self,
        abi: list[dict[str, Any]],
        bytecode: str,
        params: Optional[list] = None,
        from_: Optional[str] = None,
        gas_limit: Optional[str] = None,
        network: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> DeployedContract:
        return self.contracts.deploy(
            abi,
            bytecode,
            params,
            from_=from_,
            gas_limit=gas_limit,
            network=network,
            cancel=cancel,
        )

"""
Shared fixtures: an in-process JSON-RPC node served through httpx.MockTransport.

Every configured network points at ``http://<network>.node.test``; the fake
node answers with the chain id of that network, so tests can tell which
connection a request went through.
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Optional

import httpx
import pytest
from eth_account import Account
from eth_abi import encode

from periplus.client import EVMClient
from periplus.config import EVMConfig
from periplus.pneuma.networks import COMMON_NETWORKS
from periplus.utils import hexlify, keccak256, to_quantity, unhexlify

# Well-known development keys (hardhat / anvil defaults)
TEST_MNEMONIC = "test test test test test test test test test test test junk"
TEST_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
SECOND_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
SECOND_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

RECIPIENT = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"

GWEI = 10**9
HEAD_BLOCK = 1000
BASE_FEE = 10 * GWEI
GAS_PRICE = 20 * GWEI
PRIORITY_FEE = 2 * GWEI
TRANSFER_GAS = 21_000


def node_url(network: str) -> str:
    return f"http://{network}.node.test"


class FakeNode:
    """
    Minimal JSON-RPC node shared by every network.

    Attributes are plain dicts/lists so tests can seed state directly.
    """

    def __init__(self) -> None:
        self.chain_ids = {name: d.chain_id for name, d in COMMON_NETWORKS.items()}
        self.head = HEAD_BLOCK
        self.eip1559 = True
        self.balances: dict[str, int] = {}
        self.nonces: dict[str, int] = {}
        self.transactions: dict[str, dict[str, Any]] = {}
        self.receipts: dict[str, dict[str, Any]] = {}
        self.logs: list[dict[str, Any]] = []
        self.call_results: dict[str, str] = {}
        self.reverting_selectors: set[str] = set()
        self.revert_next_tx = False
        self.deploy_address: Optional[str] = None
        self.withhold_receipts = False
        self.sent: list[tuple[str, str]] = []
        self.requests: list[tuple[str, str, list]] = []

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        network = request.url.host.split(".")[0]
        payload = json.loads(request.content)
        method = payload["method"]
        params = payload.get("params", [])
        self.requests.append((network, method, params))

        handler = getattr(self, "rpc_" + method, None)
        if handler is None:
            body = {"error": {"code": -32601, "message": f"Method not found: {method}"}}
        else:
            try:
                body = {"result": handler(network, *params)}
            except NodeError as exc:
                body = {"error": {"code": exc.code, "message": str(exc), "data": exc.data}}

        body.update({"jsonrpc": "2.0", "id": payload["id"]})
        return httpx.Response(200, json=body)

    def methods(self, network: Optional[str] = None) -> list[str]:
        return [m for n, m, _ in self.requests if network is None or n == network]

    # ------------------------------------------------------------------
    # eth_* handlers
    # ------------------------------------------------------------------

    def rpc_eth_chainId(self, network: str) -> str:
        return to_quantity(self.chain_ids[network])

    def rpc_eth_blockNumber(self, network: str) -> str:
        return to_quantity(self.head)

    def rpc_eth_getBalance(self, network: str, address: str, block: str) -> str:
        return to_quantity(self.balances.get(address.lower(), 0))

    def rpc_eth_getTransactionCount(self, network: str, address: str, block: str) -> str:
        return to_quantity(self.nonces.get(address.lower(), 0))

    def rpc_eth_gasPrice(self, network: str) -> str:
        return to_quantity(GAS_PRICE)

    def rpc_eth_maxPriorityFeePerGas(self, network: str) -> str:
        if not self.eip1559:
            raise NodeError("Method not found", code=-32601)
        return to_quantity(PRIORITY_FEE)

    def rpc_eth_getBlockByNumber(self, network: str, tag: str, full: bool) -> Optional[dict]:
        number = self.head if tag in ("latest", "pending") else int(tag, 16)
        if number > self.head:
            return None
        block = {
            "number": to_quantity(number),
            "hash": hexlify(keccak256(f"{network}:{number}".encode())),
            "parentHash": hexlify(keccak256(f"{network}:{number - 1}".encode())),
            "timestamp": to_quantity(1_700_000_000 + number * 12),
            "gasLimit": to_quantity(30_000_000),
            "gasUsed": to_quantity(12_345_678),
            "transactions": [],
        }
        if self.eip1559:
            block["baseFeePerGas"] = to_quantity(BASE_FEE)
        return block

    def rpc_eth_estimateGas(self, network: str, call: dict) -> str:
        selector = (call.get("data") or "0x")[:10]
        if selector in self.reverting_selectors:
            raise NodeError("execution reverted", code=3, data="0x")
        return to_quantity(TRANSFER_GAS)

    def rpc_eth_call(self, network: str, call: dict, block: str = "latest") -> str:
        selector = (call.get("data") or "0x")[:10]
        if selector in self.reverting_selectors:
            raise NodeError("execution reverted", code=3, data="0x")
        return self.call_results.get(selector, "0x")

    def rpc_eth_getLogs(self, network: str, log_filter: dict) -> list[dict]:
        return list(self.logs)

    def rpc_eth_sendRawTransaction(self, network: str, raw_tx: str) -> str:
        tx_hash = hexlify(keccak256(unhexlify(raw_tx)))
        sender = Account.recover_transaction(raw_tx)
        self.nonces[sender.lower()] = self.nonces.get(sender.lower(), 0) + 1
        self.sent.append((network, raw_tx))

        self.head += 1
        if not self.withhold_receipts:
            self.receipts[tx_hash] = {
                "transactionHash": tx_hash,
                "blockNumber": to_quantity(self.head),
                "blockHash": hexlify(keccak256(f"{network}:{self.head}".encode())),
                "status": "0x0" if self.revert_next_tx else "0x1",
                "gasUsed": to_quantity(TRANSFER_GAS),
                "effectiveGasPrice": to_quantity(BASE_FEE + PRIORITY_FEE),
                "contractAddress": self.deploy_address,
                "logs": [],
            }
        self.revert_next_tx = False
        return tx_hash

    def rpc_eth_getTransactionReceipt(self, network: str, tx_hash: str) -> Optional[dict]:
        return self.receipts.get(tx_hash)

    def rpc_eth_getTransactionByHash(self, network: str, tx_hash: str) -> Optional[dict]:
        return self.transactions.get(tx_hash)

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def set_call_result(self, selector: bytes, types: list[str], values: list[Any]) -> None:
        self.call_results[hexlify(selector)] = hexlify(encode(types, values))


class NodeError(Exception):
    def __init__(self, message: str, code: int = -32000, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


def make_config(**overrides: Any) -> EVMConfig:
    """Configuration pointing every built-in network at the fake node."""
    settings: dict[str, Any] = {
        "rpc_overrides": {name: node_url(name) for name in COMMON_NETWORKS},
        "private_keys": [TEST_KEY],
        "receipt_timeout": 1.0,
        "poll_interval": 0.01,
    }
    settings.update(overrides)
    return EVMConfig(**settings)


@pytest.fixture()
def node() -> FakeNode:
    return FakeNode()


@pytest.fixture()
def client(node: FakeNode) -> Iterator[EVMClient]:
    with EVMClient(make_config(), transport=node.transport()) as evm:
        yield evm

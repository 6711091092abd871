"""
Request and result records exchanged with Periplus callers.

Results normalize raw JSON-RPC objects: chain integers that may exceed
53 bits (values, balances, gas and fee figures) become decimal strings;
block numbers, nonces, chain ids and indices stay ints.  ``to_dict()``
renders the camelCase JSON shape used at the tool boundary and omits
absent optional fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..utils import from_quantity, parse_int, to_decimal_str, to_quantity


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None or value == "" else str(value)


# ============ Requests ============


@dataclass(frozen=True)
class TransactionRequest:
    """
    A native-currency transfer (or raw call) to submit.

    ``value`` is in whole native-currency units ("0.1").  Gas and fee fields
    are decimal strings in base units (wei).  If both ``gas_price`` and a
    complete EIP-1559 pair are given, the pair wins.
    """
    to: Optional[str]
    from_: Optional[str] = None
    value: Optional[str] = None
    data: Optional[str] = None
    gas_limit: Optional[str] = None
    gas_price: Optional[str] = None
    max_fee_per_gas: Optional[str] = None
    max_priority_fee_per_gas: Optional[str] = None
    nonce: Optional[int] = None
    chain_id: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TransactionRequest":
        return cls(
            to=payload.get("to"),
            from_=payload.get("from"),
            value=_opt_str(payload.get("value")),
            data=payload.get("data"),
            gas_limit=_opt_str(payload.get("gasLimit")),
            gas_price=_opt_str(payload.get("gasPrice")),
            max_fee_per_gas=_opt_str(payload.get("maxFeePerGas")),
            max_priority_fee_per_gas=_opt_str(payload.get("maxPriorityFeePerGas")),
            nonce=parse_int(payload.get("nonce"), "nonce"),
            chain_id=parse_int(payload.get("chainId"), "chainId"),
        )


@dataclass(frozen=True)
class LogFilter:
    address: Optional[str] = None
    from_block: Optional[int] = None
    to_block: Optional[int] = None
    topics: Optional[list[Optional[str]]] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LogFilter":
        topics = payload.get("topics")
        return cls(
            address=payload.get("address"),
            from_block=parse_int(payload.get("fromBlock"), "fromBlock"),
            to_block=parse_int(payload.get("toBlock"), "toBlock"),
            topics=list(topics) if topics is not None else None,
        )

    def to_rpc(self) -> dict[str, Any]:
        return _compact(
            {
                "address": self.address,
                "fromBlock": to_quantity(self.from_block) if self.from_block is not None else None,
                "toBlock": to_quantity(self.to_block) if self.to_block is not None else None,
                "topics": self.topics,
            }
        )


@dataclass(frozen=True)
class ContractCallRequest:
    address: str
    abi: list[dict[str, Any]]
    method: str
    params: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ContractTransactionRequest:
    address: str
    abi: list[dict[str, Any]]
    method: str
    params: list[Any] = field(default_factory=list)
    from_: Optional[str] = None
    value: Optional[str] = None
    gas_limit: Optional[str] = None


@dataclass(frozen=True)
class DeployRequest:
    abi: list[dict[str, Any]]
    bytecode: str
    params: list[Any] = field(default_factory=list)
    from_: Optional[str] = None
    gas_limit: Optional[str] = None


# ============ Results ============


@dataclass(frozen=True)
class EventLog:
    address: str
    topics: list[str]
    data: str
    block_number: Optional[int]
    transaction_hash: Optional[str]
    transaction_index: Optional[int]
    log_index: Optional[int]
    removed: bool = False

    @classmethod
    def from_rpc(cls, raw: Mapping[str, Any]) -> "EventLog":
        return cls(
            address=raw.get("address", ""),
            topics=list(raw.get("topics") or []),
            data=raw.get("data", "0x"),
            block_number=from_quantity(raw.get("blockNumber")),
            transaction_hash=raw.get("transactionHash"),
            transaction_index=from_quantity(raw.get("transactionIndex")),
            log_index=from_quantity(raw.get("logIndex")),
            removed=bool(raw.get("removed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "topics": list(self.topics),
            "data": self.data,
            "blockNumber": self.block_number,
            "transactionHash": self.transaction_hash,
            "transactionIndex": self.transaction_index,
            "logIndex": self.log_index,
            "removed": self.removed,
        }


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_hash: str
    block_number: int
    block_hash: str
    status: Optional[int]
    gas_used: Optional[str]
    effective_gas_price: Optional[str] = None
    contract_address: Optional[str] = None
    logs: list[EventLog] = field(default_factory=list)

    @classmethod
    def from_rpc(cls, raw: Mapping[str, Any]) -> "TransactionReceipt":
        return cls(
            transaction_hash=raw.get("transactionHash", ""),
            block_number=from_quantity(raw.get("blockNumber")),
            block_hash=raw.get("blockHash", ""),
            status=from_quantity(raw.get("status")),
            gas_used=to_decimal_str(raw.get("gasUsed")),
            effective_gas_price=to_decimal_str(raw.get("effectiveGasPrice")),
            contract_address=raw.get("contractAddress"),
            logs=[EventLog.from_rpc(log) for log in raw.get("logs") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "transactionHash": self.transaction_hash,
                "blockNumber": self.block_number,
                "blockHash": self.block_hash,
                "status": self.status,
                "gasUsed": self.gas_used,
                "effectiveGasPrice": self.effective_gas_price,
                "contractAddress": self.contract_address,
                "logs": [log.to_dict() for log in self.logs],
            }
        )


@dataclass(frozen=True)
class TransactionResult:
    hash: str
    from_: str
    to: str
    value: str
    data: str
    gas_limit: str
    nonce: int
    chain_id: int
    gas_price: Optional[str] = None
    max_fee_per_gas: Optional[str] = None
    max_priority_fee_per_gas: Optional[str] = None
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def from_rpc(
        cls, tx: Mapping[str, Any], receipt: Optional[Mapping[str, Any]] = None
    ) -> "TransactionResult":
        """Normalize an ``eth_getTransactionByHash`` object (+ receipt)."""
        receipt = receipt or {}
        return cls(
            hash=tx["hash"],
            from_=tx.get("from", ""),
            to=tx.get("to") or "",
            value=to_decimal_str(tx.get("value")) or "0",
            data=tx.get("input", tx.get("data", "0x")),
            gas_limit=to_decimal_str(tx.get("gas")) or "0",
            nonce=from_quantity(tx.get("nonce")) or 0,
            chain_id=from_quantity(tx.get("chainId")) or 0,
            gas_price=None if tx.get("maxFeePerGas") else to_decimal_str(tx.get("gasPrice")),
            max_fee_per_gas=to_decimal_str(tx.get("maxFeePerGas")),
            max_priority_fee_per_gas=to_decimal_str(tx.get("maxPriorityFeePerGas")),
            block_number=from_quantity(receipt.get("blockNumber", tx.get("blockNumber"))),
            block_hash=receipt.get("blockHash", tx.get("blockHash")),
            status=from_quantity(receipt.get("status")),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "hash": self.hash,
                "from": self.from_,
                "to": self.to,
                "value": self.value,
                "data": self.data,
                "gasLimit": self.gas_limit,
                "gasPrice": self.gas_price,
                "maxFeePerGas": self.max_fee_per_gas,
                "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
                "nonce": self.nonce,
                "chainId": self.chain_id,
                "blockNumber": self.block_number,
                "blockHash": self.block_hash,
                "status": self.status,
            }
        )


@dataclass(frozen=True)
class AccountBalance:
    address: str
    balance: str
    formatted_balance: str
    nonce: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "balance": self.balance,
            "formattedBalance": self.formatted_balance,
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class FeeData:
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    @property
    def supports_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None and self.max_priority_fee_per_gas is not None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "gasPrice": _opt_str(self.gas_price),
                "maxFeePerGas": _opt_str(self.max_fee_per_gas),
                "maxPriorityFeePerGas": _opt_str(self.max_priority_fee_per_gas),
            }
        )


@dataclass(frozen=True)
class GasEstimation:
    gas_limit: str
    estimated_cost: str
    gas_price: Optional[str] = None
    max_fee_per_gas: Optional[str] = None
    max_priority_fee_per_gas: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "gasLimit": self.gas_limit,
                "gasPrice": self.gas_price,
                "maxFeePerGas": self.max_fee_per_gas,
                "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
                "estimatedCost": self.estimated_cost,
            }
        )


@dataclass(frozen=True)
class BlockInfo:
    number: int
    hash: str
    parent_hash: str
    timestamp: int
    gas_limit: str
    gas_used: str
    base_fee_per_gas: Optional[str] = None
    transactions: list[str] = field(default_factory=list)

    @classmethod
    def from_rpc(cls, raw: Mapping[str, Any]) -> "BlockInfo":
        transactions = [
            tx if isinstance(tx, str) else tx.get("hash", "")
            for tx in raw.get("transactions") or []
        ]
        return cls(
            number=from_quantity(raw.get("number")),
            hash=raw.get("hash") or "",
            parent_hash=raw.get("parentHash", ""),
            timestamp=from_quantity(raw.get("timestamp")),
            gas_limit=to_decimal_str(raw.get("gasLimit")) or "0",
            gas_used=to_decimal_str(raw.get("gasUsed")) or "0",
            base_fee_per_gas=to_decimal_str(raw.get("baseFeePerGas")),
            transactions=transactions,
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "number": self.number,
                "hash": self.hash,
                "parentHash": self.parent_hash,
                "timestamp": self.timestamp,
                "gasLimit": self.gas_limit,
                "gasUsed": self.gas_used,
                "baseFeePerGas": self.base_fee_per_gas,
                "transactions": list(self.transactions),
            }
        )


@dataclass(frozen=True)
class ENSInfo:
    name: str
    address: Optional[str] = None
    resolver: Optional[str] = None
    avatar: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "name": self.name,
                "address": self.address,
                "resolver": self.resolver,
                "avatar": self.avatar,
            }
        )


@dataclass(frozen=True)
class WalletInfo:
    """Key material of a created or imported wallet.  The only record with secrets."""
    address: str
    public_key: str
    private_key: Optional[str] = field(default=None, repr=False)
    mnemonic: Optional[str] = field(default=None, repr=False)
    path: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "address": self.address,
                "privateKey": self.private_key,
                "publicKey": self.public_key,
                "mnemonic": self.mnemonic,
                "path": self.path,
            }
        )


@dataclass(frozen=True)
class ContractCallResult:
    result: Any
    decoded: Any = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"result": self.result}
        if self.error is None:
            payload["decoded"] = self.decoded
        else:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class ContractTransactionResult:
    hash: str
    from_: str
    to: str
    value: str
    data: str
    receipt: Optional[TransactionReceipt] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "hash": self.hash,
                "from": self.from_,
                "to": self.to,
                "value": self.value,
                "data": self.data,
                "receipt": self.receipt.to_dict() if self.receipt else None,
                "error": self.error,
            }
        )


@dataclass(frozen=True)
class DeployedContract:
    address: str
    abi: list[dict[str, Any]]
    transaction_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "abi": self.abi,
            "transactionHash": self.transaction_hash,
        }


__all__ = [
    "AccountBalance",
    "BlockInfo",
    "ContractCallRequest",
    "ContractCallResult",
    "ContractTransactionRequest",
    "ContractTransactionResult",
    "DeployRequest",
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
]

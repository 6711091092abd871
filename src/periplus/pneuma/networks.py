"""
Network Registry - static table of well-known EVM networks.

User-supplied descriptors are merged over the built-in table; a user entry
wins on name collision.  A malformed user entry is logged and skipped; a
bad RPC URL is reported when the connection pool tries to use it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterator, Mapping, Optional

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkDescriptor:
    """
    Static description of one network.

    Attributes:
        name: Human-readable network name (e.g., "Ethereum Mainnet")
        chain_id: EIP-155 chain ID
        rpc_url: JSON-RPC endpoint
        native_currency_symbol: Ticker of the native coin
        native_currency_name: Display name of the native coin
        native_currency_decimals: Decimals of the native coin (18 for ETH-like)
        block_explorer: Explorer base URL, if any
    """
    name: str
    chain_id: int
    rpc_url: str
    native_currency_symbol: str = "ETH"
    native_currency_name: str = "Ether"
    native_currency_decimals: int = 18
    block_explorer: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "NetworkDescriptor":
        """
        Build a descriptor from a camelCase (or snake_case) mapping.

        Raises:
            ConfigurationError: If a required field is missing or malformed
        """
        try:
            currency = payload.get("nativeCurrency") or {}
            return cls(
                name=payload["name"],
                chain_id=int(payload.get("chainId", payload.get("chain_id"))),
                rpc_url=payload.get("rpcUrl", payload.get("rpc_url")),
                native_currency_symbol=currency.get("symbol", "ETH"),
                native_currency_name=currency.get("name", "Ether"),
                native_currency_decimals=int(currency.get("decimals", 18)),
                block_explorer=payload.get("blockExplorer"),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ConfigurationError(f"Invalid network descriptor: {exc!r}") from exc

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "chainId": self.chain_id,
            "rpcUrl": self.rpc_url,
            "nativeCurrency": {
                "name": self.native_currency_name,
                "symbol": self.native_currency_symbol,
                "decimals": self.native_currency_decimals,
            },
        }
        if self.block_explorer:
            result["blockExplorer"] = self.block_explorer
        return result


COMMON_NETWORKS: dict[str, NetworkDescriptor] = {
    "mainnet": NetworkDescriptor(
        name="Ethereum Mainnet",
        chain_id=1,
        rpc_url="https://eth.llamarpc.com",
        block_explorer="https://etherscan.io",
    ),
    "sepolia": NetworkDescriptor(
        name="Sepolia Testnet",
        chain_id=11155111,
        rpc_url="https://sepolia.infura.io/v3/",
        native_currency_name="Sepolia Ether",
        block_explorer="https://sepolia.etherscan.io",
    ),
    "polygon": NetworkDescriptor(
        name="Polygon Mainnet",
        chain_id=137,
        rpc_url="https://polygon-rpc.com",
        native_currency_symbol="MATIC",
        native_currency_name="MATIC",
        block_explorer="https://polygonscan.com",
    ),
    "arbitrum": NetworkDescriptor(
        name="Arbitrum One",
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        block_explorer="https://arbiscan.io",
    ),
    "optimism": NetworkDescriptor(
        name="Optimism",
        chain_id=10,
        rpc_url="https://mainnet.optimism.io",
        block_explorer="https://optimistic.etherscan.io",
    ),
    "base": NetworkDescriptor(
        name="Base",
        chain_id=8453,
        rpc_url="https://mainnet.base.org",
        block_explorer="https://basescan.org",
    ),
    "avalanche": NetworkDescriptor(
        name="Avalanche C-Chain",
        chain_id=43114,
        rpc_url="https://api.avax.network/ext/bc/C/rpc",
        native_currency_symbol="AVAX",
        native_currency_name="Avalanche",
        block_explorer="https://snowtrace.io",
    ),
    "bsc": NetworkDescriptor(
        name="BNB Smart Chain",
        chain_id=56,
        rpc_url="https://bsc-dataseed.binance.org",
        native_currency_symbol="BNB",
        native_currency_name="BNB",
        block_explorer="https://bscscan.com",
    ),
}


class NetworkRegistry:
    """In-memory table of network descriptors keyed by logical name."""

    def __init__(self, networks: Optional[Mapping[str, NetworkDescriptor]] = None) -> None:
        self._networks: dict[str, NetworkDescriptor] = dict(COMMON_NETWORKS)
        if networks:
            self.register(networks)

    def register(self, networks: Mapping[str, NetworkDescriptor]) -> None:
        """Merge descriptors over the table; malformed entries are skipped."""
        for key, descriptor in networks.items():
            if isinstance(descriptor, Mapping):
                try:
                    descriptor = NetworkDescriptor.from_dict(descriptor)
                except ConfigurationError as exc:
                    logger.error("Skipping network %s: %s", key, exc)
                    continue
            self._networks[key] = descriptor

    def with_rpc_overrides(self, overrides: Mapping[str, str]) -> None:
        """
        Replace only the RPC URL of the named networks.

        Names match case-insensitively (environment variable suffixes are
        upper case); an override naming no known network is logged.
        """
        by_lower = {key.lower(): key for key in self._networks}
        for name, rpc_url in overrides.items():
            key = name if name in self._networks else by_lower.get(name.lower())
            if key is None:
                logger.warning("Ignoring RPC override for unknown network %s", name)
                continue
            self._networks[key] = replace(self._networks[key], rpc_url=rpc_url)

    def get(self, key: str) -> Optional[NetworkDescriptor]:
        return self._networks.get(key)

    def find_by_chain_id(self, chain_id: int) -> Optional[NetworkDescriptor]:
        for descriptor in self._networks.values():
            if descriptor.chain_id == chain_id:
                return descriptor
        return None

    def names(self) -> list[str]:
        return list(self._networks)

    def items(self) -> Iterator[tuple[str, NetworkDescriptor]]:
        return iter(list(self._networks.items()))

    def __contains__(self, key: object) -> bool:
        return key in self._networks

    def __len__(self) -> int:
        return len(self._networks)

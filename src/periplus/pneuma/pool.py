"""
Connection Pool - one live RPC connection per configured network.

Connections are created eagerly from the registry.  A network whose
connection cannot be constructed is logged and left out of the pool; it
never aborts startup.  The pool also owns the current-network cursor and
the lock that serializes network switches against identity resolution.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import httpx

from ..errors import ConfigurationError, NetworkNotConfigured
from .networks import NetworkRegistry
from .rpc import DEFAULT_TIMEOUT, RpcConnection

logger = logging.getLogger(__name__)

SwitchListener = Callable[[RpcConnection], None]


class ConnectionPool:
    def __init__(
        self,
        registry: NetworkRegistry,
        default_network: str = "mainnet",
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.registry = registry
        self.lock = threading.RLock()
        self._connections: dict[str, RpcConnection] = {}
        self._listeners: list[SwitchListener] = []

        for key, descriptor in registry.items():
            try:
                self._connections[key] = RpcConnection(
                    key, descriptor, timeout=timeout, transport=transport
                )
                logger.debug("Initialized provider for %s", descriptor.name)
            except ConfigurationError as exc:
                logger.error("Failed to initialize provider for %s: %s", descriptor.name, exc)

        if default_network in self._connections:
            self._current = default_network
        elif self._connections:
            self._current = next(iter(self._connections))
            logger.warning(
                "Default network %s not available, using %s", default_network, self._current
            )
        else:
            # Nothing usable: every get() raises NetworkNotConfigured
            self._current = default_network

    @property
    def current(self) -> str:
        return self._current

    def names(self) -> list[str]:
        return list(self._connections)

    def __contains__(self, key: object) -> bool:
        return key in self._connections

    def get(self, network: Optional[str] = None) -> RpcConnection:
        """
        Get the connection for a network.

        Args:
            network: Logical network name; the current network if omitted

        Raises:
            NetworkNotConfigured: If the network is absent from the pool
        """
        key = network or self._current
        connection = self._connections.get(key)
        if connection is None:
            raise NetworkNotConfigured(key)
        return connection

    def on_switch(self, listener: SwitchListener) -> None:
        """Register a callback invoked (under the pool lock) after each switch."""
        self._listeners.append(listener)

    def switch_to(self, network: str) -> RpcConnection:
        """
        Move the current-network cursor.

        The cursor only moves if the network exists; listeners (identity
        rebinding) run while the lock is held so no request observes a
        half-rebound identity set.

        Raises:
            NetworkNotConfigured: If the network is absent (cursor unchanged)
        """
        with self.lock:
            connection = self.get(network)
            self._current = network
            for listener in self._listeners:
                listener(connection)
        logger.info("Switched to network: %s", network)
        return connection

    def close(self) -> None:
        for connection in self._connections.values():
            connection.close()

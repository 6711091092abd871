"""
EVM Plugin - the agent-facing tool boundary.

Exposes every client operation as a named ``evm_*`` tool with a JSON-schema
parameter object.  ``execute`` takes the loose parameter bag an agent
produces, validates it, converts it to the typed request of the operation
and returns a JSON-ready dict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from .client import EVMClient
from .config import EVMConfig
from .errors import InvalidRequestError
from .pneuma.networks import COMMON_NETWORKS
from .spec.models import (
    ContractCallRequest,
    ContractTransactionRequest,
    DeployRequest,
    LogFilter,
    TransactionRequest,
)
from .spec.schemas import ToolSchemaRegistry, tool_definitions
from .utils import parse_int

logger = logging.getLogger(__name__)

TOOL_PREFIX = "evm_"

ToolHandler = Callable[[dict[str, Any]], Any]


@dataclass
class ToolDefinition:
    name: str
    description: str
    parameters: dict[str, Any]
    handler: ToolHandler

    def to_function_definition(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


class EVMPlugin:
    """
    Tool registry backed by an ``EVMClient``.

    The client is created lazily on the first ``init()`` / ``execute()``
    unless one is passed in.

    Args:
        config: Client configuration (default: read from the environment)
        client: Pre-built client (tests, embedding)
        transport: httpx transport forwarded to a lazily built client
    """

    name = "evm"

    def __init__(
        self,
        config: Optional[EVMConfig] = None,
        client: Optional[EVMClient] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.transport = transport
        self._tools: dict[str, ToolDefinition] = {}
        self._schemas = ToolSchemaRegistry(schemas={})
        self._register_builtin_tools()

    # ============ Lifecycle ============

    def init(self) -> EVMClient:
        """Build the client if needed and log what is available."""
        if self.client is None:
            try:
                self.client = EVMClient(self.config, transport=self.transport)
            except Exception:
                logger.exception("Failed to initialize EVM plugin")
                raise

        wallet_count = len(self.client.get_wallet_addresses())
        logger.info(
            "EVM plugin initialized on %s with %d wallet(s)",
            self.client.current_network,
            wallet_count,
        )
        if wallet_count == 0:
            logger.warning("No wallets initialized. Some functions may be limited.")
        logger.info("Registered %d tools: %s", len(self._tools), ", ".join(self._tools))
        return self.client

    def close(self) -> None:
        if self.client is not None:
            self.client.close()

    # ============ Registry ============

    def get_function_definitions(self) -> list[dict[str, Any]]:
        return [tool.to_function_definition() for tool in self._tools.values()]

    def get_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def register_tool(self, tool: ToolDefinition) -> None:
        """Add or replace a tool."""
        if tool.name in self._tools:
            logger.warning("Tool %s already registered, replacing", tool.name)
        self._tools[tool.name] = tool
        self._schemas.add(tool.name, tool.parameters)

    def remove_tool(self, name: str) -> bool:
        if self._tools.pop(name, None) is None:
            return False
        self._schemas.remove(name)
        return True

    @property
    def tool_count(self) -> int:
        return len(self._tools)

    # ============ Execution ============

    def execute(self, name: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Run a tool by name.

        Raises:
            InvalidRequestError: If the tool is unknown
            ToolParameterError: If ``params`` does not match the tool's schema
            PeriplusError: Whatever the underlying operation raises
        """
        tool = self._tools.get(name)
        if tool is None:
            raise InvalidRequestError(f"Unknown tool: {name}")

        params = dict(params or {})
        self._schemas.validate_params(name, params)
        if self.client is None:
            self.init()

        logger.debug("Running tool %s", name)
        try:
            result = tool.handler(params)
        except Exception as exc:
            logger.error("Error executing tool %s: %s", name, exc)
            raise
        logger.debug("Tool %s completed", name)
        return result

    # ============ Built-in tools ============

    def _register_builtin_tools(self) -> None:
        networks = list(self.config.networks) if self.config and self.config.networks else None
        if networks is not None:
            networks = list(dict.fromkeys([*COMMON_NETWORKS, *networks]))

        for definition in tool_definitions(networks):
            method = getattr(self, "_" + definition["name"][len(TOOL_PREFIX):])
            self.register_tool(
                ToolDefinition(
                    name=definition["name"],
                    description=definition["description"],
                    parameters=definition["parameters"],
                    handler=method,
                )
            )

    @property
    def _client(self) -> EVMClient:
        if self.client is None:
            return self.init()
        return self.client

    def _get_balance(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._client.get_balance(params["address"]).to_dict()

    def _send_transaction(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._client.send_transaction(TransactionRequest.from_dict(params)).to_dict()

    def _estimate_gas(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._client.estimate_gas(TransactionRequest.from_dict(params)).to_dict()

    def _get_block(self, params: dict[str, Any]) -> Optional[dict[str, Any]]:
        block = self._client.get_block(parse_int(params.get("blockNumber"), "blockNumber"))
        return block.to_dict() if block else None

    def _get_transaction(self, params: dict[str, Any]) -> Optional[dict[str, Any]]:
        tx = self._client.get_transaction(params["hash"])
        return tx.to_dict() if tx else None

    def _get_logs(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        return [log.to_dict() for log in self._client.get_logs(LogFilter.from_dict(params))]

    def _resolve_ens(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._client.resolve_ens(params["name"]).to_dict()

    def _create_wallet(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._client.create_wallet().to_dict()

    def _import_wallet(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._client.import_wallet(params["privateKey"]).to_dict()

    def _list_wallets(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"addresses": self._client.get_wallet_addresses()}

    def _switch_network(self, params: dict[str, Any]) -> dict[str, Any]:
        self._client.switch_network(params["network"])
        return {"success": True, "network": params["network"]}

    def _get_network(self, params: dict[str, Any]) -> Optional[dict[str, Any]]:
        descriptor = self._client.get_network()
        return descriptor.to_dict() if descriptor else None

    def _call_contract(self, params: dict[str, Any]) -> dict[str, Any]:
        request = ContractCallRequest(
            address=params["address"],
            abi=params["abi"],
            method=params["method"],
            params=list(params.get("params") or []),
        )
        return self._client.call_contract(
            request.address, request.abi, request.method, request.params
        ).to_dict()

    def _send_contract_transaction(self, params: dict[str, Any]) -> dict[str, Any]:
        request = ContractTransactionRequest(
            address=params["address"],
            abi=params["abi"],
            method=params["method"],
            params=list(params.get("params") or []),
            from_=params.get("from"),
            value=params.get("value"),
        )
        return self._client.send_contract_transaction(
            request.address,
            request.abi,
            request.method,
            request.params,
            from_=request.from_,
            value=request.value,
        ).to_dict()

    def _deploy_contract(self, params: dict[str, Any]) -> dict[str, Any]:
        request = DeployRequest(
            abi=params["abi"],
            bytecode=params["bytecode"],
            params=list(params.get("params") or []),
            from_=params.get("from"),
        )
        return self._client.deploy_contract(
            request.abi, request.bytecode, request.params, from_=request.from_
        ).to_dict()

    def _get_gas_prices(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._client.get_gas_prices().to_dict()

    def _sign_message(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"signature": self._client.sign_message(params["message"], params.get("address"))}

    def _verify_message(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"address": self._client.verify_message(params["message"], params["signature"])}

"""
ENS name resolution over plain JSON-RPC.

namehash (EIP-137) → registry ``resolver(node)`` → resolver ``addr(node)``.
The avatar text record is looked up on a best-effort basis.
"""

from __future__ import annotations

import logging
from typing import Optional

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from ..errors import RpcError
from ..spec.models import ENSInfo
from ..utils import hexlify, keccak256, to_checksum_address, unhexlify
from .rpc import RpcConnection

logger = logging.getLogger(__name__)

# Same registry address on mainnet and the public testnets
ENS_REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"

_RESOLVER_SELECTOR = keccak256(b"resolver(bytes32)")[:4]
_ADDR_SELECTOR = keccak256(b"addr(bytes32)")[:4]
_TEXT_SELECTOR = keccak256(b"text(bytes32,string)")[:4]


def namehash(name: str) -> bytes:
    node = b"\x00" * 32
    if name:
        for label in reversed(name.lower().split(".")):
            node = keccak256(node + keccak256(label.encode("utf-8")))
    return node


def _call_address(connection: RpcConnection, to: str, calldata: bytes) -> Optional[str]:
    result = connection.call({"to": to, "data": hexlify(calldata)})
    if not result or result == "0x":
        return None
    (address,) = decode(["address"], unhexlify(result))
    if int(address, 16) == 0:
        return None
    return to_checksum_address(address)


def get_resolver(connection: RpcConnection, name: str) -> Optional[str]:
    node = namehash(name)
    return _call_address(connection, ENS_REGISTRY, _RESOLVER_SELECTOR + node)


def get_text(connection: RpcConnection, resolver: str, name: str, key: str) -> Optional[str]:
    calldata = _TEXT_SELECTOR + encode(["bytes32", "string"], [namehash(name), key])
    result = connection.call({"to": resolver, "data": hexlify(calldata)})
    if not result or result == "0x":
        return None
    (value,) = decode(["string"], unhexlify(result))
    return value or None


def resolve_name(connection: RpcConnection, name: str) -> ENSInfo:
    """
    Resolve an ENS name.

    A name without a resolver yields ``address=None``.  A failing resolver
    lookup is logged and reported the same way; the avatar lookup never
    fails the call.
    """
    try:
        resolver = get_resolver(connection, name)
    except RpcError as exc:
        logger.warning("ENS resolver lookup failed for %s: %s", name, exc)
        resolver = None

    if resolver is None:
        return ENSInfo(name=name)

    address = _call_address(connection, resolver, _ADDR_SELECTOR + namehash(name))

    avatar = None
    try:
        avatar = get_text(connection, resolver, name, "avatar")
    except (RpcError, DecodingError) as exc:
        logger.debug("ENS avatar lookup failed for %s: %s", name, exc)

    return ENSInfo(name=name, address=address, resolver=resolver, avatar=avatar)


__all__ = ["ENS_REGISTRY", "get_resolver", "get_text", "namehash", "resolve_name"]

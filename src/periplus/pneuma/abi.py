"""
Dynamic ABI codec.

ABIs are supplied per call by the caller (a list of JSON ABI entries).
Functions are looked up by name and, for overloads, by argument count.
Encoding and decoding use eth-abi; selectors use Keccak-256.
"""

from __future__ import annotations

from typing import Any, Optional

from eth_abi import decode, encode

from ..errors import InvalidRequestError
from ..utils import hexlify, keccak256, unhexlify


def _type_string(param: dict[str, Any]) -> str:
    """Canonical type of an ABI parameter, expanding tuples."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_type_string(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def input_types(entry: dict[str, Any]) -> list[str]:
    return [_type_string(p) for p in entry.get("inputs", [])]


def output_types(entry: dict[str, Any]) -> list[str]:
    return [_type_string(p) for p in entry.get("outputs", [])]


def find_function(abi: list[dict[str, Any]], name: str, arg_count: Optional[int] = None) -> dict[str, Any]:
    """
    Find a function entry in an ABI.

    Raises:
        InvalidRequestError: If no (unambiguous) function matches
    """
    candidates = [
        entry
        for entry in abi
        if entry.get("type", "function") == "function" and entry.get("name") == name
    ]
    if arg_count is not None and len(candidates) > 1:
        candidates = [e for e in candidates if len(e.get("inputs", [])) == arg_count]

    if not candidates:
        raise InvalidRequestError(f"Function {name} not found in ABI")
    if len(candidates) > 1:
        raise InvalidRequestError(f"Function {name} is ambiguous in ABI ({len(candidates)} overloads)")
    return candidates[0]


def find_constructor(abi: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    for entry in abi:
        if entry.get("type") == "constructor":
            return entry
    return None


def function_selector(entry: dict[str, Any]) -> bytes:
    sig = f"{entry['name']}({','.join(input_types(entry))})"
    return keccak256(sig.encode("utf-8"))[:4]


def encode_function_call(abi: list[dict[str, Any]], function_name: str, args: list) -> str:
    """
    ABI-encode a function call.

    Returns:
        0x-prefixed hex encoded calldata
    """
    entry = find_function(abi, function_name, len(args))
    types = input_types(entry)
    if len(types) != len(args):
        raise InvalidRequestError(
            f"{function_name} expects {len(types)} argument(s), got {len(args)}"
        )
    try:
        encoded_args = encode(types, list(args)) if args else b""
    except Exception as exc:
        raise InvalidRequestError(f"Cannot encode arguments for {function_name}: {exc}") from exc
    return hexlify(function_selector(entry) + encoded_args)


def decode_function_result(
    abi: list[dict[str, Any]], function_name: str, data: str, arg_count: Optional[int] = None
) -> tuple[Any, ...]:
    """Decode return data into a tuple (empty for functions without outputs)."""
    entry = find_function(abi, function_name, arg_count)
    types = output_types(entry)
    if not types:
        return ()
    return tuple(decode(types, unhexlify(data)))


def encode_deployment(abi: list[dict[str, Any]], bytecode: str, args: list) -> str:
    """Append ABI-encoded constructor arguments to creation bytecode."""
    deploy_data = bytecode[2:] if bytecode.startswith("0x") else bytecode
    constructor = find_constructor(abi)
    types = input_types(constructor) if constructor else []

    if len(types) != len(args):
        raise InvalidRequestError(
            f"Constructor expects {len(types)} argument(s), got {len(args)}"
        )
    if args:
        deploy_data += encode(types, list(args)).hex()

    return "0x" + deploy_data


def to_json_safe(value: Any) -> Any:
    """Render decoded values for JSON callers: ints as strings, bytes as hex."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return hexlify(bytes(value))
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    return value


def named_outputs(entry: dict[str, Any], values: tuple[Any, ...]) -> Any:
    """
    Single output → the value; several named outputs → a mapping;
    otherwise a list.
    """
    if len(values) == 1:
        return to_json_safe(values[0])
    names = [p.get("name") for p in entry.get("outputs", [])]
    if names and all(names) and len(set(names)) == len(names):
        return {name: to_json_safe(v) for name, v in zip(names, values)}
    return to_json_safe(list(values))

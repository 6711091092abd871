from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from eth_hash.auto import keccak

from .errors import InvalidRequestError

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
HASH_PATTERN = r"^0x[a-fA-F0-9]{64}$"

_ADDRESS_RE = re.compile(ADDRESS_PATTERN)
_DECIMAL_RE = re.compile(r"^\d+(\.\d*)?$|^\.\d+$")


def keccak256(data: bytes) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(data)


def is_address(value: Any) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def to_checksum_address(address: str) -> str:
    """Convert an address to EIP-55 checksummed format."""
    if not is_address(address):
        raise InvalidRequestError(f"Invalid address: {address!r}")
    addr = address[2:].lower()
    addr_hash = keccak256(addr.encode("utf-8")).hex()
    result = "0x"
    for i, c in enumerate(addr):
        if c in "abcdef":
            result += c.upper() if int(addr_hash[i], 16) >= 8 else c
        else:
            result += c
    return result


def parse_units(value: Optional[str], decimals: int = 18) -> int:
    """Convert a decimal string in whole units ("0.1") to base units."""
    if value is None or value == "":
        return 0
    text = str(value).strip()
    if not _DECIMAL_RE.match(text):
        raise InvalidRequestError(f"Invalid decimal amount: {value!r}")
    whole, _, fraction = text.partition(".")
    if len(fraction.rstrip("0")) > decimals:
        raise InvalidRequestError(
            f"Too many decimal places in {value!r} (max {decimals})"
        )
    fraction = fraction.rstrip("0").ljust(decimals, "0")
    return int(whole or "0") * 10**decimals + int(fraction or "0")


def format_units(amount: int, decimals: int = 18) -> str:
    """Render base units as a decimal string; always keeps one fractional digit."""
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{fraction_str}"


def parse_int(value: Any, field: str = "value") -> Optional[int]:
    """Accept ints, decimal strings and 0x-hex strings; None passes through."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidRequestError(f"Invalid integer for {field}: {value!r}")
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, str) and value.lower().startswith("0x"):
            return int(value, 16)
        return int(Decimal(str(value)).to_integral_exact())
    except (InvalidOperation, ValueError):
        raise InvalidRequestError(f"Invalid integer for {field}: {value!r}") from None


def to_quantity(value: int) -> str:
    """Encode an integer as a JSON-RPC QUANTITY (0x-hex, no leading zeros)."""
    return hex(value)


def from_quantity(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


def to_decimal_str(value: Optional[str]) -> Optional[str]:
    """QUANTITY → decimal string; chain integers do not fit in a float."""
    as_int = from_quantity(value)
    return None if as_int is None else str(as_int)


def hexlify(data: bytes | str) -> str:
    if isinstance(data, str):
        return data if data.startswith("0x") else "0x" + data
    return "0x" + data.hex()


def unhexlify(data: str) -> bytes:
    return bytes.fromhex(data[2:] if data.startswith("0x") else data)

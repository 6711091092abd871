"""
Configuration loading.

Settings come from the process environment, optionally seeded from
``~/.periplus/.env`` (values already in the environment win).  Keys are
read from ``EVM_PRIVATE_KEYS`` (comma-separated) and ``EVM_MNEMONIC``;
per-network RPC overrides from ``EVM_RPC_URL_<NAME>``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .pneuma.networks import NetworkDescriptor
from .pneuma.rpc import DEFAULT_POLL_INTERVAL, DEFAULT_RECEIPT_TIMEOUT, DEFAULT_TIMEOUT
from .sigil.eth import DEFAULT_HD_PATH

# Default config directory
PERIPLUS_DIR = Path.home() / ".periplus"
PERIPLUS_ENV = PERIPLUS_DIR / ".env"

RPC_URL_PREFIX = "EVM_RPC_URL_"


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None


def _float_setting(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class EVMConfig:
    """
    Client configuration.

    Attributes:
        networks: Extra / replacement network descriptors by logical name
        default_network: Network selected at startup
        private_keys: Raw private keys (0x-prefixed or bare hex)
        mnemonic: BIP-39 seed phrase
        hd_path: Derivation path prefix for the seed phrase
        account_index: First account index derived from the seed phrase
        rpc_overrides: RPC URL replacements by logical network name
        provider_timeout: HTTP timeout per RPC request, seconds
        receipt_timeout: Maximum wait for a confirmation, seconds
        poll_interval: Receipt polling interval, seconds
    """
    networks: dict[str, NetworkDescriptor] = field(default_factory=dict)
    default_network: str = "mainnet"
    private_keys: list[str] = field(default_factory=list, repr=False)
    mnemonic: Optional[str] = field(default=None, repr=False)
    hd_path: str = DEFAULT_HD_PATH
    account_index: int = 0
    rpc_overrides: dict[str, str] = field(default_factory=dict)
    provider_timeout: float = DEFAULT_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL

    @classmethod
    def from_env(
        cls,
        env_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "EVMConfig":
        """
        Build a configuration from the environment.

        Args:
            env_path: .env file to load first (default: ~/.periplus/.env)
            environ: Mapping to read instead of ``os.environ`` (tests)

        Raises:
            ConfigurationError: If a numeric setting is malformed
        """
        if environ is None:
            env_path = env_path or PERIPLUS_ENV
            if env_path.exists():
                load_dotenv(env_path, override=False)
            environ = os.environ

        keys = [k.strip() for k in environ.get("EVM_PRIVATE_KEYS", "").split(",") if k.strip()]
        overrides = {
            key[len(RPC_URL_PREFIX):].lower(): value
            for key, value in environ.items()
            if key.startswith(RPC_URL_PREFIX) and value
        }

        return cls(
            default_network=environ.get("EVM_DEFAULT_NETWORK") or "mainnet",
            private_keys=keys,
            mnemonic=environ.get("EVM_MNEMONIC") or None,
            hd_path=environ.get("EVM_HD_PATH") or DEFAULT_HD_PATH,
            account_index=_int_setting(environ, "EVM_ACCOUNT_INDEX", 0),
            rpc_overrides=overrides,
            provider_timeout=_float_setting(environ, "EVM_PROVIDER_TIMEOUT", DEFAULT_TIMEOUT),
            receipt_timeout=_float_setting(environ, "EVM_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
            poll_interval=_float_setting(environ, "EVM_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
        )

"""
ECDSA / secp256k1 signing identities for Periplus.

An identity is an Ethereum key-pair, created from a raw private key or
derived from a BIP-39 seed phrase, and bound to the connection of the
network it currently signs for.  The pool holds every identity of the
process keyed by lower-cased address, in insertion order.

Secrets (private key, mnemonic) are excluded from ``repr()`` and are never
logged.

Dependencies: eth-account (signing, HD derivation), eth-keys (public keys)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Iterable, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_keys import keys as eth_keys

from ..errors import ConfigurationError, InvalidRequestError, NoIdentityAvailable
from ..pneuma.rpc import RpcConnection
from ..utils import hexlify, unhexlify

logger = logging.getLogger(__name__)

# eth-account keeps HD wallet support behind an explicit opt-in
Account.enable_unaudited_hdwallet_features()

DEFAULT_HD_PATH = "m/44'/60'/0'/0"

# Number of identities derived from a seed phrase.  Fixed on purpose;
# it does not follow the number of raw keys configured elsewhere.
HD_WALLET_COUNT = 10


def _normalize_key(private_key: str) -> str:
    key = private_key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    return key


@dataclass(frozen=True)
class Identity:
    """
    A signing key-pair bound to one network connection.

    Attributes:
        address: 0x-prefixed checksummed address
        private_key: 0x-prefixed hex private key (hidden from repr)
        public_key: 0x-prefixed hex uncompressed public key (64 bytes)
        connection: The connection this identity currently signs for
        derivation_path: HD path, for seed-derived identities
        mnemonic: Seed phrase, only for identities created by this process
    """
    address: str
    private_key: str = field(repr=False)
    public_key: str
    connection: Optional[RpcConnection] = field(default=None, repr=False, compare=False)
    derivation_path: Optional[str] = None
    mnemonic: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_account(
        cls,
        account: LocalAccount,
        connection: Optional[RpcConnection] = None,
        derivation_path: Optional[str] = None,
        mnemonic: Optional[str] = None,
    ) -> "Identity":
        key_bytes = bytes(account.key)
        public_key = eth_keys.PrivateKey(key_bytes).public_key
        return cls(
            address=account.address,
            private_key=hexlify(key_bytes),
            public_key=public_key.to_hex(),
            connection=connection,
            derivation_path=derivation_path,
            mnemonic=mnemonic,
        )

    @classmethod
    def from_key(cls, private_key: str, connection: Optional[RpcConnection] = None) -> "Identity":
        """
        Build an identity from a raw private key.

        Raises:
            ConfigurationError: If the key is not a valid secp256k1 secret
        """
        try:
            account = Account.from_key(_normalize_key(private_key))
        except Exception as exc:
            raise ConfigurationError(f"Invalid private key: {type(exc).__name__}") from None
        return cls.from_account(account, connection=connection)

    @classmethod
    def from_mnemonic(
        cls,
        mnemonic: str,
        path: str,
        connection: Optional[RpcConnection] = None,
    ) -> "Identity":
        try:
            account = Account.from_mnemonic(mnemonic, account_path=path)
        except Exception as exc:
            raise ConfigurationError(f"Invalid mnemonic or path {path}: {type(exc).__name__}") from None
        return cls.from_account(account, connection=connection, derivation_path=path)

    @cached_property
    def account(self) -> LocalAccount:
        return Account.from_key(self.private_key)

    @property
    def network(self) -> Optional[str]:
        return self.connection.key if self.connection is not None else None

    def bind(self, connection: RpcConnection) -> "Identity":
        """Return the same key-pair bound to another connection."""
        return replace(self, connection=connection)

    def sign_transaction(self, tx: dict) -> tuple[str, str]:
        """
        Sign a transaction dict.

        Returns:
            Tuple of (raw_tx_hex, tx_hash_hex), both 0x-prefixed
        """
        signed = self.account.sign_transaction(tx)
        return hexlify(bytes(signed.raw_transaction)), hexlify(bytes(signed.hash))

    def sign_message(self, message: str) -> str:
        """Sign a text message using EIP-191 personal_sign."""
        signable = encode_defunct(text=message)
        signed = self.account.sign_message(signable)
        return hexlify(bytes(signed.signature))


def derive_hd_identities(
    mnemonic: str,
    hd_path: str = DEFAULT_HD_PATH,
    account_index: int = 0,
    connection: Optional[RpcConnection] = None,
    count: int = HD_WALLET_COUNT,
) -> list[Identity]:
    """Derive ``count`` identities at ``{hd_path}/{account_index + i}``."""
    base = hd_path.rstrip("/")
    return [
        Identity.from_mnemonic(mnemonic, f"{base}/{account_index + i}", connection=connection)
        for i in range(count)
    ]


def generate_identity(connection: Optional[RpcConnection] = None) -> Identity:
    """Generate a fresh random identity together with its BIP-39 seed phrase."""
    account, mnemonic = Account.create_with_mnemonic()
    return Identity.from_account(
        account,
        connection=connection,
        derivation_path=f"{DEFAULT_HD_PATH}/0",
        mnemonic=mnemonic,
    )


def verify_message(message: str, signature: str) -> str:
    """
    Recover the signer of an EIP-191 personal_sign message.

    Returns:
        0x-prefixed checksummed address of the signer

    Raises:
        InvalidRequestError: If the signature is malformed
    """
    try:
        return Account.recover_message(
            encode_defunct(text=message), signature=unhexlify(signature)
        )
    except Exception as exc:
        raise InvalidRequestError(f"Invalid signature: {exc}") from exc


class IdentityPool:
    """
    Signing identities keyed by lower-cased address, in insertion order.

    Args:
        connection: Connection every identity is bound to at creation
        private_keys: Raw private keys; malformed ones are logged and skipped
        mnemonic: Optional seed phrase; derives ``HD_WALLET_COUNT`` identities
        hd_path: Derivation path prefix (default ``m/44'/60'/0'/0``)
        account_index: First account index of the HD batch
        lock: Lock shared with the connection pool
    """

    def __init__(
        self,
        connection: Optional[RpcConnection],
        private_keys: Iterable[str] = (),
        mnemonic: Optional[str] = None,
        hd_path: Optional[str] = None,
        account_index: Optional[int] = None,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self._connection = connection
        self._lock = lock or threading.RLock()
        self._identities: dict[str, Identity] = {}

        for index, private_key in enumerate(private_keys):
            try:
                identity = Identity.from_key(private_key, connection=connection)
            except ConfigurationError as exc:
                logger.error("Failed to initialize wallet from private key %d: %s", index, exc)
                continue
            self._insert(identity)
            logger.debug("Initialized wallet %d: %s", index, identity.address)

        if mnemonic:
            path = hd_path or DEFAULT_HD_PATH
            start = account_index or 0
            try:
                derived = derive_hd_identities(mnemonic, path, start, connection=connection)
            except ConfigurationError as exc:
                logger.error("Failed to initialize HD wallet: %s", exc)
                derived = []
            for i, identity in enumerate(derived):
                self._insert(identity)
                logger.debug(
                    "Initialized HD wallet %d: %s (%s)", i, identity.address, identity.derivation_path
                )

    def __len__(self) -> int:
        return len(self._identities)

    def _insert(self, identity: Identity) -> None:
        key = identity.address.lower()
        with self._lock:
            # Re-inserting keeps the original position: overwrite in place
            self._identities[key] = identity

    def addresses(self) -> list[str]:
        return [identity.address for identity in self._identities.values()]

    def rebind(self, connection: RpcConnection) -> None:
        """Re-attach every identity to ``connection`` in one table swap."""
        with self._lock:
            self._connection = connection
            self._identities = {
                key: identity.bind(connection) for key, identity in self._identities.items()
            }

    def resolve(self, address: Optional[str] = None) -> Identity:
        """
        Find the identity for ``address``, or the first one if omitted.

        Raises:
            NoIdentityAvailable: If the pool is empty or the address is unknown
        """
        with self._lock:
            if address:
                identity = self._identities.get(address.lower())
            else:
                identity = next(iter(self._identities.values()), None)
        if identity is None:
            raise NoIdentityAvailable(address)
        return identity

    def create(self) -> Identity:
        """Generate, bind and insert a new identity.  The result carries secrets."""
        with self._lock:
            identity = generate_identity(self._connection)
            self._insert(identity)
        logger.info("Created wallet %s", identity.address)
        return identity

    def import_key(self, private_key: str) -> Identity:
        """
        Insert an identity for a caller-supplied key, replacing any identity
        with the same address.

        Raises:
            InvalidRequestError: If the key is malformed
        """
        with self._lock:
            try:
                identity = Identity.from_key(private_key, connection=self._connection)
            except ConfigurationError as exc:
                raise InvalidRequestError(str(exc)) from None
            self._insert(identity)
        logger.info("Imported wallet %s", identity.address)
        return identity

    def sign_message(self, message: str, address: Optional[str] = None) -> str:
        return self.resolve(address).sign_message(message)

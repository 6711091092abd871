"""Signing identities, HD derivation and the identity pool."""

from __future__ import annotations

import logging

import pytest

from conftest import (
    SECOND_ADDRESS,
    SECOND_KEY,
    TEST_ADDRESS,
    TEST_KEY,
    TEST_MNEMONIC,
    FakeNode,
    make_config,
)
from periplus.client import EVMClient
from periplus.errors import ConfigurationError, InvalidRequestError, NoIdentityAvailable
from periplus.sigil.eth import (
    DEFAULT_HD_PATH,
    HD_WALLET_COUNT,
    Identity,
    IdentityPool,
    derive_hd_identities,
    generate_identity,
    verify_message,
)


class TestIdentity:
    def test_from_key(self) -> None:
        identity = Identity.from_key(TEST_KEY)
        assert identity.address == TEST_ADDRESS
        assert identity.private_key == TEST_KEY
        assert identity.public_key.startswith("0x")
        assert len(identity.public_key) == 2 + 128

    def test_from_key_without_prefix(self) -> None:
        assert Identity.from_key(TEST_KEY[2:]).address == TEST_ADDRESS

    def test_invalid_key_message_hides_input(self) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            Identity.from_key("0x1234")
        assert "1234" not in str(excinfo.value)

    def test_repr_hides_secrets(self) -> None:
        identity = generate_identity()
        text = repr(identity)
        assert identity.private_key not in text
        assert identity.mnemonic not in text

    def test_generate_carries_mnemonic_and_path(self) -> None:
        identity = generate_identity()
        assert len(identity.mnemonic.split()) == 12
        assert identity.derivation_path == f"{DEFAULT_HD_PATH}/0"
        derived = Identity.from_mnemonic(identity.mnemonic, identity.derivation_path)
        assert derived.address == identity.address

    def test_sign_and_verify_message(self) -> None:
        identity = Identity.from_key(TEST_KEY)
        signature = identity.sign_message("hello periplus")
        assert verify_message("hello periplus", signature) == TEST_ADDRESS
        assert verify_message("tampered", signature) != TEST_ADDRESS

    def test_verify_rejects_garbage_signature(self) -> None:
        with pytest.raises(InvalidRequestError):
            verify_message("hello", "0x1234")


class TestHdDerivation:
    def test_derives_fixed_batch(self) -> None:
        identities = derive_hd_identities(TEST_MNEMONIC)
        assert len(identities) == HD_WALLET_COUNT == 10
        assert identities[0].address == TEST_ADDRESS
        assert identities[1].address == SECOND_ADDRESS
        assert [i.derivation_path for i in identities[:2]] == [
            "m/44'/60'/0'/0/0",
            "m/44'/60'/0'/0/1",
        ]

    def test_is_deterministic(self) -> None:
        first = [i.address for i in derive_hd_identities(TEST_MNEMONIC)]
        second = [i.address for i in derive_hd_identities(TEST_MNEMONIC)]
        assert first == second

    def test_account_index_offsets_batch(self) -> None:
        identities = derive_hd_identities(TEST_MNEMONIC, account_index=1)
        assert identities[0].address == SECOND_ADDRESS
        assert identities[-1].derivation_path == "m/44'/60'/0'/0/10"

    def test_invalid_mnemonic_hides_phrase(self) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            Identity.from_mnemonic("definitely not a valid seed phrase", "m/44'/60'/0'/0/0")
        assert "seed phrase" not in str(excinfo.value)


class TestIdentityPool:
    def test_keys_then_mnemonic_in_order(self) -> None:
        pool = IdentityPool(None, private_keys=[SECOND_KEY], mnemonic=TEST_MNEMONIC)
        addresses = pool.addresses()
        assert addresses[0] == SECOND_ADDRESS
        assert addresses[1] == TEST_ADDRESS
        # SECOND_ADDRESS is also HD index 1: stored once
        assert len(pool) == HD_WALLET_COUNT

    def test_bad_key_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR):
            pool = IdentityPool(None, private_keys=["0xnothex", TEST_KEY])
        assert pool.addresses() == [TEST_ADDRESS]
        assert "private key 0" in caplog.text
        assert "nothex" not in caplog.text

    def test_bad_mnemonic_is_skipped(self) -> None:
        pool = IdentityPool(None, private_keys=[TEST_KEY], mnemonic="not a seed")
        assert pool.addresses() == [TEST_ADDRESS]

    def test_resolve(self) -> None:
        pool = IdentityPool(None, private_keys=[TEST_KEY, SECOND_KEY])
        assert pool.resolve().address == TEST_ADDRESS
        assert pool.resolve(SECOND_ADDRESS.lower()).address == SECOND_ADDRESS

    def test_resolve_unknown_or_empty(self) -> None:
        with pytest.raises(NoIdentityAvailable):
            IdentityPool(None).resolve()
        with pytest.raises(NoIdentityAvailable, match=SECOND_ADDRESS):
            IdentityPool(None, private_keys=[TEST_KEY]).resolve(SECOND_ADDRESS)

    def test_import_replaces_in_place(self) -> None:
        pool = IdentityPool(None, private_keys=[TEST_KEY, SECOND_KEY])
        pool.import_key(TEST_KEY[2:])
        assert pool.addresses() == [TEST_ADDRESS, SECOND_ADDRESS]

    def test_import_invalid_key(self) -> None:
        with pytest.raises(InvalidRequestError):
            IdentityPool(None).import_key("0xzz")


class TestClientWallets:
    def test_configured_keys_load(self, client: EVMClient) -> None:
        assert client.get_wallet_addresses() == [TEST_ADDRESS]
        assert Identity.from_key(SECOND_KEY).address == SECOND_ADDRESS

    def test_import_then_resolve_round_trip(self, node: FakeNode) -> None:
        with EVMClient(make_config(private_keys=[]), transport=node.transport()) as client:
            info = client.import_wallet(SECOND_KEY)
            assert info.address == SECOND_ADDRESS
            assert info.private_key == SECOND_KEY
            assert info.mnemonic is None
            assert client.get_identity(SECOND_ADDRESS).address == SECOND_ADDRESS

    def test_create_wallet_is_bound_and_listed(self, node: FakeNode) -> None:
        with EVMClient(make_config(), transport=node.transport()) as client:
            client.switch_network("base")
            info = client.create_wallet()

            assert client.get_wallet_addresses() == [TEST_ADDRESS, info.address]
            assert client.get_identity(info.address).network == "base"
            payload = info.to_dict()
            assert set(payload) == {"address", "privateKey", "publicKey", "mnemonic", "path"}

    def test_sign_with_specific_wallet(self, node: FakeNode) -> None:
        config = make_config(private_keys=[TEST_KEY, SECOND_KEY])
        with EVMClient(config, transport=node.transport()) as client:
            signature = client.sign_message("gm", SECOND_ADDRESS)
            assert client.verify_message("gm", signature) == SECOND_ADDRESS

    def test_sign_without_wallets(self, node: FakeNode) -> None:
        with EVMClient(make_config(private_keys=[]), transport=node.transport()) as client:
            with pytest.raises(NoIdentityAvailable):
                client.sign_message("gm")

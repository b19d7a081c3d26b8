"""Tests for order ID generation and secret helpers."""

import hashlib

import pytest
from eth_abi import encode
from eth_account import Account

from htlc_swap.htlc import (
    generate_order_id,
    generate_secret,
    hash_secret,
    verify_order_id,
)

from conftest import ALICE, BOB, CHAIN_ID

SECRET_HASH = hashlib.sha256(b"secret").digest()


def _order_id(**overrides):
    params = dict(
        chain_id=CHAIN_ID,
        initiator=ALICE.address,
        redeemer=BOB.address,
        timelock=10,
        amount=10**18,
        secret_hash=SECRET_HASH,
    )
    params.update(overrides)
    return generate_order_id(**params)


class TestOrderId:
    """Tests for order ID generation."""

    def test_generate_order_id_basic(self):
        """Test basic order ID generation."""
        order_id = _order_id()

        assert order_id.startswith("0x")
        assert len(order_id) == 66  # 0x + 64 hex chars

    def test_generate_order_id_deterministic(self):
        """Test that order ID generation is deterministic."""
        assert _order_id() == _order_id()

    def test_generate_order_id_canonical_encoding(self):
        """The id is SHA-256 over the ABI encoding of the six fields."""
        encoded = encode(
            ["uint256", "address", "address", "uint256", "uint256", "bytes32"],
            [CHAIN_ID, ALICE.address, BOB.address, 10, 10**18, SECRET_HASH],
        )
        assert _order_id() == "0x" + hashlib.sha256(encoded).hexdigest()

    def test_every_field_changes_the_id(self):
        """Changing any single field produces a different ID."""
        base = _order_id()
        variants = [
            _order_id(chain_id=CHAIN_ID + 1),
            _order_id(initiator=Account.create().address),
            _order_id(redeemer=Account.create().address),
            _order_id(timelock=11),
            _order_id(amount=10**18 + 1),
            _order_id(secret_hash=hashlib.sha256(b"other").digest()),
        ]
        assert base not in variants
        assert len(set(variants)) == len(variants)

    def test_address_case_does_not_matter(self):
        assert _order_id(initiator=ALICE.address.lower()) == _order_id()

    def test_hex_secret_hash(self):
        assert _order_id(secret_hash="0x" + SECRET_HASH.hex()) == _order_id()

    def test_invalid_address(self):
        with pytest.raises(ValueError, match="Invalid initiator"):
            _order_id(initiator="invalid")

    def test_invalid_secret_hash_length(self):
        with pytest.raises(ValueError, match="expected 32 bytes"):
            _order_id(secret_hash=b"\x01" * 31)

    def test_amount_out_of_range(self):
        with pytest.raises(ValueError, match="not a uint256"):
            _order_id(amount=2**256)

    def test_verify_order_id(self):
        """Test order ID verification."""
        order_id = _order_id()
        assert verify_order_id(
            order_id, CHAIN_ID, ALICE.address, BOB.address, 10, 10**18, SECRET_HASH
        ) is True
        assert verify_order_id(
            order_id, CHAIN_ID, ALICE.address, BOB.address, 11, 10**18, SECRET_HASH
        ) is False
        assert verify_order_id(
            order_id, CHAIN_ID, "invalid", BOB.address, 10, 10**18, SECRET_HASH
        ) is False


class TestSecrets:
    """Tests for secret generation and hashing."""

    def test_hash_secret_is_sha256(self):
        assert hash_secret(b"") == bytes.fromhex(
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_hash_secret_accepts_hex(self):
        assert hash_secret("0x" + b"abc".hex()) == hash_secret(b"abc")
        assert hash_secret(b"abc".hex()) == hash_secret(b"abc")

    def test_generate_secret(self):
        secret, secret_hash = generate_secret()
        assert len(secret) == 32
        assert hash_secret(secret) == secret_hash
        assert generate_secret()[0] != secret

"""Tests for EIP-712 delegated authorization signing."""

import asyncio

import pytest
from eth_utils import to_checksum_address

from htlc_swap.htlc import (
    EIP712Verifier,
    INITIATE_TYPES,
    create_eip712_domain,
    hash_secret,
    sign_initiate,
    sign_initiate_with_signer,
    sign_instant_refund,
    sign_instant_refund_with_signer,
    verify_initiate_signature,
    verify_instant_refund_signature,
)

from conftest import ALICE, BOB, CHAIN_ID, HTLC_ADDRESS

DOMAIN = create_eip712_domain(CHAIN_ID, HTLC_ADDRESS)
SECRET_HASH = hash_secret(b"secret")
ORDER_ID = "0x" + "ab" * 32


class RejectingVerifier:
    """SignatureVerifier for a scheme that accepts nothing."""

    def verify(self, domain, types, message, signer, signature):
        return False


class LocalSigner:
    """TypedDataSigner backed by a local key, standing in for a remote wallet."""

    def __init__(self, account):
        self._account = account

    async def get_address(self) -> str:
        return self._account.address

    async def sign_typed_data(self, params):
        signed = self._account.sign_typed_data(
            domain_data=params["domain"],
            message_types=params["types"],
            message_data=params["message"],
        )
        return "0x" + bytes(signed.signature).hex()


class TestDomain:
    """Tests for EIP-712 domain creation."""

    def test_create_eip712_domain(self):
        domain = create_eip712_domain(CHAIN_ID, HTLC_ADDRESS.lower(), name="HTLC", version="2")
        assert domain == {
            "name": "HTLC",
            "version": "2",
            "chainId": CHAIN_ID,
            "verifyingContract": to_checksum_address(HTLC_ADDRESS),
        }

    def test_invalid_verifying_contract(self):
        with pytest.raises(ValueError, match="Invalid verifying contract"):
            create_eip712_domain(CHAIN_ID, "invalid")


class TestInitiateSignature:
    """Tests for Initiate authorizations."""

    def test_sign_and_verify(self):
        signature = sign_initiate(ALICE.key.hex(), DOMAIN, BOB.address, 10**18, 10, SECRET_HASH)

        assert signature.startswith("0x")
        assert len(signature) == 2 + 65 * 2
        assert verify_initiate_signature(
            DOMAIN, ALICE.address, BOB.address, 10**18, 10, SECRET_HASH, signature
        ) is True

    def test_wrong_signer(self):
        signature = sign_initiate(ALICE.key.hex(), DOMAIN, BOB.address, 10**18, 10, SECRET_HASH)
        assert verify_initiate_signature(
            DOMAIN, BOB.address, BOB.address, 10**18, 10, SECRET_HASH, signature
        ) is False

    def test_tampered_message(self):
        signature = sign_initiate(ALICE.key.hex(), DOMAIN, BOB.address, 10**18, 10, SECRET_HASH)
        assert verify_initiate_signature(
            DOMAIN, ALICE.address, BOB.address, 10**18, 11, SECRET_HASH, signature
        ) is False

    def test_other_domain(self):
        """A signature for one chain does not verify on another."""
        signature = sign_initiate(ALICE.key.hex(), DOMAIN, BOB.address, 10**18, 10, SECRET_HASH)
        other = create_eip712_domain(CHAIN_ID + 1, HTLC_ADDRESS)
        assert verify_initiate_signature(
            other, ALICE.address, BOB.address, 10**18, 10, SECRET_HASH, signature
        ) is False

    def test_signature_without_prefix(self):
        signature = sign_initiate(ALICE.key.hex(), DOMAIN, BOB.address, 10**18, 10, SECRET_HASH)
        assert verify_initiate_signature(
            DOMAIN, ALICE.address, BOB.address, 10**18, 10, SECRET_HASH, signature[2:]
        ) is True

    def test_malformed_signature(self):
        assert verify_initiate_signature(
            DOMAIN, ALICE.address, BOB.address, 10**18, 10, SECRET_HASH, "0x1234"
        ) is False

    def test_sign_with_signer(self):
        """Async signers produce signatures the verifier accepts."""
        signature = asyncio.run(
            sign_initiate_with_signer(
                LocalSigner(ALICE), DOMAIN, BOB.address, 10**18, 10, SECRET_HASH
            )
        )
        assert verify_initiate_signature(
            DOMAIN, ALICE.address, BOB.address, 10**18, 10, SECRET_HASH, signature
        ) is True


class TestInstantRefundSignature:
    """Tests for InstantRefund authorizations."""

    def test_sign_and_verify(self):
        signature = sign_instant_refund(BOB.key.hex(), DOMAIN, ORDER_ID)
        assert verify_instant_refund_signature(DOMAIN, BOB.address, ORDER_ID, signature) is True
        assert verify_instant_refund_signature(DOMAIN, ALICE.address, ORDER_ID, signature) is False

    def test_other_order(self):
        signature = sign_instant_refund(BOB.key.hex(), DOMAIN, ORDER_ID)
        assert verify_instant_refund_signature(
            DOMAIN, BOB.address, "0x" + "cd" * 32, signature
        ) is False

    def test_sign_with_signer(self):
        signature = asyncio.run(
            sign_instant_refund_with_signer(LocalSigner(BOB), DOMAIN, ORDER_ID)
        )
        assert verify_instant_refund_signature(DOMAIN, BOB.address, ORDER_ID, signature) is True


class TestVerifier:
    """Tests for the pluggable verifier."""

    def test_recover(self):
        message = {
            "redeemer": BOB.address,
            "amount": 5,
            "timelock": 7,
            "secretHash": "0x" + SECRET_HASH.hex(),
        }
        signature = sign_initiate(ALICE.key.hex(), DOMAIN, BOB.address, 5, 7, SECRET_HASH)
        assert EIP712Verifier().recover(DOMAIN, INITIATE_TYPES, message, signature) == ALICE.address

    def test_custom_verifier_is_used(self):
        class AcceptAll:
            def verify(self, domain, message_types, message, signer, signature):
                return True

        assert verify_instant_refund_signature(
            DOMAIN, BOB.address, ORDER_ID, b"", verifier=AcceptAll()
        ) is True


class TestCustomVerifier:
    """The verify helpers defer to an explicitly supplied verifier."""

    def test_initiate_uses_supplied_verifier(self):
        signature = sign_initiate(ALICE.key.hex(), DOMAIN, BOB.address, 10**18, 10, SECRET_HASH)
        assert verify_initiate_signature(
            DOMAIN, ALICE.address, BOB.address, 10**18, 10, SECRET_HASH, signature,
            verifier=RejectingVerifier(),
        ) is False

    def test_instant_refund_uses_supplied_verifier(self):
        signature = sign_instant_refund(BOB.key.hex(), DOMAIN, ORDER_ID)
        assert verify_instant_refund_signature(
            DOMAIN, BOB.address, ORDER_ID, signature, verifier=RejectingVerifier()
        ) is False

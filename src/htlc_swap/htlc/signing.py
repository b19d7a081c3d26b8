"""Delegated Authorization Signing for the HTLC.

Provides EIP-712 signing and verification for the two delegated messages:
- Initiate: the initiator lets a relayer open an order on their behalf
- InstantRefund: the redeemer releases the escrow back before the timelock

Signing works with various wallet types:
- eth_account.Account (direct signing)
- Any TypedDataSigner (remote wallets, KMS, etc.)
"""

from typing import Any, Dict, List, Optional, Protocol, TypedDict, Union

from eth_account import Account
from eth_account.messages import encode_typed_data

from .types import INITIATE_TYPES, INSTANT_REFUND_TYPES
from .utils import (
    ZERO_ADDRESS,
    normalize_address,
    to_hex32,
    to_signature_bytes,
)


DEFAULT_DOMAIN_NAME = "HTLC"
DEFAULT_DOMAIN_VERSION = "1"

MessageTypes = Dict[str, List[Dict[str, str]]]


class EIP712Domain(TypedDict):
    """EIP-712 domain separator."""

    name: str
    version: str
    chainId: int
    verifyingContract: str


def create_eip712_domain(
    chain_id: int,
    verifying_contract: str = ZERO_ADDRESS,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> EIP712Domain:
    """Create the EIP-712 domain for an HTLC deployment.

    The domain binds signatures to one protocol version, chain and contract,
    so a signature cannot be replayed on another deployment.

    Args:
        chain_id: Chain ID of the deployment
        verifying_contract: Address of the HTLC deployment
        name: Protocol name (default: "HTLC")
        version: Protocol version (default: "1")

    Returns:
        EIP-712 domain dictionary

    Raises:
        ValueError: If the verifying contract address is invalid
    """
    return {
        "name": name,
        "version": version,
        "chainId": chain_id,
        "verifyingContract": normalize_address(
            verifying_contract, "verifying contract"
        ),
    }


def initiate_message(
    redeemer: str, amount: int, timelock: int, secret_hash: Union[str, bytes]
) -> Dict[str, Any]:
    """Build the Initiate message signed by the initiator."""
    return {
        "redeemer": normalize_address(redeemer, "redeemer"),
        "amount": amount,
        "timelock": timelock,
        "secretHash": to_hex32(secret_hash),
    }


def instant_refund_message(order_id: Union[str, bytes]) -> Dict[str, Any]:
    """Build the InstantRefund message signed by the redeemer."""
    return {"orderId": to_hex32(order_id)}


def _sign(
    private_key: str,
    domain: EIP712Domain,
    message_types: MessageTypes,
    message: Dict[str, Any],
) -> str:
    account = Account.from_key(private_key)
    signed_message = account.sign_typed_data(
        domain_data=dict(domain),
        message_types=message_types,
        message_data=message,
    )
    return "0x" + bytes(signed_message.signature).hex()


def sign_initiate(
    private_key: str,
    domain: EIP712Domain,
    redeemer: str,
    amount: int,
    timelock: int,
    secret_hash: Union[str, bytes],
) -> str:
    """Sign an Initiate authorization with a private key.

    Args:
        private_key: Initiator's private key (hex string with or without 0x)
        domain: EIP-712 domain of the target deployment
        redeemer: Counterparty that may redeem the order
        amount: Amount to escrow
        timelock: Refund delay in blocks
        secret_hash: SHA-256 hash of the secret

    Returns:
        65-byte signature as 0x-prefixed hex string
    """
    message = initiate_message(redeemer, amount, timelock, secret_hash)
    return _sign(private_key, domain, INITIATE_TYPES, message)


def sign_instant_refund(
    private_key: str, domain: EIP712Domain, order_id: Union[str, bytes]
) -> str:
    """Sign an InstantRefund authorization with the redeemer's private key.

    Returns:
        65-byte signature as 0x-prefixed hex string
    """
    message = instant_refund_message(order_id)
    return _sign(private_key, domain, INSTANT_REFUND_TYPES, message)


class TypedDataSigner(Protocol):
    """Protocol for signers that can sign EIP-712 typed data."""

    async def get_address(self) -> str:
        """Get the signer's address."""
        ...

    async def sign_typed_data(self, params: Dict[str, Any]) -> str:
        """Sign EIP-712 typed data.

        Args:
            params: Dict with domain, types, primaryType, and message

        Returns:
            Signature as hex string
        """
        ...


async def sign_initiate_with_signer(
    signer: TypedDataSigner,
    domain: EIP712Domain,
    redeemer: str,
    amount: int,
    timelock: int,
    secret_hash: Union[str, bytes],
) -> str:
    """Sign an Initiate authorization using any compatible signer.

    Use this when the initiator's key lives in an external wallet that
    implements the TypedDataSigner protocol.
    """
    message = initiate_message(redeemer, amount, timelock, secret_hash)
    return await signer.sign_typed_data(
        {
            "domain": domain,
            "types": INITIATE_TYPES,
            "primaryType": "Initiate",
            "message": message,
        }
    )


async def sign_instant_refund_with_signer(
    signer: TypedDataSigner,
    domain: EIP712Domain,
    order_id: Union[str, bytes],
) -> str:
    """Sign an InstantRefund authorization using any compatible signer."""
    return await signer.sign_typed_data(
        {
            "domain": domain,
            "types": INSTANT_REFUND_TYPES,
            "primaryType": "InstantRefund",
            "message": instant_refund_message(order_id),
        }
    )


class SignatureVerifier(Protocol):
    """Checks that a typed message was signed by an expected principal.

    Each deployment target plugs in the verifier for its own signature
    scheme; the engine only relies on this method.
    """

    def verify(
        self,
        domain: EIP712Domain,
        message_types: MessageTypes,
        message: Dict[str, Any],
        signer: str,
        signature: Union[str, bytes],
    ) -> bool:
        ...


class EIP712Verifier:
    """Verifies secp256k1 EIP-712 signatures by recovering the signer."""

    def recover(
        self,
        domain: EIP712Domain,
        message_types: MessageTypes,
        message: Dict[str, Any],
        signature: Union[str, bytes],
    ) -> str:
        signable_message = encode_typed_data(
            domain_data=dict(domain),
            message_types=message_types,
            message_data=message,
        )
        return Account.recover_message(
            signable_message, signature=to_signature_bytes(signature)
        )

    def verify(
        self,
        domain: EIP712Domain,
        message_types: MessageTypes,
        message: Dict[str, Any],
        signer: str,
        signature: Union[str, bytes],
    ) -> bool:
        try:
            recovered = self.recover(domain, message_types, message, signature)
        except Exception:
            # Malformed signatures simply fail to authorize
            return False
        return recovered.lower() == signer.lower()


def verify_initiate_signature(
    domain: EIP712Domain,
    initiator: str,
    redeemer: str,
    amount: int,
    timelock: int,
    secret_hash: Union[str, bytes],
    signature: Union[str, bytes],
    verifier: Optional[SignatureVerifier] = None,
) -> bool:
    """Verify an Initiate signature locally.

    Returns:
        True if the signature is valid and from the initiator
    """
    verifier = verifier or EIP712Verifier()
    message = initiate_message(redeemer, amount, timelock, secret_hash)
    return verifier.verify(domain, INITIATE_TYPES, message, initiator, signature)


def verify_instant_refund_signature(
    domain: EIP712Domain,
    redeemer: str,
    order_id: Union[str, bytes],
    signature: Union[str, bytes],
    verifier: Optional[SignatureVerifier] = None,
) -> bool:
    """Verify an InstantRefund signature locally.

    Returns:
        True if the signature is valid and from the redeemer
    """
    verifier = verifier or EIP712Verifier()
    message = instant_refund_message(order_id)
    return verifier.verify(
        domain, INSTANT_REFUND_TYPES, message, redeemer, signature
    )

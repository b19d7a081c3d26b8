"""HTLC Module.

This module provides the Hash Time-Locked Contract order state machine.

Key components:
- Order ID generation (deterministic, chain-bound, computable off-chain)
- Escrow engine (initiate / redeem / refund / instant refund)
- Delegated authorization signing (EIP-712)
- Order store (explicitly owned swap state)

Example usage:
    ```python
    from htlc_swap.htlc import (
        HTLC,
        create_eip712_domain,
        generate_secret,
        sign_initiate,
    )
    from htlc_swap.ledger import Chain, Token

    chain = Chain(chain_id=1)
    token = Token("0x...")
    htlc = HTLC(token, chain, address="0x...")

    secret, secret_hash = generate_secret()

    # Alice authorizes a relayer to open the order for her
    signature = sign_initiate(
        private_key="0x...",
        domain=htlc.domain,
        redeemer=bob,
        amount=10**18,
        timelock=10,
        secret_hash=secret_hash,
    )
    order_id = htlc.initiate_with_signature(
        relayer, alice, bob, 10, 10**18, secret_hash, signature
    )

    # Anyone holding the secret can redeem; bob is paid
    htlc.redeem(relayer, order_id, secret)
    ```
"""

from .types import Order, Call, INITIATE_TYPES, INSTANT_REFUND_TYPES
from .order_id import generate_order_id, verify_order_id, hash_secret, generate_secret
from .signing import (
    EIP712Domain,
    EIP712Verifier,
    SignatureVerifier,
    TypedDataSigner,
    create_eip712_domain,
    sign_initiate,
    sign_instant_refund,
    sign_initiate_with_signer,
    sign_instant_refund_with_signer,
    verify_initiate_signature,
    verify_instant_refund_signature,
)
from .store import OrderStore
from .engine import HTLC, HTLCEvent, check_initiate_params
from .utils import (
    ZERO_ADDRESS,
    MAX_UINT256,
    ONE_ETHER,
    format_ether,
    parse_ether,
)

__all__ = [
    # Types
    "Order",
    "Call",
    "INITIATE_TYPES",
    "INSTANT_REFUND_TYPES",
    # Order ID
    "generate_order_id",
    "verify_order_id",
    "hash_secret",
    "generate_secret",
    # Signing
    "EIP712Domain",
    "EIP712Verifier",
    "SignatureVerifier",
    "TypedDataSigner",
    "create_eip712_domain",
    "sign_initiate",
    "sign_instant_refund",
    "sign_initiate_with_signer",
    "sign_instant_refund_with_signer",
    "verify_initiate_signature",
    "verify_instant_refund_signature",
    # Engine
    "OrderStore",
    "HTLC",
    "HTLCEvent",
    "check_initiate_params",
    # Utils
    "ZERO_ADDRESS",
    "MAX_UINT256",
    "ONE_ETHER",
    "format_ether",
    "parse_ether",
]

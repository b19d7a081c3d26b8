"""Order ID Generation for the HTLC.

Generates deterministic order IDs that provide:
- Cross-chain replay protection (via chain_id)
- Cross-user collision prevention (via initiator and redeemer)
- Per-swap uniqueness (via the secret hash commitment)

IDs can be computed off-chain before an order is submitted.
"""

import hashlib
import secrets
from typing import Tuple, Union

from eth_abi import encode

from .utils import MAX_UINT256, normalize_address, to_bytes32


def hash_secret(secret: Union[str, bytes]) -> bytes:
    """Return the SHA-256 commitment for a secret.

    Args:
        secret: Secret preimage as bytes or hex string

    Returns:
        32-byte secret hash
    """
    if isinstance(secret, str):
        secret = bytes.fromhex(secret[2:] if secret.startswith("0x") else secret)
    return hashlib.sha256(secret).digest()


def generate_secret() -> Tuple[bytes, bytes]:
    """Generate a random 32-byte secret and its SHA-256 hash.

    Returns:
        (secret, secret_hash)
    """
    secret = secrets.token_bytes(32)
    return secret, hash_secret(secret)


def generate_order_id(
    chain_id: int,
    initiator: str,
    redeemer: str,
    timelock: int,
    amount: int,
    secret_hash: Union[str, bytes],
) -> str:
    """Generate the orderId for a swap using a deterministic hash.

    Args:
        chain_id: Chain ID of the deployment
        initiator: Address whose funds are escrowed
        redeemer: Address paid on redeem
        timelock: Refund delay in blocks
        amount: Escrowed amount
        secret_hash: SHA-256 hash of the secret (32 bytes)

    Returns:
        bytes32 hex string order ID

    Raises:
        ValueError: If an address or the secret hash is malformed
    """
    initiator = normalize_address(initiator, "initiator")
    redeemer = normalize_address(redeemer, "redeemer")
    for name, value in (("timelock", timelock), ("amount", amount)):
        if not 0 <= value <= MAX_UINT256:
            raise ValueError(f"Invalid {name}: {value} is not a uint256")

    # Types: uint256, address, address, uint256, uint256, bytes32
    encoded = encode(
        ["uint256", "address", "address", "uint256", "uint256", "bytes32"],
        [
            chain_id,  # Chain ID first for cross-chain replay protection
            initiator,
            redeemer,
            timelock,
            amount,
            to_bytes32(secret_hash, "secret_hash"),
        ],
    )

    return "0x" + hashlib.sha256(encoded).hexdigest()


def verify_order_id(
    order_id: str,
    chain_id: int,
    initiator: str,
    redeemer: str,
    timelock: int,
    amount: int,
    secret_hash: Union[str, bytes],
) -> bool:
    """Verify an orderId matches the given parameters.

    Returns:
        True if the order ID matches, False otherwise
    """
    try:
        reconstructed = generate_order_id(
            chain_id, initiator, redeemer, timelock, amount, secret_hash
        )
    except ValueError:
        return False
    return reconstructed.lower() == order_id.lower()

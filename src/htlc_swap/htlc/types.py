"""HTLC Types.

Order records, batch calls and the EIP-712 message schemas.
"""

from dataclasses import dataclass, field
from typing import Any, Tuple, Union


@dataclass(frozen=True)
class Order:
    """A single swap escrowed by the HTLC."""

    is_fulfilled: bool
    """True once the order has been redeemed or refunded."""

    initiator: str
    """Address whose funds are escrowed (checksum)."""

    redeemer: str
    """Address paid when the secret is revealed (checksum)."""

    initiated_at: int
    """Block height at which the order was created."""

    timelock: int
    """Blocks after ``initiated_at`` before a refund is allowed."""

    amount: int
    """Escrowed amount in the asset's smallest unit."""

    secret_hash: bytes = field(default=b"", repr=False)
    """SHA-256 commitment to the secret (32 bytes)."""

    @property
    def expires_at(self) -> int:
        """First block height at which the order can be refunded."""
        return self.initiated_at + self.timelock

    def to_dict(self) -> dict:
        return {
            "is_fulfilled": self.is_fulfilled,
            "initiator": self.initiator,
            "redeemer": self.redeemer,
            "initiated_at": self.initiated_at,
            "timelock": self.timelock,
            "amount": self.amount,
            "secret_hash": "0x" + self.secret_hash.hex(),
        }


@dataclass
class Call:
    """One entry of a multicall batch."""

    selector: Union[str, bytes]
    """Entrypoint name (e.g. ``"redeem"``) or its 4-byte selector."""

    args: Tuple[Any, ...] = ()
    """Positional arguments, excluding the caller."""


# EIP-712 types for delegated initiation (signed by the initiator)
INITIATE_TYPES = {
    "Initiate": [
        {"name": "redeemer", "type": "address"},
        {"name": "amount", "type": "uint256"},
        {"name": "timelock", "type": "uint256"},
        {"name": "secretHash", "type": "bytes32"},
    ],
}

# EIP-712 types for early refund (signed by the redeemer)
INSTANT_REFUND_TYPES = {
    "InstantRefund": [
        {"name": "orderId", "type": "bytes32"},
    ],
}

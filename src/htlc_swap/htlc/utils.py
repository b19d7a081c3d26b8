"""Utility functions for the HTLC engine."""

from typing import Union

from eth_utils import is_address, to_bytes, to_checksum_address

# Zero address
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Largest value representable by a uint256
MAX_UINT256 = 2**256 - 1

# 1 ether in wei, the amount unit used throughout the tests
ONE_ETHER = 10**18


def normalize_address(address: str, field: str = "address") -> str:
    """Validate an address and return its checksum form.

    Args:
        address: Hex address (any case)
        field: Field name used in the error message

    Returns:
        Checksummed address

    Raises:
        ValueError: If the address is invalid
    """
    if not isinstance(address, str) or not is_address(address):
        raise ValueError(f"Invalid {field}: {address}")
    return to_checksum_address(address)


def is_zero_address(address: str) -> bool:
    return int(address, 16) == 0


def to_bytes32(value: Union[str, bytes], field: str = "value") -> bytes:
    """Coerce a hex string or bytes into exactly 32 bytes.

    Raises:
        ValueError: If the value is not 32 bytes long
    """
    raw = to_bytes(hexstr=value) if isinstance(value, str) else bytes(value)
    if len(raw) != 32:
        raise ValueError(f"Invalid {field}: expected 32 bytes, got {len(raw)}")
    return raw


def to_hex32(value: Union[str, bytes]) -> str:
    """Return a 0x-prefixed lowercase bytes32 hex string."""
    return "0x" + to_bytes32(value).hex()


def to_signature_bytes(signature: Union[str, bytes]) -> bytes:
    """Accept signatures as raw bytes or hex strings (with or without 0x)."""
    if isinstance(signature, str):
        return to_bytes(hexstr=signature)
    return bytes(signature)


def format_ether(amount: int) -> str:
    """Format a wei amount (18 decimals) to a human readable string.

    Args:
        amount: Amount in wei (e.g., 10**18 = 1)

    Returns:
        Human readable string (e.g., "1")
    """
    whole, frac = divmod(amount, ONE_ETHER)
    if not frac:
        return str(whole)
    return f"{whole}.{frac:018d}".rstrip("0")


def parse_ether(amount: Union[int, str]) -> int:
    """Parse a human readable amount to wei (18 decimals).

    String input avoids float rounding for large values.
    """
    text = str(amount)
    whole, _, frac = text.partition(".")
    if len(frac) > 18:
        raise ValueError(f"Too many decimals: {amount}")
    return int(whole or "0") * ONE_ETHER + int(frac.ljust(18, "0") or "0")

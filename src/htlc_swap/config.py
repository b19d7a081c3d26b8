"""Deployment configuration for the HTLC engine."""

from dataclasses import dataclass
from typing import Optional, TypedDict

DEFAULT_CHAIN_ID = 1
DEFAULT_NAME = "HTLC"
DEFAULT_VERSION = "1"
DEFAULT_VERIFYING_CONTRACT = "0x0000000000000000000000000000000000000000"


class HTLCConfig(TypedDict, total=False):
    """HTLC configuration."""

    chain_id: int
    """Chain ID of the deployment. Default: 1"""

    name: str
    """EIP-712 domain name. Default: HTLC"""

    version: str
    """EIP-712 domain version. Default: 1"""

    verifying_contract: str
    """Address of the deployment (EIP-712 verifying contract), which also holds
    the escrowed funds. Required by ``HTLC.from_config``; the zero address
    default is only usable for signing domains."""


@dataclass
class ResolvedHTLCConfig:
    """Resolved HTLC configuration with all defaults applied."""

    chain_id: int
    name: str
    version: str
    verifying_contract: str


def resolve_config(config: Optional[HTLCConfig] = None) -> ResolvedHTLCConfig:
    """Apply defaults to a user supplied configuration.

    Raises:
        ValueError: If the chain id is not positive
    """
    config = config or {}
    resolved = ResolvedHTLCConfig(
        chain_id=config.get("chain_id", DEFAULT_CHAIN_ID),
        name=config.get("name", DEFAULT_NAME),
        version=config.get("version", DEFAULT_VERSION),
        verifying_contract=config.get(
            "verifying_contract", DEFAULT_VERIFYING_CONTRACT
        ),
    )
    if resolved.chain_id <= 0:
        raise ValueError(f"Invalid chain_id: {resolved.chain_id}")
    return resolved

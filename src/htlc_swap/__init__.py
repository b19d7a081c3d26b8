"""Cross-chain atomic swap escrow (HTLC) engine.

Re-exports the public surface of the package.
"""

from .htlc import (
    HTLC,
    HTLCEvent,
    Order,
    Call,
    OrderStore,
    EIP712Verifier,
    create_eip712_domain,
    generate_order_id,
    verify_order_id,
    generate_secret,
    hash_secret,
    sign_initiate,
    sign_instant_refund,
    ZERO_ADDRESS,
)
from .ledger import Chain, Token, UtxoSet
from .adapters import SwapBackend, UtxoHTLC
from .multicall import Multicall, get_selector_from_name
from .config import HTLCConfig, ResolvedHTLCConfig, resolve_config
from .errors import (
    HTLCError,
    ValidationError,
    AuthorizationError,
    OrderStateError,
    LedgerError,
    MulticallError,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "HTLC",
    "HTLCEvent",
    "Order",
    "Call",
    "OrderStore",
    # Identity and signing
    "EIP712Verifier",
    "create_eip712_domain",
    "generate_order_id",
    "verify_order_id",
    "generate_secret",
    "hash_secret",
    "sign_initiate",
    "sign_instant_refund",
    "ZERO_ADDRESS",
    # Ledgers and backends
    "Chain",
    "Token",
    "UtxoSet",
    "SwapBackend",
    "UtxoHTLC",
    # Batching
    "Multicall",
    "get_selector_from_name",
    # Config
    "HTLCConfig",
    "ResolvedHTLCConfig",
    "resolve_config",
    # Errors
    "HTLCError",
    "ValidationError",
    "AuthorizationError",
    "OrderStateError",
    "LedgerError",
    "MulticallError",
]

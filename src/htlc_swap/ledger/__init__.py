"""Ledger collaborators consumed by the HTLC backends."""

from .chain import Chain
from .journal import Journal
from .token import AssetLedger, Token
from .utxo import Output, UtxoSet

__all__ = [
    "Chain",
    "Journal",
    "AssetLedger",
    "Token",
    "Output",
    "UtxoSet",
]

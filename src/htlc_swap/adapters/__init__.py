"""Chain backends implementing the shared HTLC capability."""

from .base import SwapBackend
from .utxo import UtxoHTLC, build_htlc_script, parse_htlc_script

__all__ = [
    "SwapBackend",
    "UtxoHTLC",
    "build_htlc_script",
    "parse_htlc_script",
]

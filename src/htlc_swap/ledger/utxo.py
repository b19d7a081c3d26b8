"""In-memory unspent-output set for the UTXO backend.

Outputs are locked by a script. Plain wallet coins use a pay-to-principal
script (``<principal> OP_CHECKSIG``); HTLC outputs use the template built by
the UTXO adapter. This is a model of the ledger, not a Bitcoin node: scripts
are matched, never executed.
"""

import dataclasses
import hashlib
import logging
import struct
from typing import Dict, Iterator, Optional, Tuple

from ..errors import LedgerError
from ..htlc.utils import normalize_address
from .chain import Chain
from .journal import Journal

log = logging.getLogger(__name__)

# Bitcoin Script opcodes
OP_0 = 0x00
OP_IF = 0x63
OP_ELSE = 0x67
OP_ENDIF = 0x68
OP_DROP = 0x75
OP_EQUALVERIFY = 0x88
OP_SHA256 = 0xa8
OP_CHECKSIG = 0xac
OP_CHECKSEQUENCEVERIFY = 0xb2

INSUFFICIENT_FUNDS = "UTXO: insufficient funds"
MISSING_OUTPUT = "UTXO: missing or spent output"

Outpoint = Tuple[str, int]


def push_data(data: bytes) -> bytes:
    """Create push data opcode for Bitcoin script."""
    length = len(data)
    if length < 0x4c:
        return bytes([length]) + data
    elif length <= 0xff:
        return bytes([0x4c, length]) + data
    elif length <= 0xffff:
        return bytes([0x4d]) + struct.pack('<H', length) + data
    else:
        return bytes([0x4e]) + struct.pack('<I', length) + data


def push_int(n: int) -> bytes:
    """Push a non-negative integer (for timelocks) as a minimal script number."""
    if n < 0:
        raise ValueError(f"Negative script number: {n}")
    if n == 0:
        return bytes([OP_0])
    elif n <= 16:
        return bytes([0x50 + n])  # OP_1 through OP_16
    result = []
    while n:
        result.append(n & 0xff)
        n >>= 8
    # Keep the sign bit clear
    if result[-1] & 0x80:
        result.append(0x00)
    return push_data(bytes(result))


def read_push(script: bytes, pos: int) -> Tuple[Optional[bytes], int]:
    """Read one push at ``pos``; returns (data, next_pos) or (None, pos)."""
    if pos >= len(script):
        return None, pos
    op = script[pos]
    if 0x01 <= op < 0x4c:
        end = pos + 1 + op
        if end > len(script):
            return None, pos
        return script[pos + 1:end], end
    if op == 0x4c and pos + 1 < len(script):
        end = pos + 2 + script[pos + 1]
        if end > len(script):
            return None, pos
        return script[pos + 2:end], end
    return None, pos


def read_int(script: bytes, pos: int) -> Tuple[Optional[int], int]:
    """Read a script number written by ``push_int``."""
    if pos >= len(script):
        return None, pos
    op = script[pos]
    if 0x51 <= op <= 0x60:
        return op - 0x50, pos + 1
    data, end = read_push(script, pos)
    if data is None:
        return None, pos
    return int.from_bytes(data, "little"), end


def principal_script(principal: str) -> bytes:
    """Locking script paying a principal: <principal> OP_CHECKSIG."""
    raw = bytes.fromhex(normalize_address(principal)[2:])
    return push_data(raw) + bytes([OP_CHECKSIG])


@dataclasses.dataclass(frozen=True)
class Output:
    """A transaction output and whether it has been spent."""

    script: bytes
    value: int
    height: int
    spent: bool = False
    witness: Tuple[bytes, ...] = ()


class UtxoSet:
    """Unspent (and spent) outputs of a UTXO ledger."""

    def __init__(self, chain: Chain):
        self._chain = chain
        self._outputs: Dict[Outpoint, Output] = {}
        self._journal = Journal()
        # Never rolled back, so txids stay unique across undone outputs
        self._counter = 0

    @property
    def chain(self) -> Chain:
        return self._chain

    def add_output(self, script: bytes, value: int) -> Outpoint:
        """Create an output at the current height and return its outpoint."""
        if value <= 0:
            raise LedgerError(f"UTXO: invalid output value {value}")
        self._counter += 1
        txid = hashlib.sha256(
            script + value.to_bytes(32, "big") + self._counter.to_bytes(8, "big")
        ).hexdigest()
        outpoint = (txid, 0)
        self._journal.set(
            self._outputs, outpoint, Output(script, value, self._chain.block_number)
        )
        return outpoint

    def get(self, outpoint: Outpoint) -> Optional[Output]:
        return self._outputs.get(outpoint)

    def spend(self, outpoint: Outpoint, witness: Tuple[bytes, ...] = ()) -> Output:
        """Mark an output spent with the given witness stack.

        Raises:
            LedgerError: If the output does not exist or is already spent
        """
        output = self._outputs.get(outpoint)
        if output is None or output.spent:
            raise LedgerError(MISSING_OUTPUT)
        spent = dataclasses.replace(output, spent=True, witness=tuple(witness))
        self._journal.set(self._outputs, outpoint, spent)
        return spent

    def outputs(self) -> Iterator[Tuple[Outpoint, Output]]:
        """All outputs, spent and unspent, in creation order."""
        return iter(list(self._outputs.items()))

    # --- Wallet helpers --------------------------------------------------

    def fund(self, principal: str, value: int) -> Outpoint:
        """Credit a principal with a new coin."""
        outpoint = self.add_output(principal_script(principal), value)
        log.debug("Funded %s with %d", principal, value)
        return outpoint

    def balance_of(self, principal: str) -> int:
        script = principal_script(principal)
        return sum(
            o.value for o in self._outputs.values() if o.script == script and not o.spent
        )

    def take(self, principal: str, value: int) -> None:
        """Spend a principal's coins worth ``value``, returning change.

        Raises:
            LedgerError: If the principal's coins are worth less than ``value``
        """
        script = principal_script(principal)
        coins = [
            (op, o) for op, o in self._outputs.items() if o.script == script and not o.spent
        ]
        if sum(o.value for _, o in coins) < value:
            raise LedgerError(INSUFFICIENT_FUNDS)

        gathered = 0
        for outpoint, _ in coins:
            gathered += self.spend(outpoint).value
            if gathered >= value:
                break
        if gathered > value:
            self.add_output(script, gathered - value)

    # --- Rollback --------------------------------------------------------

    def snapshot(self) -> int:
        return self._journal.checkpoint()

    def restore(self, snapshot: int) -> None:
        self._journal.rollback(snapshot)

    def commit(self) -> None:
        self._journal.commit()

"""UTXO HTLC backend.

On a UTXO ledger there is no contract storage: an order exists as an output
locked by the HTLC script

    OP_IF
        OP_SHA256 <secret_hash> OP_EQUALVERIFY
        <redeemer> OP_CHECKSIG
    OP_ELSE
        <timelock> OP_CHECKSEQUENCEVERIFY OP_DROP
        <initiator> OP_CHECKSIG
    OP_ENDIF

and is fulfilled once that output is spent. Order lookups scan the output
set for scripts matching this template and rebuild the order id from the
script fields, the output value and the chain id.
"""

import logging
from contextlib import contextmanager
from typing import Optional, Tuple, Union

from ..errors import (
    DUPLICATE_ORDER,
    INCORRECT_SECRET,
    INVALID_REDEEMER_SIGNATURE,
    ORDER_FULFILLED,
    ORDER_NOT_EXPIRED,
    ORDER_NOT_INITIATED,
    AuthorizationError,
    OrderStateError,
    ValidationError,
)
from ..htlc.engine import check_initiate_params
from ..htlc.order_id import generate_order_id, hash_secret
from ..htlc.signing import (
    EIP712Verifier,
    SignatureVerifier,
    create_eip712_domain,
    instant_refund_message,
)
from ..htlc.types import INSTANT_REFUND_TYPES, Order
from ..htlc.utils import ZERO_ADDRESS, normalize_address, to_bytes32
from ..ledger.utxo import (
    OP_CHECKSEQUENCEVERIFY,
    OP_CHECKSIG,
    OP_DROP,
    OP_ELSE,
    OP_ENDIF,
    OP_EQUALVERIFY,
    OP_IF,
    OP_SHA256,
    Outpoint,
    Output,
    UtxoSet,
    push_data,
    push_int,
    read_int,
    read_push,
)

log = logging.getLogger(__name__)

# Witness branch selectors
REDEEM_BRANCH = b"\x01"
REFUND_BRANCH = b""


def build_htlc_script(
    initiator: str, redeemer: str, timelock: int, secret_hash: Union[str, bytes]
) -> bytes:
    """Build the HTLC locking script for one order."""
    initiator_raw = bytes.fromhex(normalize_address(initiator, "initiator")[2:])
    redeemer_raw = bytes.fromhex(normalize_address(redeemer, "redeemer")[2:])

    script = bytes([OP_IF, OP_SHA256])
    script += push_data(to_bytes32(secret_hash, "secret_hash"))
    script += bytes([OP_EQUALVERIFY])
    script += push_data(redeemer_raw)
    script += bytes([OP_CHECKSIG, OP_ELSE])
    script += push_int(timelock)
    script += bytes([OP_CHECKSEQUENCEVERIFY, OP_DROP])
    script += push_data(initiator_raw)
    script += bytes([OP_CHECKSIG, OP_ENDIF])
    return script


def parse_htlc_script(script: bytes) -> Optional[Tuple[bytes, str, int, str]]:
    """Match a script against the HTLC template.

    Returns:
        (secret_hash, redeemer, timelock, initiator) or None if the script
        is not an HTLC
    """
    if script[:2] != bytes([OP_IF, OP_SHA256]):
        return None
    secret_hash, pos = read_push(script, 2)
    if secret_hash is None or len(secret_hash) != 32:
        return None
    if script[pos:pos + 1] != bytes([OP_EQUALVERIFY]):
        return None
    redeemer, pos = read_push(script, pos + 1)
    if redeemer is None or len(redeemer) != 20:
        return None
    if script[pos:pos + 2] != bytes([OP_CHECKSIG, OP_ELSE]):
        return None
    timelock, pos = read_int(script, pos + 2)
    if timelock is None:
        return None
    if script[pos:pos + 2] != bytes([OP_CHECKSEQUENCEVERIFY, OP_DROP]):
        return None
    initiator, pos = read_push(script, pos + 2)
    if initiator is None or len(initiator) != 20:
        return None
    if script[pos:] != bytes([OP_CHECKSIG, OP_ENDIF]):
        return None
    return (
        secret_hash,
        normalize_address("0x" + redeemer.hex()),
        timelock,
        normalize_address("0x" + initiator.hex()),
    )


class UtxoHTLC:
    """HTLC backend over a UTXO ledger.

    Offers the same entrypoints and error reasons as ``HTLC``; the order's
    state lives entirely in the output set.
    """

    def __init__(
        self,
        utxos: UtxoSet,
        verifier: Optional[SignatureVerifier] = None,
        name: str = "HTLC",
        version: str = "1",
    ):
        self._utxos = utxos
        self._chain = utxos.chain
        self._verifier = verifier or EIP712Verifier()
        self.domain = create_eip712_domain(self._chain.chain_id, ZERO_ADDRESS, name, version)

    @property
    def chain_id(self) -> int:
        return self._chain.chain_id

    def initiate(
        self,
        caller: str,
        redeemer: str,
        timelock: int,
        amount: int,
        secret_hash: Union[str, bytes],
    ) -> str:
        """Lock ``amount`` of the caller's coins in an HTLC output.

        Raises:
            ValidationError: On a structural precondition failure
            LedgerError: If the caller's coins are insufficient
        """
        initiator = normalize_address(caller, "caller")
        redeemer = check_initiate_params(initiator, redeemer, timelock, amount)
        secret_hash = to_bytes32(secret_hash, "secret_hash")
        order_id = generate_order_id(
            self.chain_id, initiator, redeemer, timelock, amount, secret_hash
        )
        if self._find(order_id) is not None:
            raise ValidationError(DUPLICATE_ORDER)

        script = build_htlc_script(initiator, redeemer, timelock, secret_hash)
        with self._atomic():
            self._utxos.take(initiator, amount)
            outpoint = self._utxos.add_output(script, amount)

        log.info("UTXO order %s locked in %s:%d (%d)",
                 order_id, outpoint[0], outpoint[1], amount)
        return order_id

    def redeem(self, caller: str, order_id: str, secret: Union[str, bytes]) -> None:
        """Spend the HTLC output through the secret branch, paying the redeemer."""
        caller = normalize_address(caller, "caller")
        outpoint, output, order = self._require(order_id)
        if hash_secret(secret) != order.secret_hash:
            raise OrderStateError(INCORRECT_SECRET)
        if order.is_fulfilled:
            raise OrderStateError(ORDER_FULFILLED)

        preimage = secret if isinstance(secret, bytes) else bytes.fromhex(
            secret[2:] if secret.startswith("0x") else secret
        )
        with self._atomic():
            self._utxos.spend(outpoint, (preimage, REDEEM_BRANCH))
            self._utxos.fund(order.redeemer, output.value)
        log.info("UTXO order %s redeemed by %s", order_id, caller)

    def refund(self, caller: str, order_id: str) -> None:
        """Spend the HTLC output through the timelock branch, paying the initiator."""
        caller = normalize_address(caller, "caller")
        outpoint, output, order = self._require(order_id)
        if order.is_fulfilled:
            raise OrderStateError(ORDER_FULFILLED)
        if self._chain.block_number < order.expires_at:
            raise OrderStateError(ORDER_NOT_EXPIRED)

        with self._atomic():
            self._utxos.spend(outpoint, (REFUND_BRANCH,))
            self._utxos.fund(order.initiator, output.value)
        log.info("UTXO order %s refunded by %s", order_id, caller)

    def instant_refund(
        self, caller: str, order_id: str, signature: Union[str, bytes]
    ) -> None:
        """Refund before the timelock with the redeemer's consent."""
        normalize_address(caller, "caller")
        outpoint, output, order = self._require(order_id)
        if order.is_fulfilled:
            raise OrderStateError(ORDER_FULFILLED)
        if not self._verifier.verify(
            self.domain,
            INSTANT_REFUND_TYPES,
            instant_refund_message(order_id),
            order.redeemer,
            signature,
        ):
            raise AuthorizationError(INVALID_REDEEMER_SIGNATURE)

        with self._atomic():
            self._utxos.spend(outpoint, (REFUND_BRANCH,))
            self._utxos.fund(order.initiator, output.value)
        log.info("UTXO order %s instantly refunded", order_id)

    def get_order(self, order_id: str) -> Optional[Order]:
        found = self._find(order_id)
        return found[2] if found else None

    def _find(self, order_id: str) -> Optional[Tuple[Outpoint, Output, Order]]:
        target = order_id.lower()
        for outpoint, output in self._utxos.outputs():
            fields = parse_htlc_script(output.script)
            if fields is None:
                continue
            secret_hash, redeemer, timelock, initiator = fields
            candidate = generate_order_id(
                self.chain_id, initiator, redeemer, timelock, output.value, secret_hash
            )
            if candidate == target:
                order = Order(
                    is_fulfilled=output.spent,
                    initiator=initiator,
                    redeemer=redeemer,
                    initiated_at=output.height,
                    timelock=timelock,
                    amount=output.value,
                    secret_hash=secret_hash,
                )
                return outpoint, output, order
        return None

    def _require(self, order_id: str) -> Tuple[Outpoint, Output, Order]:
        found = self._find(order_id)
        if found is None:
            raise OrderStateError(ORDER_NOT_INITIATED)
        return found

    @contextmanager
    def _atomic(self):
        snapshot = self._utxos.snapshot()
        try:
            yield
        except Exception:
            self._utxos.restore(snapshot)
            raise
        self._utxos.commit()

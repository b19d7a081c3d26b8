"""HTLC escrow engine.

Implements the order state machine over an account-based ledger:

    Uninitiated -> Initiated -> Redeemed | Refunded

Redeemed and Refunded are both recorded as ``is_fulfilled = True`` and have
no outgoing transitions. Each entrypoint checks its preconditions in a fixed
order, then moves funds and updates the order as one atomic unit.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from ..config import HTLCConfig, resolve_config
from ..errors import (
    DUPLICATE_ORDER,
    INCORRECT_SECRET,
    INVALID_INITIATOR_SIGNATURE,
    INVALID_REDEEMER_SIGNATURE,
    ORDER_FULFILLED,
    ORDER_NOT_EXPIRED,
    ORDER_NOT_INITIATED,
    SAME_INITIATOR_REDEEMER,
    ZERO_ADDRESS_REDEEMER,
    ZERO_AMOUNT,
    ZERO_TIMELOCK,
    AuthorizationError,
    OrderStateError,
    ValidationError,
)
from ..ledger.chain import Chain
from ..ledger.token import AssetLedger
from .order_id import generate_order_id, hash_secret
from .signing import (
    EIP712Verifier,
    SignatureVerifier,
    create_eip712_domain,
    initiate_message,
    instant_refund_message,
)
from .store import OrderStore
from .types import INITIATE_TYPES, INSTANT_REFUND_TYPES, Order
from .utils import is_zero_address, normalize_address, to_bytes32

log = logging.getLogger(__name__)


def check_initiate_params(
    initiator: str, redeemer: str, timelock: int, amount: int
) -> str:
    """Structural checks shared by every initiate variant and backend.

    Returns:
        The checksummed redeemer

    Raises:
        ValidationError: On the first failing check
    """
    redeemer = normalize_address(redeemer, "redeemer")
    if is_zero_address(redeemer):
        raise ValidationError(ZERO_ADDRESS_REDEEMER)
    if amount == 0:
        raise ValidationError(ZERO_AMOUNT)
    if timelock == 0:
        raise ValidationError(ZERO_TIMELOCK)
    if initiator == redeemer:
        raise ValidationError(SAME_INITIATOR_REDEEMER)
    return redeemer


@dataclass(frozen=True)
class HTLCEvent:
    """Log entry emitted by a successful transition."""

    name: str
    order_id: str
    block_number: int
    data: Dict[str, Any] = field(default_factory=dict)


class HTLC:
    """Hash Time-Locked Contract escrowing a single fungible asset.

    Example:
        ```python
        chain = Chain(chain_id=1)
        token = Token("0x...")
        htlc = HTLC(token, chain, address="0x...")

        token.approve(alice, htlc.address, amount)
        order_id = htlc.initiate(alice, bob, 10, amount, secret_hash)

        # Anyone holding the secret can complete the swap; bob is paid
        htlc.redeem(charlie, order_id, secret)
        ```
    """

    def __init__(
        self,
        token: AssetLedger,
        chain: Chain,
        address: str,
        store: Optional[OrderStore] = None,
        verifier: Optional[SignatureVerifier] = None,
        name: str = "HTLC",
        version: str = "1",
    ):
        """Initialize the HTLC.

        Args:
            token: Asset ledger holding the escrowed funds
            chain: Host chain providing the chain id and block height
            address: Address the HTLC holds funds under
            store: Order store to use (default: a fresh, empty store)
            verifier: Signature verifier (default: EIP-712 / secp256k1)
            name: EIP-712 domain name
            version: EIP-712 domain version
        """
        self.address = normalize_address(address, "HTLC address")
        if is_zero_address(self.address):
            raise ValueError("Invalid HTLC address: funds cannot be held by the zero address")
        self._token = token
        self._chain = chain
        self._store = store if store is not None else OrderStore()
        self._verifier = verifier or EIP712Verifier()
        self._events: List[HTLCEvent] = []
        self.domain = create_eip712_domain(chain.chain_id, self.address, name, version)

    @classmethod
    def from_config(
        cls,
        config: Optional[HTLCConfig],
        token: AssetLedger,
        chain: Optional[Chain] = None,
        store: Optional[OrderStore] = None,
        verifier: Optional[SignatureVerifier] = None,
    ) -> "HTLC":
        """Build an engine from user configuration.

        Raises:
            ValueError: If ``chain`` disagrees with the configured chain id, or
                ``verifying_contract`` is missing or the zero address
        """
        resolved = resolve_config(config)
        if chain is None:
            chain = Chain(resolved.chain_id)
        elif chain.chain_id != resolved.chain_id:
            raise ValueError(
                f"Chain id mismatch: config={resolved.chain_id} chain={chain.chain_id}"
            )
        return cls(
            token,
            chain,
            address=resolved.verifying_contract,
            store=store,
            verifier=verifier,
            name=resolved.name,
            version=resolved.version,
        )

    @property
    def token(self) -> str:
        """Address of the escrowed asset."""
        return self._token.address

    @property
    def chain_id(self) -> int:
        return self._chain.chain_id

    @property
    def store(self) -> OrderStore:
        return self._store

    def order_id_for(
        self,
        initiator: str,
        redeemer: str,
        timelock: int,
        amount: int,
        secret_hash: Union[str, bytes],
    ) -> str:
        """Order id of a swap on this deployment's chain."""
        return generate_order_id(
            self.chain_id, initiator, redeemer, timelock, amount, secret_hash
        )

    # --- Entrypoints -----------------------------------------------------

    def initiate(
        self,
        caller: str,
        redeemer: str,
        timelock: int,
        amount: int,
        secret_hash: Union[str, bytes],
    ) -> str:
        """Open an order funded by the caller.

        Returns:
            The new order id

        Raises:
            ValidationError: On a structural precondition failure
            LedgerError: If the caller's allowance or balance is too small
        """
        initiator = normalize_address(caller, "caller")
        return self._initiate(initiator, redeemer, timelock, amount, secret_hash)

    def initiate_on_behalf(
        self,
        caller: str,
        initiator: str,
        redeemer: str,
        timelock: int,
        amount: int,
        secret_hash: Union[str, bytes],
    ) -> str:
        """Open an order for ``initiator``; funds are pulled from the initiator.

        Lets a relayer without custody of the funds submit the order.
        """
        normalize_address(caller, "caller")
        initiator = normalize_address(initiator, "initiator")
        return self._initiate(initiator, redeemer, timelock, amount, secret_hash)

    def initiate_with_signature(
        self,
        caller: str,
        initiator: str,
        redeemer: str,
        timelock: int,
        amount: int,
        secret_hash: Union[str, bytes],
        signature: Union[str, bytes],
    ) -> str:
        """Open an order authorized by the initiator's Initiate signature.

        Raises:
            ValidationError: On a structural precondition failure
            AuthorizationError: If the signature is not the initiator's
        """
        normalize_address(caller, "caller")
        initiator = normalize_address(initiator, "initiator")
        return self._initiate(
            initiator, redeemer, timelock, amount, secret_hash, signature=signature
        )

    def redeem(self, caller: str, order_id: str, secret: Union[str, bytes]) -> None:
        """Reveal the secret and pay the order's redeemer.

        Anyone may call this; the payout always goes to the recorded redeemer.

        Raises:
            OrderStateError: If the order is unknown, the secret does not
                match, or the order is already fulfilled
        """
        caller = normalize_address(caller, "caller")
        order = self._require_order(order_id)
        if hash_secret(secret) != order.secret_hash:
            raise OrderStateError(INCORRECT_SECRET)
        if order.is_fulfilled:
            raise OrderStateError(ORDER_FULFILLED)

        with self._atomic():
            self._store.mark_fulfilled(order_id)
            self._token.transfer(self.address, order.redeemer, order.amount)
            self._emit("Redeemed", order_id, secret=_hex(secret), caller=caller)

        log.info("Order %s redeemed by %s, paid %d to %s",
                 order_id, caller, order.amount, order.redeemer)

    def refund(self, caller: str, order_id: str) -> None:
        """Return the escrow to the initiator once the timelock has passed.

        The order is expired when ``block_number >= initiated_at + timelock``.

        Raises:
            OrderStateError: If the order is unknown, fulfilled or not expired
        """
        caller = normalize_address(caller, "caller")
        order = self._require_order(order_id)
        if order.is_fulfilled:
            raise OrderStateError(ORDER_FULFILLED)
        if self._chain.block_number < order.expires_at:
            raise OrderStateError(ORDER_NOT_EXPIRED)

        with self._atomic():
            self._store.mark_fulfilled(order_id)
            self._token.transfer(self.address, order.initiator, order.amount)
            self._emit("Refunded", order_id, caller=caller)

        log.info("Order %s refunded by %s, returned %d to %s",
                 order_id, caller, order.amount, order.initiator)

    def instant_refund(
        self, caller: str, order_id: str, signature: Union[str, bytes]
    ) -> None:
        """Refund before the timelock using the redeemer's InstantRefund signature.

        Raises:
            OrderStateError: If the order is unknown or fulfilled
            AuthorizationError: If the signature is not the redeemer's
        """
        caller = normalize_address(caller, "caller")
        order = self._require_order(order_id)
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
            self._store.mark_fulfilled(order_id)
            self._token.transfer(self.address, order.initiator, order.amount)
            self._emit("Refunded", order_id, caller=caller, instant=True)

        log.info("Order %s instantly refunded, returned %d to %s",
                 order_id, order.amount, order.initiator)

    def get_order(self, order_id: str) -> Optional[Order]:
        """Return the order record, or None if it was never initiated."""
        return self._store.get(order_id)

    def events(self, name: Optional[str] = None) -> List[HTLCEvent]:
        """Emitted events, optionally filtered by name."""
        return [e for e in self._events if name is None or e.name == name]

    def entrypoints(self) -> Dict[str, Callable[..., Any]]:
        """State-changing entrypoints reachable through a multicall batch."""
        return {
            "initiate": self.initiate,
            "initiate_on_behalf": self.initiate_on_behalf,
            "initiate_with_signature": self.initiate_with_signature,
            "redeem": self.redeem,
            "refund": self.refund,
            "instant_refund": self.instant_refund,
        }

    # --- Rollback --------------------------------------------------------

    def snapshot(self) -> tuple:
        """Open a checkpoint over the orders, the asset ledger and the event log."""
        return self._store.snapshot(), self._token.snapshot(), len(self._events)

    def restore(self, snapshot: tuple) -> None:
        orders, balances, event_count = snapshot
        self._store.restore(orders)
        self._token.restore(balances)
        del self._events[event_count:]

    def commit(self) -> None:
        self._store.commit()
        self._token.commit()

    @contextmanager
    def _atomic(self):
        snapshot = self.snapshot()
        try:
            yield
        except Exception:
            self.restore(snapshot)
            raise
        self.commit()

    # --- Internals -------------------------------------------------------

    def _initiate(
        self,
        initiator: str,
        redeemer: str,
        timelock: int,
        amount: int,
        secret_hash: Union[str, bytes],
        signature: Optional[Union[str, bytes]] = None,
    ) -> str:
        redeemer = check_initiate_params(initiator, redeemer, timelock, amount)
        secret_hash = to_bytes32(secret_hash, "secret_hash")
        order_id = self.order_id_for(initiator, redeemer, timelock, amount, secret_hash)
        if order_id in self._store:
            raise ValidationError(DUPLICATE_ORDER)

        if signature is not None and not self._verifier.verify(
            self.domain,
            INITIATE_TYPES,
            initiate_message(redeemer, amount, timelock, secret_hash),
            initiator,
            signature,
        ):
            raise AuthorizationError(INVALID_INITIATOR_SIGNATURE)

        order = Order(
            is_fulfilled=False,
            initiator=initiator,
            redeemer=redeemer,
            initiated_at=self._chain.block_number,
            timelock=timelock,
            amount=amount,
            secret_hash=secret_hash,
        )
        with self._atomic():
            self._token.transfer_from(self.address, initiator, self.address, amount)
            self._store.create(order_id, order)
            self._emit(
                "Initiated", order_id, secret_hash="0x" + secret_hash.hex(), amount=amount
            )

        log.info("Order %s initiated: %s -> %s, amount=%d, timelock=%d",
                 order_id, initiator, redeemer, amount, timelock)
        return order_id

    def _require_order(self, order_id: str) -> Order:
        order = self._store.get(order_id)
        if order is None:
            raise OrderStateError(ORDER_NOT_INITIATED)
        return order

    def _emit(self, name: str, order_id: str, **data: Any) -> None:
        self._events.append(
            HTLCEvent(name, order_id.lower(), self._chain.block_number, data)
        )


def _hex(value: Union[str, bytes]) -> str:
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return "0x" + bytes(value).hex()

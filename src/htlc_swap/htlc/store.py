"""Order storage for the HTLC engine.

The store is owned by whoever deploys the engine and passed in explicitly,
so several engines (or tests) never share hidden global state.
"""

import dataclasses
from typing import Dict, Iterator, Optional, Tuple

from ..errors import DUPLICATE_ORDER, ORDER_FULFILLED, ORDER_NOT_INITIATED
from ..errors import OrderStateError, ValidationError
from ..ledger.journal import Journal
from .types import Order


class OrderStore:
    """Mapping of orderId -> Order, the single source of truth for swaps.

    Orders are immutable records; fulfilment replaces the stored record with
    a copy whose ``is_fulfilled`` flag is set. Records are never deleted.
    """

    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._journal = Journal()

    @staticmethod
    def _key(order_id: str) -> str:
        return order_id.lower()

    def get(self, order_id: str) -> Optional[Order]:
        return self._orders.get(self._key(order_id))

    def contains(self, order_id: str) -> bool:
        return self._key(order_id) in self._orders

    __contains__ = contains

    def create(self, order_id: str, order: Order) -> None:
        """Insert a new order.

        Raises:
            ValidationError: If an order with this id already exists
        """
        key = self._key(order_id)
        if key in self._orders:
            raise ValidationError(DUPLICATE_ORDER)
        self._journal.set(self._orders, key, order)

    def mark_fulfilled(self, order_id: str) -> Order:
        """Flip ``is_fulfilled`` to True and return the updated record.

        Raises:
            OrderStateError: If the order is unknown or already fulfilled
        """
        key = self._key(order_id)
        order = self._orders.get(key)
        if order is None:
            raise OrderStateError(ORDER_NOT_INITIATED)
        if order.is_fulfilled:
            raise OrderStateError(ORDER_FULFILLED)
        fulfilled = dataclasses.replace(order, is_fulfilled=True)
        self._journal.set(self._orders, key, fulfilled)
        return fulfilled

    def escrowed_total(self) -> int:
        """Sum of amounts still held for unfulfilled orders."""
        return sum(o.amount for o in self._orders.values() if not o.is_fulfilled)

    def snapshot(self) -> int:
        """Open a checkpoint; pass the result to ``restore`` to undo later writes."""
        return self._journal.checkpoint()

    def restore(self, snapshot: int) -> None:
        self._journal.rollback(snapshot)

    def commit(self) -> None:
        """Keep the writes made since the innermost open snapshot."""
        self._journal.commit()

    def __len__(self) -> int:
        return len(self._orders)

    def __iter__(self) -> Iterator[Tuple[str, Order]]:
        return iter(list(self._orders.items()))

"""Capability interface shared by every chain backend."""

from typing import Optional, Protocol, Union

from ..htlc.types import Order


class SwapBackend(Protocol):
    """The HTLC operations a swap participant relies on, on any chain.

    ``HTLC`` (account / EVM ledgers) and ``UtxoHTLC`` (UTXO ledgers) both
    satisfy this protocol, so swap orchestration code can drive either leg
    of a cross-chain swap the same way.
    """

    def initiate(
        self,
        caller: str,
        redeemer: str,
        timelock: int,
        amount: int,
        secret_hash: Union[str, bytes],
    ) -> str:
        ...

    def redeem(self, caller: str, order_id: str, secret: Union[str, bytes]) -> None:
        ...

    def refund(self, caller: str, order_id: str) -> None:
        ...

    def instant_refund(
        self, caller: str, order_id: str, signature: Union[str, bytes]
    ) -> None:
        ...

    def get_order(self, order_id: str) -> Optional[Order]:
        ...

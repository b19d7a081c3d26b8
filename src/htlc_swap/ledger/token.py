"""In-memory ERC20-style asset ledger.

The HTLC only consumes ``transfer``, ``transfer_from``, ``approve`` and
``balance_of``; this ledger implements them with the same failure reasons
an ERC20 contract reports, so engine tests exercise the real error paths.
"""

import logging
from typing import Dict, Protocol, Tuple

from ..errors import LedgerError
from ..htlc.utils import MAX_UINT256, ZERO_ADDRESS, normalize_address
from .journal import Journal

log = logging.getLogger(__name__)

INSUFFICIENT_ALLOWANCE = "ERC20: insufficient allowance"
INSUFFICIENT_BALANCE = "ERC20: insufficient balance"
AMOUNT_OVERFLOW = "ERC20: amount exceeds uint256"
BALANCE_OVERFLOW = "ERC20: balance overflow"
TRANSFER_TO_ZERO = "ERC20: transfer to the zero address"


class AssetLedger(Protocol):
    """Fungible asset interface consumed by the HTLC engine."""

    address: str

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> bool:
        ...

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        ...

    def balance_of(self, account: str) -> int:
        ...

    # Host-level rollback, used to keep calls and batches all-or-nothing
    def snapshot(self) -> object:
        ...

    def restore(self, snapshot: object) -> None:
        ...

    def commit(self) -> None:
        ...


class Token:
    """Minimal ERC20 token with mint, snapshot and restore.

    Every method that would act as ``msg.sender`` on-chain takes that
    principal as its first argument.
    """

    def __init__(self, address: str, symbol: str = "TOKEN", decimals: int = 18):
        self.address = normalize_address(address, "token address")
        self.symbol = symbol
        self.decimals = decimals
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._journal = Journal()

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount < 0 or amount > MAX_UINT256:
            raise LedgerError(AMOUNT_OVERFLOW)

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (normalize_address(owner), normalize_address(spender))
        return self._allowances.get(key, 0)

    def mint(self, account: str, amount: int) -> None:
        self._check_amount(amount)
        account = normalize_address(account)
        balance = self._balances.get(account, 0)
        if balance + amount > MAX_UINT256:
            raise LedgerError(BALANCE_OVERFLOW)
        self._journal.set(self._balances, account, balance + amount)
        log.debug("Minted %d %s to %s", amount, self.symbol, account)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        self._check_amount(amount)
        key = (normalize_address(owner), normalize_address(spender))
        self._journal.set(self._allowances, key, amount)
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._move(normalize_address(sender), normalize_address(recipient), amount)
        return True

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> bool:
        """Move ``amount`` from ``owner`` to ``recipient`` using ``spender``'s allowance.

        Raises:
            LedgerError: If the allowance or the owner's balance is too small
        """
        self._check_amount(amount)
        key = (normalize_address(owner), normalize_address(spender))
        allowed = self._allowances.get(key, 0)
        if allowed < amount:
            raise LedgerError(INSUFFICIENT_ALLOWANCE)
        self._move(key[0], normalize_address(recipient), amount)
        if allowed != MAX_UINT256:
            self._journal.set(self._allowances, key, allowed - amount)
        return True

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        self._check_amount(amount)
        if recipient == ZERO_ADDRESS:
            raise LedgerError(TRANSFER_TO_ZERO)
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise LedgerError(INSUFFICIENT_BALANCE)
        if self._balances.get(recipient, 0) + amount > MAX_UINT256:
            raise LedgerError(BALANCE_OVERFLOW)
        self._journal.set(self._balances, sender, balance - amount)
        self._journal.set(
            self._balances, recipient, self._balances.get(recipient, 0) + amount
        )
        log.debug("Transferred %d %s from %s to %s",
                  amount, self.symbol, sender, recipient)

    def snapshot(self) -> int:
        """Open a checkpoint covering balances and allowances."""
        return self._journal.checkpoint()

    def restore(self, snapshot: int) -> None:
        self._journal.rollback(snapshot)

    def commit(self) -> None:
        self._journal.commit()

"""Error types for the HTLC engine.

Every rejected precondition carries a stable reason string so callers can
tell causes apart. ``str(error)`` renders as ``"HTLC: <reason>"``.
"""

# Validation reasons
ZERO_ADDRESS_REDEEMER = "zero address redeemer"
ZERO_AMOUNT = "zero amount"
ZERO_TIMELOCK = "zero timelock"
SAME_INITIATOR_REDEEMER = "same initiator & redeemer"
DUPLICATE_ORDER = "duplicate order"

# Authorization reasons
INVALID_INITIATOR_SIGNATURE = "invalid initiator signature"
INVALID_REDEEMER_SIGNATURE = "invalid redeemer signature"

# Order state reasons
ORDER_NOT_INITIATED = "order not initiated"
ORDER_FULFILLED = "order fulfilled"
ORDER_NOT_EXPIRED = "order not expired"
INCORRECT_SECRET = "incorrect secret"


class HTLCError(Exception):
    """Base class for rejected HTLC operations."""

    prefix = "HTLC"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"{self.prefix}: {reason}")


class ValidationError(HTLCError):
    """Caller supplied parameters failed a structural check."""


class AuthorizationError(HTLCError):
    """A delegated signature did not validate for the expected signer."""


class OrderStateError(HTLCError):
    """The requested transition is not valid for the order's current state."""


class LedgerError(Exception):
    """An asset ledger rejected a movement of funds.

    The message is the ledger's own reason, surfaced verbatim
    (e.g. ``"ERC20: insufficient allowance"``).
    """


class MulticallError(Exception):
    """A call inside a batch failed; the whole batch was rolled back."""

    def __init__(self, index: int, cause: Exception):
        self.index = index
        self.cause = cause
        super().__init__(f"Multicall: call {index} failed: {cause}")

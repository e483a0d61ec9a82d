"""Error taxonomy for the pool core.

Every guard and arithmetic failure is raised as an ``AmmError`` carrying an
``ErrorKind``. ``step()`` in ``engine.py`` turns these into rejected
``StepResult`` values; ``step_or_raise()`` lets them propagate.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class ErrorKind(Enum):
    """One member per failure the core can report."""

    # Pool management
    POOL_LOCKED = "PoolLocked"

    # Trading
    SLIPPAGE_EXCEEDED = "SlippageExceeded"
    INVALID_TOKEN = "InvalidToken"
    OFFER_EXPIRED = "OfferExpired"

    # Math
    OVERFLOW = "Overflow"
    UNDERFLOW = "Underflow"
    INVALID_AMOUNT = "InvalidAmount"

    # Liquidity
    LIQUIDITY_LESS_THAN_MINIMUM = "LiquidityLessThanMinimum"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    ZERO_BALANCE = "ZeroBalance"

    # Configuration
    INVALID_FEE = "InvalidFee"
    INVALID_PRECISION = "InvalidPrecision"

    # Authorization
    UNAUTHORIZED = "Unauthorized"
    NO_AUTHORITY = "NoAuthority"

    # Post-state backstop
    INVARIANT_VIOLATION = "InvariantViolation"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.POOL_LOCKED: "This pool is locked.",
    ErrorKind.SLIPPAGE_EXCEEDED: "Slippage tolerance exceeded.",
    ErrorKind.INVALID_TOKEN: "Invalid token provided.",
    ErrorKind.OFFER_EXPIRED: "Offer has expired.",
    ErrorKind.OVERFLOW: "Mathematical overflow detected.",
    ErrorKind.UNDERFLOW: "Mathematical underflow detected.",
    ErrorKind.INVALID_AMOUNT: "Invalid amount provided.",
    ErrorKind.LIQUIDITY_LESS_THAN_MINIMUM: "Actual liquidity is less than minimum required.",
    ErrorKind.INSUFFICIENT_BALANCE: "Insufficient balance for operation.",
    ErrorKind.ZERO_BALANCE: "Zero balance not allowed.",
    ErrorKind.INVALID_FEE: "Fee exceeds maximum allowed.",
    ErrorKind.INVALID_PRECISION: "Invalid precision value.",
    ErrorKind.UNAUTHORIZED: "Unauthorized access attempt.",
    ErrorKind.NO_AUTHORITY: "No authority set for this pool.",
    ErrorKind.INVARIANT_VIOLATION: "Post-state violates a pool invariant.",
}


class AmmError(Exception):
    """Raised when an operation is rejected by a guard, the arithmetic layer or an invariant."""

    def __init__(self, kind: ErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = detail
        text = kind.message if not detail else f"{kind.message} ({detail})"
        super().__init__(f"{kind.value}: {text}")


class AmmInvariantError(AmmError):
    """Raised when a projected post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(ErrorKind.INVARIANT_VIOLATION, ", ".join(violations))

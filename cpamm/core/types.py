"""Data types for the pool operation engine.

All types are frozen dataclasses (immutable).

Units/conventions:
- amounts are non-negative u64 integers in base units of the asset,
- `*_bps` values are basis points (1/10_000),
- `claims` are base units of the pool's liquidity-claim asset.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Tuple, Union

from ..state.pool import AssetId, Handle, PoolConfig, Principal
from .errors import ErrorKind


@unique
class Action(Enum):
    """One member per public operation."""
    INITIALIZE = "initialize"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    SWAP = "swap"
    SET_LOCKED = "set_locked"
    SET_FEE = "set_fee"
    SET_AUTHORITY = "set_authority"


@unique
class Direction(Enum):
    X_TO_Y = "x_to_y"
    Y_TO_X = "y_to_x"

    @classmethod
    def from_flag(cls, is_x_to_y: bool) -> "Direction":
        return cls.X_TO_Y if is_x_to_y else cls.Y_TO_X


@unique
class Signer(Enum):
    """Whose authorization the Ledger must see for an effect."""
    USER = "user"
    POOL = "pool"


# ---------------------------------------------------------------------------
# Effects (requests for the Ledger)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transfer:
    asset: AssetId
    source: str
    destination: str
    amount: int
    signer: Signer


@dataclass(frozen=True)
class Mint:
    asset: Handle
    to: str
    amount: int
    signer: Signer = Signer.POOL


@dataclass(frozen=True)
class Burn:
    asset: Handle
    source: str
    amount: int
    signer: Signer = Signer.USER


Effect = Union[Transfer, Mint, Burn]


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InitializeParams:
    seed: int
    fee_bps: int
    asset_x: AssetId
    asset_y: AssetId
    action: Action = Action.INITIALIZE


@dataclass(frozen=True)
class DepositParams:
    amount_x: int
    amount_y: int
    min_claims: int
    asset_x: Optional[AssetId] = None  # when given, must match the pool
    asset_y: Optional[AssetId] = None
    expires_at: Optional[int] = None
    now: Optional[int] = None
    action: Action = Action.DEPOSIT


@dataclass(frozen=True)
class WithdrawParams:
    claims: int
    min_x: int
    min_y: int
    asset_x: Optional[AssetId] = None
    asset_y: Optional[AssetId] = None
    expires_at: Optional[int] = None
    now: Optional[int] = None
    action: Action = Action.WITHDRAW


@dataclass(frozen=True)
class SwapParams:
    direction: Direction
    amount_in: int
    min_out: int
    asset_x: Optional[AssetId] = None
    asset_y: Optional[AssetId] = None
    expires_at: Optional[int] = None
    now: Optional[int] = None
    action: Action = Action.SWAP


@dataclass(frozen=True)
class SetLockedParams:
    locked: bool
    action: Action = Action.SET_LOCKED


@dataclass(frozen=True)
class SetFeeParams:
    fee_bps: int
    action: Action = Action.SET_FEE


@dataclass(frozen=True)
class SetAuthorityParams:
    new_authority: Optional[Principal]  # None renounces
    action: Action = Action.SET_AUTHORITY


ActionParams = Union[
    InitializeParams,
    DepositParams,
    WithdrawParams,
    SwapParams,
    SetLockedParams,
    SetFeeParams,
    SetAuthorityParams,
]


# ---------------------------------------------------------------------------
# Pre-state read from the Ledger, and computed quotes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Reserves:
    """Reserves and claim supply of one pool, as read from the Ledger."""

    reserve_x: int
    reserve_y: int
    lp_supply: int

    @property
    def k(self) -> int:
        return self.reserve_x * self.reserve_y

    @property
    def is_empty(self) -> bool:
        return self.reserve_x == 0 and self.reserve_y == 0


@dataclass(frozen=True)
class DepositQuote:
    amount_x: int
    amount_y: int
    claims: int
    first_deposit: bool


@dataclass(frozen=True)
class WithdrawQuote:
    claims: int
    amount_x: int
    amount_y: int


@dataclass(frozen=True)
class SwapQuote:
    direction: Direction
    amount_in: int
    amount_in_eff: int  # amount_in * (10_000 - fee_bps)
    amount_out: int
    fee_amount: int
    reserve_in: int
    reserve_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


Quote = Union[DepositQuote, WithdrawQuote, SwapQuote]


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    pool: Optional[PoolConfig] = None
    effects: Tuple[Effect, ...] = ()
    quote: Optional[Quote] = None
    rejection: Optional[ErrorKind] = None
    detail: Optional[str] = None

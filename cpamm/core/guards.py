"""Guard functions shared by every pool operation.

Each guard returns ``None`` when the check passes and raises ``AmmError`` with
the matching ``ErrorKind`` otherwise. Guards never touch the Ledger themselves;
callers pass in the balances they read.
"""

from __future__ import annotations

from typing import Optional

from ..config import MAX_DECIMALS, MAX_FEE_BPS
from ..state.pool import AssetId, HasAuthority, NoAuthority, PoolConfig, Principal
from .errors import AmmError, ErrorKind


def require_positive(*amounts: int) -> None:
    """All *amounts* must be > 0."""
    for amount in amounts:
        if amount <= 0:
            raise AmmError(ErrorKind.INVALID_AMOUNT, f"amount must be positive: {amount}")


def require_sufficient_balance(available: int, requested: int) -> None:
    if available < requested:
        raise AmmError(ErrorKind.INSUFFICIENT_BALANCE, f"available {available} < requested {requested}")


def require_unlocked(pool: PoolConfig) -> None:
    if pool.is_locked():
        raise AmmError(ErrorKind.POOL_LOCKED)


def require_pool_assets(
    pool: PoolConfig,
    asset_x: Optional[AssetId],
    asset_y: Optional[AssetId],
) -> None:
    """Supplied asset identifiers (when given) must match the pool record."""
    if asset_x is not None and asset_x != pool.asset_x:
        raise AmmError(ErrorKind.INVALID_TOKEN, f"asset_x mismatch: {asset_x}")
    if asset_y is not None and asset_y != pool.asset_y:
        raise AmmError(ErrorKind.INVALID_TOKEN, f"asset_y mismatch: {asset_y}")


def require_distinct_assets(asset_x: AssetId, asset_y: AssetId) -> None:
    if asset_x == asset_y:
        raise AmmError(ErrorKind.INVALID_TOKEN, "asset_x and asset_y must differ")


def require_valid_fee(fee_bps: int, max_fee_bps: int = MAX_FEE_BPS) -> None:
    if not (0 <= fee_bps <= max_fee_bps):
        raise AmmError(ErrorKind.INVALID_FEE, f"fee_bps must be in [0, {max_fee_bps}]: {fee_bps}")


def require_precision(decimals: int, max_decimals: int = MAX_DECIMALS) -> None:
    if not (0 <= decimals <= max_decimals):
        raise AmmError(ErrorKind.INVALID_PRECISION, f"decimals must be in [0, {max_decimals}]: {decimals}")


def require_nonzero_reserves(reserve_x: int, reserve_y: int) -> None:
    if reserve_x <= 0 or reserve_y <= 0:
        raise AmmError(ErrorKind.ZERO_BALANCE, f"reserves: ({reserve_x}, {reserve_y})")


def require_nonzero_supply(lp_supply: int) -> None:
    if lp_supply <= 0:
        raise AmmError(ErrorKind.ZERO_BALANCE, "liquidity-claim supply is zero")


def require_min_claims(min_claims: int) -> None:
    if min_claims <= 0:
        raise AmmError(ErrorKind.LIQUIDITY_LESS_THAN_MINIMUM, f"min_claims must be positive: {min_claims}")


def require_not_expired(now: Optional[int], expires_at: Optional[int]) -> None:
    """Optional time bound supplied by the caller. Both values or neither."""
    if expires_at is None:
        return
    if now is None:
        raise AmmError(ErrorKind.OFFER_EXPIRED, "expires_at given without current time")
    if now > expires_at:
        raise AmmError(ErrorKind.OFFER_EXPIRED, f"now {now} > expires_at {expires_at}")


def require_min_out(actual: int, minimum: int) -> None:
    """Slippage bound: *actual* must be at least *minimum*."""
    if actual < minimum:
        raise AmmError(ErrorKind.SLIPPAGE_EXCEEDED, f"{actual} < minimum {minimum}")


def can_modify(pool: PoolConfig, principal: Principal) -> None:
    """Only the stored authority may change pool settings."""
    authority = pool.authority
    if isinstance(authority, HasAuthority):
        if authority.principal != principal:
            raise AmmError(ErrorKind.UNAUTHORIZED)
        return
    if isinstance(authority, NoAuthority):
        raise AmmError(ErrorKind.NO_AUTHORITY)
    raise TypeError(f"unknown authority variant: {type(authority).__name__}")

"""
Liquidity engine: claim issuance on deposit and redemption on withdraw.

First deposit (both reserves zero):
    claims = isqrt(amount_x * amount_y) - MINIMUM_LIQUIDITY

Subsequent deposits:
    claims = min(floor(amount_x * lp_supply / reserve_x),
                 floor(amount_y * lp_supply / reserve_y))

Withdraw:
    amount_x = floor(claims * reserve_x / lp_supply)
    amount_y = floor(claims * reserve_y / lp_supply)

The withheld MINIMUM_LIQUIDITY is never issued to anyone, so the first
depositor holds the whole claim supply but less than the full geometric mean.

Every division floors, so rounding always favors the pool. Deposits are not
rebalanced: both requested amounts are taken in full and the smaller ratio sets
the claims issued.
"""

from __future__ import annotations

import logging
from typing import Tuple

from ..config import MINIMUM_LIQUIDITY
from .errors import AmmError, ErrorKind
from .fixed_point import checked_mul, checked_sub, isqrt_u128, mul_div, to_u64
from .guards import require_nonzero_reserves, require_nonzero_supply, require_positive
from .types import DepositQuote, Reserves, WithdrawQuote

logger = logging.getLogger(__name__)


def is_first_deposit(reserves: Reserves) -> bool:
    return reserves.is_empty


def calculate_first_deposit_claims(amount_x: int, amount_y: int) -> int:
    """Bootstrap claims: geometric mean of the deposit minus the withheld floor."""
    product = checked_mul(amount_x, amount_y)
    root = isqrt_u128(product)
    if root <= MINIMUM_LIQUIDITY:
        raise AmmError(
            ErrorKind.LIQUIDITY_LESS_THAN_MINIMUM,
            f"isqrt(amount_x*amount_y)={root} <= {MINIMUM_LIQUIDITY}",
        )
    return to_u64(checked_sub(root, MINIMUM_LIQUIDITY))


def calculate_subsequent_deposit_claims(
    amount_x: int,
    amount_y: int,
    reserve_x: int,
    reserve_y: int,
    lp_supply: int,
) -> int:
    """Claims for a deposit into a funded pool, by the smaller of the two ratios."""
    require_nonzero_reserves(reserve_x, reserve_y)
    require_nonzero_supply(lp_supply)

    claims_from_x = mul_div(amount_x, lp_supply, reserve_x)
    claims_from_y = mul_div(amount_y, lp_supply, reserve_y)
    claims = to_u64(min(claims_from_x, claims_from_y))

    if claims == 0:
        raise AmmError(ErrorKind.LIQUIDITY_LESS_THAN_MINIMUM, "deposit too small to issue claims")
    return claims


def quote_deposit(reserves: Reserves, amount_x: int, amount_y: int) -> DepositQuote:
    """
    Compute the claims a deposit would issue.

    Args:
        reserves: Current reserves and claim supply
        amount_x: Amount of asset_x being deposited
        amount_y: Amount of asset_y being deposited

    Returns:
        DepositQuote
    """
    require_positive(amount_x, amount_y)

    if is_first_deposit(reserves):
        logger.debug("first deposit: amount_x=%s amount_y=%s", amount_x, amount_y)
        claims = calculate_first_deposit_claims(amount_x, amount_y)
        return DepositQuote(
            amount_x=amount_x,
            amount_y=amount_y,
            claims=claims,
            first_deposit=True,
        )

    logger.debug("subsequent deposit: amount_x=%s amount_y=%s", amount_x, amount_y)
    claims = calculate_subsequent_deposit_claims(
        amount_x,
        amount_y,
        reserves.reserve_x,
        reserves.reserve_y,
        reserves.lp_supply,
    )
    return DepositQuote(amount_x=amount_x, amount_y=amount_y, claims=claims, first_deposit=False)


def calculate_withdraw_amounts(
    claims: int,
    reserve_x: int,
    reserve_y: int,
    lp_supply: int,
) -> Tuple[int, int]:
    """Proportional share of both reserves for *claims*."""
    require_nonzero_reserves(reserve_x, reserve_y)
    require_nonzero_supply(lp_supply)

    amount_x = to_u64(mul_div(claims, reserve_x, lp_supply))
    amount_y = to_u64(mul_div(claims, reserve_y, lp_supply))

    if amount_x == 0 or amount_y == 0:
        raise AmmError(
            ErrorKind.LIQUIDITY_LESS_THAN_MINIMUM,
            f"redemption rounds to zero: ({amount_x}, {amount_y})",
        )
    return amount_x, amount_y


def quote_withdraw(reserves: Reserves, claims: int) -> WithdrawQuote:
    """Compute what redeeming *claims* would pay out."""
    require_positive(claims)
    amount_x, amount_y = calculate_withdraw_amounts(
        claims,
        reserves.reserve_x,
        reserves.reserve_y,
        reserves.lp_supply,
    )
    return WithdrawQuote(claims=claims, amount_x=amount_x, amount_y=amount_y)

"""
Constant-product swap engine.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per swap
- Invariant: new_reserve_in * new_reserve_out >= reserve_in * reserve_out

The fee is taken on the input side and stays in the pool:

    amount_in_eff = amount_in * (10_000 - fee_bps)
    amount_out    = floor(amount_in_eff * reserve_out / (reserve_in * 10_000 + amount_in_eff))
"""

from __future__ import annotations

from fractions import Fraction
from typing import Tuple

from ..config import FEE_DENOM_BPS
from .errors import AmmError, ErrorKind
from .fixed_point import checked_add, checked_div, checked_mul, checked_sub, to_u64
from .guards import require_nonzero_reserves, require_positive
from .types import Direction, Reserves, SwapQuote


def select_reserves(direction: Direction, reserve_x: int, reserve_y: int) -> Tuple[int, int]:
    """Return ``(reserve_in, reserve_out)`` for a trade direction."""
    if direction is Direction.X_TO_Y:
        return reserve_x, reserve_y
    if direction is Direction.Y_TO_X:
        return reserve_y, reserve_x
    raise TypeError(f"unknown direction: {direction!r}")


def effective_amount_in(amount_in: int, fee_bps: int) -> int:
    """``amount_in * (10_000 - fee_bps)``, the fee-adjusted input scaled by 1e4."""
    return checked_mul(amount_in, checked_sub(FEE_DENOM_BPS, fee_bps))


def calculate_amount_out(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """
    Constant product with fee: returns amount_out.

    Raises:
        AmmError(Overflow): an intermediate exceeds u128 or the result exceeds u64
        AmmError(ZeroBalance): the denominator is zero (empty input reserve, zero input)
        AmmError(SlippageExceeded): the trade rounds down to zero output
    """
    amount_in_eff = effective_amount_in(amount_in, fee_bps)
    numerator = checked_mul(amount_in_eff, reserve_out)
    denominator = checked_add(checked_mul(reserve_in, FEE_DENOM_BPS), amount_in_eff)
    amount_out = to_u64(checked_div(numerator, denominator))
    if amount_out == 0:
        raise AmmError(ErrorKind.SLIPPAGE_EXCEEDED, "swap output rounds to zero")
    return amount_out


def quote_swap(reserves: Reserves, direction: Direction, amount_in: int, fee_bps: int) -> SwapQuote:
    """
    Price a swap against the given reserves without requesting any effect.

    Args:
        reserves: Current pool reserves
        direction: X_TO_Y or Y_TO_X
        amount_in: Exact input amount
        fee_bps: Pool fee in basis points

    Returns:
        SwapQuote with output amount and post-swap reserves
    """
    require_positive(amount_in)
    require_nonzero_reserves(reserves.reserve_x, reserves.reserve_y)

    reserve_in, reserve_out = select_reserves(direction, reserves.reserve_x, reserves.reserve_y)
    amount_in_eff = effective_amount_in(amount_in, fee_bps)
    amount_out = calculate_amount_out(amount_in, reserve_in, reserve_out, fee_bps)

    new_reserve_in = to_u64(checked_add(reserve_in, amount_in))
    new_reserve_out = checked_sub(reserve_out, amount_out)

    return SwapQuote(
        direction=direction,
        amount_in=amount_in,
        amount_in_eff=amount_in_eff,
        amount_out=amount_out,
        fee_amount=amount_in - amount_in_eff // FEE_DENOM_BPS,
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )


def token_ratio(reserve_x: int, reserve_y: int) -> Fraction:
    """Exact pool price ``reserve_x / reserve_y``."""
    require_nonzero_reserves(reserve_x, reserve_y)
    return Fraction(reserve_x, reserve_y)

"""Invariant checkers for the pool engine.

Each function returns True when the invariant holds. State invariants look at
the pool record and the projected post-reserves; transition invariants compare
pre- and post-reserves for the action that produced them. ``check_all()``
returns the list of violated invariant IDs (empty = all pass).
"""

from __future__ import annotations

from typing import Callable

from ..config import MINIMUM_LIQUIDITY, AmmConfig
from ..state.pool import PoolConfig
from .fixed_point import U64_MAX
from .types import Action, Reserves

_TRADING_ACTIONS = frozenset({Action.DEPOSIT, Action.WITHDRAW, Action.SWAP})


# -- state invariants ---------------------------------------------------------

def inv_distinct_assets(pool: PoolConfig, post: Reserves, config: AmmConfig) -> bool:
    return pool.asset_x != pool.asset_y


def inv_fee_bounded(pool: PoolConfig, post: Reserves, config: AmmConfig) -> bool:
    return 0 <= pool.fee_bps <= config.max_fee_bps


def inv_reserves_in_range(pool: PoolConfig, post: Reserves, config: AmmConfig) -> bool:
    return all(0 <= v <= U64_MAX for v in (post.reserve_x, post.reserve_y, post.lp_supply))


def inv_supply_backed(pool: PoolConfig, post: Reserves, config: AmmConfig) -> bool:
    if post.lp_supply == 0:
        return True
    return post.reserve_x > 0 and post.reserve_y > 0


STATE_INVARIANTS: dict[str, Callable[[PoolConfig, Reserves, AmmConfig], bool]] = {
    "inv_distinct_assets": inv_distinct_assets,
    "inv_fee_bounded": inv_fee_bounded,
    "inv_reserves_in_range": inv_reserves_in_range,
    "inv_supply_backed": inv_supply_backed,
}


# -- transition invariants ----------------------------------------------------

def inv_unlocked_for_trading(action: Action, pool: PoolConfig, pre: Reserves, post: Reserves) -> bool:
    return action not in _TRADING_ACTIONS or not pool.locked


def inv_swap_k_non_decreasing(action: Action, pool: PoolConfig, pre: Reserves, post: Reserves) -> bool:
    if action is not Action.SWAP:
        return True
    return post.reserve_x * post.reserve_y >= pre.reserve_x * pre.reserve_y and post.lp_supply == pre.lp_supply


def inv_claims_proportional(action: Action, pool: PoolConfig, pre: Reserves, post: Reserves) -> bool:
    """Issued claims never exceed, and redemptions never overpay, the proportional share."""
    if action is Action.DEPOSIT:
        d_supply = post.lp_supply - pre.lp_supply
        d_x = post.reserve_x - pre.reserve_x
        d_y = post.reserve_y - pre.reserve_y
        if d_supply <= 0 or d_x <= 0 or d_y <= 0:
            return False
        if pre.lp_supply == 0 or pre.is_empty:
            # Bootstrap issues isqrt(dx*dy) minus the withheld floor.
            issued = d_supply + MINIMUM_LIQUIDITY
            return issued * issued <= d_x * d_y
        return d_supply * pre.reserve_x <= d_x * pre.lp_supply and d_supply * pre.reserve_y <= d_y * pre.lp_supply
    if action is Action.WITHDRAW:
        burned = pre.lp_supply - post.lp_supply
        out_x = pre.reserve_x - post.reserve_x
        out_y = pre.reserve_y - post.reserve_y
        if burned <= 0 or out_x < 0 or out_y < 0:
            return False
        return out_x * pre.lp_supply <= burned * pre.reserve_x and out_y * pre.lp_supply <= burned * pre.reserve_y
    return True


TRANSITION_INVARIANTS: dict[str, Callable[[Action, PoolConfig, Reserves, Reserves], bool]] = {
    "inv_unlocked_for_trading": inv_unlocked_for_trading,
    "inv_swap_k_non_decreasing": inv_swap_k_non_decreasing,
    "inv_claims_proportional": inv_claims_proportional,
}


def check_all(
    action: Action,
    pre_pool: PoolConfig,
    post_pool: PoolConfig,
    pre: Reserves,
    post: Reserves,
    config: AmmConfig,
) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass).

    State invariants run on the post-state record; transition invariants on the
    pre-state record.
    """
    violations = [
        inv_id
        for inv_id, check_fn in STATE_INVARIANTS.items()
        if not check_fn(post_pool, post, config)
    ]
    violations.extend(
        inv_id
        for inv_id, check_fn in TRANSITION_INVARIANTS.items()
        if not check_fn(action, pre_pool, pre, post)
    )
    return violations

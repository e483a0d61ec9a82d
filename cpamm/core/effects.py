"""Effect builders for the pool engine.

One pure function per operation that moves value. Each returns the ordered
tuple of Ledger requests; the executor must apply them atomically and in order:

- deposit:  collect both assets, then mint claims,
- withdraw: burn claims first, then pay out from the vaults,
- swap:     collect the input, then release the output.

``project_reserves`` replays an effect tuple against a ``Reserves`` snapshot so
invariants can be checked on the post-state before anything is requested.
"""

from __future__ import annotations

from typing import Tuple

from ..state.pool import PoolConfig, Principal
from .types import (
    Burn,
    DepositQuote,
    Direction,
    Effect,
    Mint,
    Reserves,
    Signer,
    SwapQuote,
    Transfer,
    WithdrawQuote,
)


def effects_deposit(pool: PoolConfig, user: Principal, quote: DepositQuote) -> Tuple[Effect, ...]:
    return (
        Transfer(pool.asset_x, user, pool.vault_x, quote.amount_x, Signer.USER),
        Transfer(pool.asset_y, user, pool.vault_y, quote.amount_y, Signer.USER),
        Mint(pool.lp_mint, user, quote.claims),
    )


def effects_withdraw(pool: PoolConfig, user: Principal, quote: WithdrawQuote) -> Tuple[Effect, ...]:
    return (
        Burn(pool.lp_mint, user, quote.claims),
        Transfer(pool.asset_x, pool.vault_x, user, quote.amount_x, Signer.POOL),
        Transfer(pool.asset_y, pool.vault_y, user, quote.amount_y, Signer.POOL),
    )


def effects_swap(pool: PoolConfig, user: Principal, quote: SwapQuote) -> Tuple[Effect, ...]:
    if quote.direction is Direction.X_TO_Y:
        asset_in, vault_in, asset_out, vault_out = pool.asset_x, pool.vault_x, pool.asset_y, pool.vault_y
    else:
        asset_in, vault_in, asset_out, vault_out = pool.asset_y, pool.vault_y, pool.asset_x, pool.vault_x
    return (
        Transfer(asset_in, user, vault_in, quote.amount_in, Signer.USER),
        Transfer(asset_out, vault_out, user, quote.amount_out, Signer.POOL),
    )


def project_reserves(pool: PoolConfig, reserves: Reserves, effects: Tuple[Effect, ...]) -> Reserves:
    """Apply *effects* to a reserves snapshot (pool-side view only)."""
    rx, ry, supply = reserves.reserve_x, reserves.reserve_y, reserves.lp_supply
    for effect in effects:
        if isinstance(effect, Transfer):
            if effect.destination == pool.vault_x and effect.asset == pool.asset_x:
                rx += effect.amount
            if effect.destination == pool.vault_y and effect.asset == pool.asset_y:
                ry += effect.amount
            if effect.source == pool.vault_x and effect.asset == pool.asset_x:
                rx -= effect.amount
            if effect.source == pool.vault_y and effect.asset == pool.asset_y:
                ry -= effect.amount
        elif isinstance(effect, Mint):
            if effect.asset == pool.lp_mint:
                supply += effect.amount
        elif isinstance(effect, Burn):
            if effect.asset == pool.lp_mint:
                supply -= effect.amount
        else:
            raise TypeError(f"unknown effect: {type(effect).__name__}")
    return Reserves(reserve_x=rx, reserve_y=ry, lp_supply=supply)

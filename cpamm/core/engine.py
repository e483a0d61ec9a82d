"""Dispatch-table engine for pool operations.

``step(pool, ledger, signer, params)`` is the single entry point. It:

1. Dispatches to the handler for ``params.action``.
2. The handler runs its guards, reads reserves through the Ledger view and
   computes the numeric result plus the ordered effect requests.
3. Projects the post-reserves from the effects and checks all invariants.
4. Returns a ``StepResult`` (accepted, or rejected with an ``ErrorKind``).

Nothing is written anywhere: the Ledger is only read, and the returned pool
record is a new immutable value. A rejected step therefore has no side effect.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from ..config import DEFAULT_CONFIG, AmmConfig
from ..state.ledger import LedgerView
from ..state.pool import PoolConfig, Principal, authority_from_optional
from .effects import effects_deposit, effects_swap, effects_withdraw, project_reserves
from .errors import AmmError, AmmInvariantError, ErrorKind
from .factory import create_pool
from .fixed_point import checked_add, require_u16, require_u64, to_u64
from .guards import (
    can_modify,
    require_min_claims,
    require_min_out,
    require_nonzero_reserves,
    require_not_expired,
    require_pool_assets,
    require_positive,
    require_sufficient_balance,
    require_unlocked,
    require_valid_fee,
)
from .invariants import check_all
from .liquidity import quote_deposit, quote_withdraw
from .swap import quote_swap
from .types import (
    Action,
    ActionParams,
    DepositParams,
    Direction,
    Effect,
    InitializeParams,
    Quote,
    Reserves,
    SetAuthorityParams,
    SetFeeParams,
    SetLockedParams,
    StepResult,
    SwapParams,
    WithdrawParams,
)


@dataclass(frozen=True)
class _Outcome:
    pool: PoolConfig
    pre: Reserves
    effects: Tuple[Effect, ...] = ()
    quote: Optional[Quote] = None


def read_reserves(pool: PoolConfig, ledger: LedgerView) -> Reserves:
    """Read vault balances and claim supply for *pool* from the Ledger."""
    return Reserves(
        reserve_x=require_u64("reserve_x", ledger.balance_of(pool.vault_x, pool.asset_x)),
        reserve_y=require_u64("reserve_y", ledger.balance_of(pool.vault_y, pool.asset_y)),
        lp_supply=require_u64("lp_supply", ledger.total_supply(pool.lp_mint)),
    )


def _require_pool(pool: Optional[PoolConfig]) -> PoolConfig:
    if pool is None:
        raise ValueError("this action requires an existing pool")
    return pool


def _trade_preamble(pool: PoolConfig, params: DepositParams | WithdrawParams | SwapParams) -> None:
    require_unlocked(pool)
    require_pool_assets(pool, params.asset_x, params.asset_y)
    require_not_expired(params.now, params.expires_at)


# -- handlers -----------------------------------------------------------------

def _handle_initialize(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: InitializeParams,
    config: AmmConfig,
) -> _Outcome:
    if pool is not None:
        raise ValueError("initialize must not be given an existing pool")
    new_pool = create_pool(params, signer, ledger, config)
    return _Outcome(pool=new_pool, pre=read_reserves(new_pool, ledger))


def _handle_deposit(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: DepositParams,
    config: AmmConfig,
) -> _Outcome:
    pool = _require_pool(pool)
    _trade_preamble(pool, params)

    amount_x = require_u64("amount_x", params.amount_x)
    amount_y = require_u64("amount_y", params.amount_y)
    min_claims = require_u64("min_claims", params.min_claims)
    require_positive(amount_x, amount_y)
    require_min_claims(min_claims)
    require_sufficient_balance(ledger.balance_of(signer, pool.asset_x), amount_x)
    require_sufficient_balance(ledger.balance_of(signer, pool.asset_y), amount_y)

    reserves = read_reserves(pool, ledger)
    quote = quote_deposit(reserves, amount_x, amount_y)
    require_min_out(quote.claims, min_claims)

    # Vaults and claim supply must stay representable after the deposit.
    to_u64(checked_add(reserves.reserve_x, amount_x))
    to_u64(checked_add(reserves.reserve_y, amount_y))
    to_u64(checked_add(reserves.lp_supply, quote.claims))

    return _Outcome(pool=pool, pre=reserves, effects=effects_deposit(pool, signer, quote), quote=quote)


def _handle_withdraw(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: WithdrawParams,
    config: AmmConfig,
) -> _Outcome:
    pool = _require_pool(pool)
    _trade_preamble(pool, params)

    claims = require_u64("claims", params.claims)
    min_x = require_u64("min_x", params.min_x)
    min_y = require_u64("min_y", params.min_y)
    require_positive(claims)
    require_sufficient_balance(ledger.balance_of(signer, pool.lp_mint), claims)

    reserves = read_reserves(pool, ledger)
    quote = quote_withdraw(reserves, claims)
    require_min_out(quote.amount_x, min_x)
    require_min_out(quote.amount_y, min_y)

    return _Outcome(pool=pool, pre=reserves, effects=effects_withdraw(pool, signer, quote), quote=quote)


def _handle_swap(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: SwapParams,
    config: AmmConfig,
) -> _Outcome:
    pool = _require_pool(pool)
    _trade_preamble(pool, params)

    if not isinstance(params.direction, Direction):
        raise TypeError(f"direction must be a Direction, got {type(params.direction).__name__}")
    amount_in = require_u64("amount_in", params.amount_in)
    min_out = require_u64("min_out", params.min_out)
    require_positive(amount_in, min_out)

    reserves = read_reserves(pool, ledger)
    require_nonzero_reserves(reserves.reserve_x, reserves.reserve_y)
    asset_in = pool.asset_x if params.direction is Direction.X_TO_Y else pool.asset_y
    require_sufficient_balance(ledger.balance_of(signer, asset_in), amount_in)

    quote = quote_swap(reserves, params.direction, amount_in, pool.fee_bps)
    require_min_out(quote.amount_out, min_out)

    return _Outcome(pool=pool, pre=reserves, effects=effects_swap(pool, signer, quote), quote=quote)


def _handle_set_locked(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: SetLockedParams,
    config: AmmConfig,
) -> _Outcome:
    pool = _require_pool(pool)
    if not isinstance(params.locked, bool):
        raise TypeError("locked must be a bool")
    can_modify(pool, signer)
    return _Outcome(pool=replace(pool, locked=params.locked), pre=read_reserves(pool, ledger))


def _handle_set_fee(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: SetFeeParams,
    config: AmmConfig,
) -> _Outcome:
    pool = _require_pool(pool)
    can_modify(pool, signer)
    fee_bps = require_u16("fee_bps", params.fee_bps)
    require_valid_fee(fee_bps, config.max_fee_bps)
    return _Outcome(pool=replace(pool, fee_bps=fee_bps), pre=read_reserves(pool, ledger))


def _handle_set_authority(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: SetAuthorityParams,
    config: AmmConfig,
) -> _Outcome:
    pool = _require_pool(pool)
    can_modify(pool, signer)
    new_authority = authority_from_optional(params.new_authority)
    return _Outcome(pool=replace(pool, authority=new_authority), pre=read_reserves(pool, ledger))


HandlerFn = Callable[[Optional[PoolConfig], LedgerView, Principal, ActionParams, AmmConfig], _Outcome]

_DISPATCH: dict[Action, HandlerFn] = {
    Action.INITIALIZE: _handle_initialize,  # type: ignore[dict-item]
    Action.DEPOSIT: _handle_deposit,  # type: ignore[dict-item]
    Action.WITHDRAW: _handle_withdraw,  # type: ignore[dict-item]
    Action.SWAP: _handle_swap,  # type: ignore[dict-item]
    Action.SET_LOCKED: _handle_set_locked,  # type: ignore[dict-item]
    Action.SET_FEE: _handle_set_fee,  # type: ignore[dict-item]
    Action.SET_AUTHORITY: _handle_set_authority,  # type: ignore[dict-item]
}


def step(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: ActionParams,
    config: AmmConfig = DEFAULT_CONFIG,
) -> StepResult:
    """Execute one operation against *pool* (``None`` for initialize).

    Returns ``StepResult`` with ``accepted=True`` on success, or
    ``accepted=False`` with a ``rejection`` kind. Programmer errors (wrong
    types, missing pool) raise instead.
    """
    handler = _DISPATCH.get(params.action)
    if handler is None:
        raise TypeError(f"unknown action: {params.action!r}")

    try:
        outcome = handler(pool, ledger, signer, params, config)
    except AmmError as exc:
        return StepResult(accepted=False, rejection=exc.kind, detail=exc.detail)

    if config.check_invariants:
        post = project_reserves(outcome.pool, outcome.pre, outcome.effects)
        violations = check_all(
            params.action,
            pool if pool is not None else outcome.pool,
            outcome.pool,
            outcome.pre,
            post,
            config,
        )
        if violations:
            return StepResult(
                accepted=False,
                rejection=ErrorKind.INVARIANT_VIOLATION,
                detail=",".join(violations),
            )

    return StepResult(
        accepted=True,
        pool=outcome.pool,
        effects=outcome.effects,
        quote=outcome.quote,
    )


def step_or_raise(
    pool: Optional[PoolConfig],
    ledger: LedgerView,
    signer: Principal,
    params: ActionParams,
    config: AmmConfig = DEFAULT_CONFIG,
) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        AmmInvariantError: Projected post-state violates one or more invariants.
        AmmError: Any guard or arithmetic rejection (see ``.kind``).
    """
    result = step(pool, ledger, signer, params, config)
    if result.accepted:
        return result

    assert result.rejection is not None
    if result.rejection is ErrorKind.INVARIANT_VIOLATION:
        raise AmmInvariantError((result.detail or "").split(","))
    raise AmmError(result.rejection, result.detail)

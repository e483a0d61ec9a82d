"""
In-process pool service (imperative shell).

``PoolService`` owns a registry of pool records and an ``AtomicLedger``. For
every call it:

1. serializes against other calls on the same pool (one lock per pool id),
2. runs the pure engine ``step()`` against the current record and Ledger,
3. applies the returned effects to the Ledger in one atomic block,
4. stores the new record.

The core itself takes no locks; this module is the execution environment that
provides the per-pool serialization the core relies on. Calls on different
pools proceed in parallel.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, Optional

from ..config import DEFAULT_CONFIG, AmmConfig
from ..core.engine import read_reserves, step
from ..core.errors import AmmError, AmmInvariantError, ErrorKind
from ..core.types import (
    ActionParams,
    Burn,
    DepositParams,
    DepositQuote,
    Direction,
    Effect,
    InitializeParams,
    Mint,
    Reserves,
    SetAuthorityParams,
    SetFeeParams,
    SetLockedParams,
    StepResult,
    SwapParams,
    SwapQuote,
    Transfer,
    WithdrawParams,
    WithdrawQuote,
)
from ..state.ledger import AtomicLedger, Ledger, LedgerError
from ..state.pool import AssetId, PoolConfig, Principal, compute_pool_id

logger = logging.getLogger(__name__)


class PoolExistsError(ValueError):
    """Raised when initializing a pool whose id is already registered."""


def apply_effects(ledger: Ledger, effects: Iterable[Effect]) -> None:
    """
    Apply effect requests to *ledger* in order.

    Callers wanting all-or-nothing semantics wrap this in ``ledger.atomic()``.

    Raises:
        AmmError(InsufficientBalance): the Ledger refused a debit or burn
    """
    for effect in effects:
        try:
            if isinstance(effect, Transfer):
                ledger.transfer(effect.asset, effect.source, effect.destination, effect.amount)
            elif isinstance(effect, Mint):
                ledger.mint(effect.asset, effect.to, effect.amount)
            elif isinstance(effect, Burn):
                ledger.burn(effect.asset, effect.source, effect.amount)
            else:
                raise TypeError(f"unknown effect: {type(effect).__name__}")
        except LedgerError as exc:
            raise AmmError(ErrorKind.INSUFFICIENT_BALANCE, str(exc)) from exc


class PoolService:
    """Registry of pools executing operations against one Ledger."""

    def __init__(self, ledger: AtomicLedger, config: AmmConfig = DEFAULT_CONFIG) -> None:
        self._ledger = ledger
        self._config = config
        self._pools: Dict[str, PoolConfig] = {}
        self._pool_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @property
    def ledger(self) -> AtomicLedger:
        return self._ledger

    @property
    def config(self) -> AmmConfig:
        return self._config

    # -- registry -------------------------------------------------------------

    def get_pool(self, pool_id: str) -> PoolConfig:
        try:
            return self._pools[pool_id]
        except KeyError:
            raise KeyError(f"unknown pool: {pool_id}") from None

    def pool_ids(self) -> list[str]:
        return sorted(self._pools)

    def reserves(self, pool_id: str) -> Reserves:
        return read_reserves(self.get_pool(pool_id), self._ledger)

    def _lock_for(self, pool_id: str) -> threading.Lock:
        with self._registry_lock:
            if pool_id not in self._pools:
                raise KeyError(f"unknown pool: {pool_id}")
            return self._pool_locks[pool_id]

    # -- execution ------------------------------------------------------------

    def _commit(self, result: StepResult) -> None:
        with self._ledger.atomic():
            apply_effects(self._ledger, result.effects)

    @staticmethod
    def _raise_rejection(result: StepResult) -> None:
        assert result.rejection is not None
        if result.rejection is ErrorKind.INVARIANT_VIOLATION:
            raise AmmInvariantError((result.detail or "").split(","))
        raise AmmError(result.rejection, result.detail)

    def execute(self, pool_id: str, signer: Principal, params: ActionParams) -> StepResult:
        """
        Run one operation on an existing pool and apply its effects.

        Returns the accepted StepResult. Raises AmmError on rejection; in that
        case neither the Ledger nor the pool record has changed.
        """
        with self._lock_for(pool_id):
            pool = self._pools[pool_id]
            result = step(pool, self._ledger, signer, params, self._config)
            if not result.accepted:
                logger.debug(
                    "pool %s: %s rejected: %s (%s)",
                    pool_id[:10], params.action.value, result.rejection.value if result.rejection else "", result.detail,
                )
                self._raise_rejection(result)
            self._commit(result)
            assert result.pool is not None
            self._pools[pool_id] = result.pool
            return result

    def initialize(
        self,
        creator: Principal,
        *,
        seed: int,
        fee_bps: int,
        asset_x: AssetId,
        asset_y: AssetId,
    ) -> PoolConfig:
        """Create and register a new pool; *creator* becomes its authority."""
        params = InitializeParams(seed=seed, fee_bps=fee_bps, asset_x=asset_x, asset_y=asset_y)
        result = step(None, self._ledger, creator, params, self._config)
        if not result.accepted:
            logger.debug("initialize rejected: %s (%s)", result.rejection, result.detail)
            self._raise_rejection(result)
        assert result.pool is not None

        pool_id = compute_pool_id(seed, asset_x, asset_y)
        with self._registry_lock:
            if pool_id in self._pools:
                raise PoolExistsError(f"pool already exists: {pool_id}")
            self._pools[pool_id] = result.pool
            self._pool_locks[pool_id] = threading.Lock()

        logger.info(
            "Pool %s created: %s/%s fee_bps=%s seed=%s",
            pool_id[:10], asset_x, asset_y, fee_bps, seed,
        )
        return result.pool

    def deposit(
        self,
        pool_id: str,
        user: Principal,
        amount_x: int,
        amount_y: int,
        min_claims: int,
        *,
        expires_at: Optional[int] = None,
        now: Optional[int] = None,
    ) -> DepositQuote:
        result = self.execute(
            pool_id,
            user,
            DepositParams(amount_x=amount_x, amount_y=amount_y, min_claims=min_claims, expires_at=expires_at, now=now),
        )
        assert isinstance(result.quote, DepositQuote)
        return result.quote

    def withdraw(
        self,
        pool_id: str,
        user: Principal,
        claims: int,
        min_x: int,
        min_y: int,
        *,
        expires_at: Optional[int] = None,
        now: Optional[int] = None,
    ) -> WithdrawQuote:
        result = self.execute(
            pool_id,
            user,
            WithdrawParams(claims=claims, min_x=min_x, min_y=min_y, expires_at=expires_at, now=now),
        )
        assert isinstance(result.quote, WithdrawQuote)
        return result.quote

    def swap(
        self,
        pool_id: str,
        user: Principal,
        is_x_to_y: bool,
        amount_in: int,
        min_out: int,
        *,
        expires_at: Optional[int] = None,
        now: Optional[int] = None,
    ) -> SwapQuote:
        result = self.execute(
            pool_id,
            user,
            SwapParams(
                direction=Direction.from_flag(is_x_to_y),
                amount_in=amount_in,
                min_out=min_out,
                expires_at=expires_at,
                now=now,
            ),
        )
        assert isinstance(result.quote, SwapQuote)
        return result.quote

    # -- settings -------------------------------------------------------------

    def set_locked(self, pool_id: str, authority: Principal, locked: bool) -> PoolConfig:
        result = self.execute(pool_id, authority, SetLockedParams(locked=locked))
        logger.info("Pool %s locked=%s", pool_id[:10], locked)
        assert result.pool is not None
        return result.pool

    def set_fee(self, pool_id: str, authority: Principal, fee_bps: int) -> PoolConfig:
        result = self.execute(pool_id, authority, SetFeeParams(fee_bps=fee_bps))
        logger.info("Pool %s fee_bps=%s", pool_id[:10], fee_bps)
        assert result.pool is not None
        return result.pool

    def set_authority(self, pool_id: str, authority: Principal, new_authority: Optional[Principal]) -> PoolConfig:
        result = self.execute(pool_id, authority, SetAuthorityParams(new_authority=new_authority))
        logger.info("Pool %s authority=%s", pool_id[:10], new_authority if new_authority is not None else "<none>")
        assert result.pool is not None
        return result.pool

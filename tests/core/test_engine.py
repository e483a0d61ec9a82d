"""Tests for cpamm/core/engine.py: dispatch table + step function.

Scenarios run through ``step`` and apply the returned effects to an
``InMemoryLedger`` the way an executor would.
"""

from dataclasses import replace
from types import SimpleNamespace

import pytest

from cpamm.config import AmmConfig
from cpamm.core import (
    AmmError,
    AmmInvariantError,
    Burn,
    DepositParams,
    Direction,
    ErrorKind,
    InitializeParams,
    Mint,
    SetAuthorityParams,
    SetFeeParams,
    SetLockedParams,
    Signer,
    SwapParams,
    Transfer,
    WithdrawParams,
    read_reserves,
    step,
    step_or_raise,
)
from cpamm.integration import apply_effects
from cpamm.state import HasAuthority, InMemoryLedger, NoAuthority

FUNDS = 10**12


def _setup(fee_bps: int = 30):
    ledger = InMemoryLedger()
    ledger.register_asset("X", 6)
    ledger.register_asset("Y", 6)
    for user in ("alice", "bob"):
        ledger.mint("X", user, FUNDS)
        ledger.mint("Y", user, FUNDS)
    r = step(None, ledger, "alice", InitializeParams(seed=1, fee_bps=fee_bps, asset_x="X", asset_y="Y"))
    assert r.accepted, r.rejection
    return ledger, r.pool


def _apply(ledger, result):
    assert result.accepted, f"rejected: {result.rejection} {result.detail}"
    with ledger.atomic():
        apply_effects(ledger, result.effects)
    return result.pool


def _funded(amount: int = 2_000_000, fee_bps: int = 30):
    ledger, pool = _setup(fee_bps)
    _apply(ledger, step(pool, ledger, "alice", DepositParams(amount, amount, 1)))
    return ledger, pool


# ---------------------------------------------------------------------------
# initialize
# ---------------------------------------------------------------------------

class TestInitialize:
    def test_accepted_without_effects(self):
        ledger, pool = _setup()
        assert pool.authority == HasAuthority("alice")
        assert pool.locked is False
        assert read_reserves(pool, ledger).is_empty

    def test_rejection_kind(self):
        ledger, _ = _setup()
        r = step(None, ledger, "alice", InitializeParams(seed=2, fee_bps=501, asset_x="X", asset_y="Y"))
        assert not r.accepted
        assert r.rejection is ErrorKind.INVALID_FEE
        assert r.pool is None

    def test_existing_pool_is_programmer_error(self):
        ledger, pool = _setup()
        with pytest.raises(ValueError):
            step(pool, ledger, "alice", InitializeParams(seed=1, fee_bps=30, asset_x="X", asset_y="Y"))


# ---------------------------------------------------------------------------
# deposit
# ---------------------------------------------------------------------------

class TestDeposit:
    def test_first_deposit_effect_order(self):
        ledger, pool = _setup()
        r = step(pool, ledger, "alice", DepositParams(2_000_000, 2_000_000, 1))
        assert r.accepted
        assert r.quote.claims == 1_999_000
        assert r.effects == (
            Transfer("X", "alice", pool.vault_x, 2_000_000, Signer.USER),
            Transfer("Y", "alice", pool.vault_y, 2_000_000, Signer.USER),
            Mint(pool.lp_mint, "alice", 1_999_000, Signer.POOL),
        )

    def test_first_deposit_applied(self):
        ledger, pool = _funded()
        reserves = read_reserves(pool, ledger)
        assert (reserves.reserve_x, reserves.reserve_y, reserves.lp_supply) == (2_000_000, 2_000_000, 1_999_000)
        assert ledger.balance_of("alice", pool.lp_mint) == 1_999_000

    def test_subsequent_deposit(self):
        # The withheld 1_000 was never issued: floor(100_000 * 1_999_000 / 2_000_000).
        ledger, pool = _funded()
        r = step(pool, ledger, "bob", DepositParams(100_000, 100_000, 99_950))
        assert r.quote.claims == 99_950
        assert len(r.effects) == 3

    def test_min_claims_not_met(self):
        ledger, pool = _funded()
        r = step(pool, ledger, "bob", DepositParams(100_000, 100_000, 99_951))
        assert r.rejection is ErrorKind.SLIPPAGE_EXCEEDED

    def test_zero_min_claims(self):
        ledger, pool = _setup()
        r = step(pool, ledger, "alice", DepositParams(2_000_000, 2_000_000, 0))
        assert r.rejection is ErrorKind.LIQUIDITY_LESS_THAN_MINIMUM

    def test_insufficient_balance(self):
        ledger, pool = _setup()
        r = step(pool, ledger, "carol", DepositParams(2_000_000, 2_000_000, 1))
        assert r.rejection is ErrorKind.INSUFFICIENT_BALANCE

    def test_invalid_amount_changes_nothing(self):
        ledger, pool = _funded()
        before = ledger.get_all_balances()
        r = step(pool, ledger, "bob", DepositParams(0, 200_000, 1))
        assert not r.accepted
        assert r.rejection is ErrorKind.INVALID_AMOUNT
        assert r.effects == ()
        assert r.pool is None
        assert ledger.get_all_balances() == before

    def test_donation_before_first_deposit(self):
        ledger, pool = _setup()
        ledger.mint("X", pool.vault_x, 5)
        r = step(pool, ledger, "alice", DepositParams(2_000_000, 2_000_000, 1))
        assert r.rejection is ErrorKind.ZERO_BALANCE

    def test_asset_mismatch(self):
        ledger, pool = _funded()
        r = step(pool, ledger, "bob", DepositParams(10, 10, 1, asset_x="Y", asset_y="X"))
        assert r.rejection is ErrorKind.INVALID_TOKEN

    def test_missing_pool(self):
        ledger, _ = _setup()
        with pytest.raises(ValueError):
            step(None, ledger, "alice", DepositParams(1, 1, 1))


# ---------------------------------------------------------------------------
# withdraw
# ---------------------------------------------------------------------------

class TestWithdraw:
    def test_burn_precedes_payout(self):
        ledger, pool = _funded()
        r = step(pool, ledger, "alice", WithdrawParams(999_500, 1, 1))
        assert r.effects == (
            Burn(pool.lp_mint, "alice", 999_500, Signer.USER),
            Transfer("X", pool.vault_x, "alice", 1_000_000, Signer.POOL),
            Transfer("Y", pool.vault_y, "alice", 1_000_000, Signer.POOL),
        )

    def test_withdraw_all_claims_empties_pool(self):
        ledger, pool = _funded()
        _apply(ledger, step(pool, ledger, "alice", WithdrawParams(1_999_000, 1, 1)))
        reserves = read_reserves(pool, ledger)
        assert (reserves.reserve_x, reserves.reserve_y, reserves.lp_supply) == (0, 0, 0)
        assert ledger.balance_of("alice", "X") == FUNDS

    def test_emptied_pool_bootstraps_again(self):
        ledger, pool = _funded()
        _apply(ledger, step(pool, ledger, "alice", WithdrawParams(1_999_000, 1, 1)))
        r = step(pool, ledger, "bob", DepositParams(4_000_000, 1_000_000, 1))
        assert r.quote.first_deposit
        assert r.quote.claims == 2_000_000 - 1_000

    def test_more_than_held(self):
        ledger, pool = _funded()
        r = step(pool, ledger, "bob", WithdrawParams(1, 0, 0))
        assert r.rejection is ErrorKind.INSUFFICIENT_BALANCE

    def test_min_out_not_met(self):
        ledger, pool = _funded()
        r = step(pool, ledger, "alice", WithdrawParams(1_000, 1_000, 1_001))
        assert r.rejection is ErrorKind.SLIPPAGE_EXCEEDED

    def test_zero_claims(self):
        ledger, pool = _funded()
        r = step(pool, ledger, "alice", WithdrawParams(0, 0, 0))
        assert r.rejection is ErrorKind.INVALID_AMOUNT


# ---------------------------------------------------------------------------
# swap
# ---------------------------------------------------------------------------

class TestSwap:
    def test_reference_example(self):
        ledger, pool = _funded(1_000_000)
        r = step(pool, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 9_871))
        assert r.accepted
        assert r.quote.amount_out == 9_871
        assert r.effects == (
            Transfer("X", "bob", pool.vault_x, 10_000, Signer.USER),
            Transfer("Y", pool.vault_y, "bob", 9_871, Signer.POOL),
        )

    def test_applied_swap_grows_k(self):
        ledger, pool = _funded(1_000_000)
        before = read_reserves(pool, ledger)
        _apply(ledger, step(pool, ledger, "bob", SwapParams(Direction.Y_TO_X, 50_000, 1)))
        after = read_reserves(pool, ledger)
        assert after.k > before.k
        assert after.lp_supply == before.lp_supply

    def test_slippage(self):
        ledger, pool = _funded(1_000_000)
        r = step(pool, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 9_872))
        assert r.rejection is ErrorKind.SLIPPAGE_EXCEEDED

    def test_zero_min_out(self):
        ledger, pool = _funded(1_000_000)
        r = step(pool, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 0))
        assert r.rejection is ErrorKind.INVALID_AMOUNT

    def test_empty_pool(self):
        ledger, pool = _setup()
        r = step(pool, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 1))
        assert r.rejection is ErrorKind.ZERO_BALANCE

    def test_insufficient_input_balance(self):
        ledger, pool = _funded(1_000_000)
        r = step(pool, ledger, "carol", SwapParams(Direction.X_TO_Y, 10_000, 1))
        assert r.rejection is ErrorKind.INSUFFICIENT_BALANCE

    def test_expired(self):
        ledger, pool = _funded(1_000_000)
        r = step(pool, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 1, expires_at=5, now=10))
        assert r.rejection is ErrorKind.OFFER_EXPIRED

    def test_not_yet_expired(self):
        ledger, pool = _funded(1_000_000)
        r = step(pool, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 1, expires_at=10, now=10))
        assert r.accepted

    def test_bad_direction_type(self):
        ledger, pool = _funded(1_000_000)
        with pytest.raises(TypeError):
            step(pool, ledger, "bob", SwapParams(True, 10_000, 1))


# ---------------------------------------------------------------------------
# locking
# ---------------------------------------------------------------------------

class TestLockedPool:
    @pytest.mark.parametrize(
        "params",
        [
            DepositParams(200_000, 200_000, 1),
            DepositParams(0, 0, 0),
            WithdrawParams(1_000, 1, 1),
            SwapParams(Direction.X_TO_Y, 10_000, 1),
            SwapParams(Direction.Y_TO_X, 0, 0),
        ],
    )
    def test_trading_rejected(self, params):
        ledger, pool = _funded()
        r = step(replace(pool, locked=True), ledger, "alice", params)
        assert r.rejection is ErrorKind.POOL_LOCKED

    def test_lock_then_unlock(self):
        ledger, pool = _funded()
        locked = _apply(ledger, step(pool, ledger, "alice", SetLockedParams(True)))
        assert locked.locked is True
        unlocked = _apply(ledger, step(locked, ledger, "alice", SetLockedParams(False)))
        r = step(unlocked, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 1))
        assert r.accepted


# ---------------------------------------------------------------------------
# settings
# ---------------------------------------------------------------------------

class TestSettings:
    def test_set_fee(self):
        ledger, pool = _setup()
        r = step(pool, ledger, "alice", SetFeeParams(100))
        assert r.accepted
        assert r.pool.fee_bps == 100
        assert r.effects == ()

    def test_set_fee_above_maximum(self):
        ledger, pool = _setup()
        assert step(pool, ledger, "alice", SetFeeParams(501)).rejection is ErrorKind.INVALID_FEE

    def test_non_authority(self):
        ledger, pool = _setup()
        assert step(pool, ledger, "bob", SetFeeParams(10)).rejection is ErrorKind.UNAUTHORIZED
        assert step(pool, ledger, "bob", SetLockedParams(True)).rejection is ErrorKind.UNAUTHORIZED

    def test_transfer_authority(self):
        ledger, pool = _setup()
        moved = step(pool, ledger, "alice", SetAuthorityParams("bob")).pool
        assert moved.authority == HasAuthority("bob")
        assert step(moved, ledger, "alice", SetFeeParams(10)).rejection is ErrorKind.UNAUTHORIZED
        assert step(moved, ledger, "bob", SetFeeParams(10)).accepted

    def test_renounce_authority(self):
        ledger, pool = _setup()
        renounced = step(pool, ledger, "alice", SetAuthorityParams(None)).pool
        assert renounced.authority == NoAuthority()
        assert step(renounced, ledger, "alice", SetLockedParams(True)).rejection is ErrorKind.NO_AUTHORITY


# ---------------------------------------------------------------------------
# step_or_raise / backstop
# ---------------------------------------------------------------------------

class TestStepOrRaise:
    def test_returns_accepted_result(self):
        ledger, pool = _funded()
        r = step_or_raise(pool, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 1))
        assert r.accepted

    def test_raises_typed_error(self):
        ledger, pool = _funded()
        with pytest.raises(AmmError) as exc:
            step_or_raise(replace(pool, locked=True), ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 1))
        assert exc.value.kind is ErrorKind.POOL_LOCKED
        assert "This pool is locked." in str(exc.value)

    def test_invariant_backstop(self):
        # Pool fee above a tightened configured maximum only surfaces post-state.
        ledger, pool = _funded(fee_bps=300)
        config = AmmConfig(max_fee_bps=100)
        params = SwapParams(Direction.X_TO_Y, 10_000, 1)
        r = step(pool, ledger, "bob", params, config)
        assert r.rejection is ErrorKind.INVARIANT_VIOLATION
        assert r.detail == "inv_fee_bounded"
        with pytest.raises(AmmInvariantError) as exc:
            step_or_raise(pool, ledger, "bob", params, config)
        assert exc.value.violations == ["inv_fee_bounded"]

    def test_backstop_disabled(self):
        ledger, pool = _funded(fee_bps=300)
        config = AmmConfig(max_fee_bps=100, check_invariants=False)
        assert step(pool, ledger, "bob", SwapParams(Direction.X_TO_Y, 10_000, 1), config).accepted

    def test_unknown_action(self):
        ledger, pool = _setup()
        with pytest.raises(TypeError):
            step(pool, ledger, "alice", SimpleNamespace(action="bogus"))

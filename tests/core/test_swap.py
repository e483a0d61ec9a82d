"""Tests for cpamm/core/swap.py: fee-aware constant-product pricing."""

from fractions import Fraction

import pytest

from cpamm.core.errors import AmmError, ErrorKind
from cpamm.core.fixed_point import U64_MAX
from cpamm.core.swap import calculate_amount_out, quote_swap, select_reserves, token_ratio
from cpamm.core.types import Direction, Reserves


def _formula(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    eff = amount_in * (10_000 - fee_bps)
    return (eff * reserve_out) // (reserve_in * 10_000 + eff)


class TestCalculateAmountOut:
    def test_reference_example(self):
        assert calculate_amount_out(10_000, 1_000_000, 1_000_000, 30) == 9_871

    @pytest.mark.parametrize(
        "amount_in,reserve_in,reserve_out,fee_bps",
        [
            (1, 1_000, 1_000_000, 0),
            (12_345, 987_654, 3_210_000, 30),
            (10**12, 10**15, 10**15, 500),
            (7, 10, 10**9, 1),
        ],
    )
    def test_matches_formula(self, amount_in, reserve_in, reserve_out, fee_bps):
        assert calculate_amount_out(amount_in, reserve_in, reserve_out, fee_bps) == _formula(
            amount_in, reserve_in, reserve_out, fee_bps
        )

    def test_zero_output_is_slippage(self):
        with pytest.raises(AmmError) as exc:
            calculate_amount_out(1, 1_000_000, 1, 30)
        assert exc.value.kind is ErrorKind.SLIPPAGE_EXCEEDED

    def test_wide_intermediate_overflows(self):
        with pytest.raises(AmmError) as exc:
            calculate_amount_out(U64_MAX, U64_MAX, U64_MAX, 0)
        assert exc.value.kind is ErrorKind.OVERFLOW


class TestQuoteSwap:
    def test_x_to_y_quote(self):
        q = quote_swap(Reserves(1_000_000, 1_000_000, 1_000_000), Direction.X_TO_Y, 10_000, 30)
        assert q.amount_out == 9_871
        assert q.new_reserve_in == 1_010_000
        assert q.new_reserve_out == 1_000_000 - 9_871
        assert q.fee_amount == 30
        assert q.k_after >= q.k_before

    def test_y_to_x_uses_y_as_input_reserve(self):
        q = quote_swap(Reserves(1_000_000, 2_000_000, 1), Direction.Y_TO_X, 10_000, 0)
        assert q.reserve_in == 2_000_000
        assert q.reserve_out == 1_000_000
        assert q.amount_out == 4_975

    def test_empty_pool_is_zero_balance(self):
        with pytest.raises(AmmError) as exc:
            quote_swap(Reserves(0, 1_000, 0), Direction.X_TO_Y, 10, 30)
        assert exc.value.kind is ErrorKind.ZERO_BALANCE

    def test_zero_input_is_invalid_amount(self):
        with pytest.raises(AmmError) as exc:
            quote_swap(Reserves(1_000, 1_000, 1_000), Direction.X_TO_Y, 0, 30)
        assert exc.value.kind is ErrorKind.INVALID_AMOUNT

    def test_select_reserves(self):
        assert select_reserves(Direction.X_TO_Y, 1, 2) == (1, 2)
        assert select_reserves(Direction.Y_TO_X, 1, 2) == (2, 1)


class TestTokenRatio:
    def test_exact_fraction(self):
        assert token_ratio(2, 4) == Fraction(1, 2)

    def test_empty_reserve(self):
        with pytest.raises(AmmError) as exc:
            token_ratio(0, 4)
        assert exc.value.kind is ErrorKind.ZERO_BALANCE

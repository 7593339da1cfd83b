"""Tests for rentflow.protocol.settlement: flat yield, early penalty, grace period."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rentflow.core.checked_math import I64_MAX, U64_MAX
from rentflow.core.result import Err, Ok
from rentflow.protocol.settlement import (
    GRACE_PERIOD_SECONDS,
    PENALTY_BPS,
    YIELD_BPS,
    liquidation_threshold,
    max_principal,
    repayment_quote,
    tier_profit,
    total_repayment,
)
from rentflow.protocol.state import ProfitTier

_END = 1_701_296_000
_EARLY = _END - 1
_ON_TIME = _END


class TestConstants:
    def test_values(self) -> None:
        assert YIELD_BPS == 1000
        assert PENALTY_BPS == 500
        assert GRACE_PERIOD_SECONDS == 604_800


class TestTotalRepayment:
    def test_ten_million_on_time(self) -> None:
        assert total_repayment(10_000_000, _ON_TIME, _END) == Ok(11_000_000)

    def test_ten_million_early(self) -> None:
        assert total_repayment(10_000_000, _EARLY, _END) == Ok(11_500_000)

    def test_seven_truncates_to_principal(self) -> None:
        assert total_repayment(7, _ON_TIME, _END) == Ok(7)
        assert total_repayment(7, _EARLY, _END) == Ok(7)

    def test_late_is_not_penalized(self) -> None:
        assert total_repayment(10_000_000, _END + 30 * 86_400, _END) == Ok(11_000_000)

    def test_quote_breakdown(self) -> None:
        quote = repayment_quote(5_000_000, _EARLY, _END).unwrap()
        assert (quote.yield_amount, quote.penalty, quote.total) == (500_000, 250_000, 5_750_000)
        assert quote.is_early

    def test_configured_rates(self) -> None:
        assert total_repayment(10_000, _EARLY, _END, yield_bps=200, penalty_bps=100) == Ok(10_300)

    def test_overflow_fails_closed(self) -> None:
        result = total_repayment(U64_MAX, _ON_TIME, _END)
        assert isinstance(result, Err)
        assert result.error.code == "MathOverflow"

    @given(st.integers(min_value=0, max_value=U64_MAX // 10_000), st.booleans())
    def test_formula(self, principal: int, early: bool) -> None:
        now = _EARLY if early else _ON_TIME
        expected = principal + principal * 1000 // 10_000
        if early:
            expected += principal * 500 // 10_000
        assert total_repayment(principal, now, _END) == Ok(expected)


class TestLiquidationThreshold:
    def test_end_plus_grace(self) -> None:
        assert liquidation_threshold(_END) == Ok(_END + 604_800)

    def test_i64_overflow(self) -> None:
        assert isinstance(liquidation_threshold(I64_MAX), Err)


class TestLtvAndTiers:
    def test_max_principal(self) -> None:
        assert max_principal(5_000_000, 8_000) == Ok(4_000_000)
        assert max_principal(5_000_000, 10_000) == Ok(5_000_000)

    @pytest.mark.parametrize(("tier", "profit"), [
        (ProfitTier.ONE_MONTH, 25_000),
        (ProfitTier.THREE_MONTH, 35_000),
        (ProfitTier.SIX_MONTH, 45_000),
        (ProfitTier.TWELVE_MONTH, 65_000),
    ])
    def test_tier_profit(self, tier: ProfitTier, profit: int) -> None:
        assert tier_profit(1_000_000, tier) == Ok(profit)

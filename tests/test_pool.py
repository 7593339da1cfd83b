"""Tests for rentflow.protocol.pool: liquidity deposits, positions, withdrawals."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from rentflow.core.result import Err, Ok, unwrap
from rentflow.core.types import Address
from rentflow.protocol.state import InvestmentTerm

if TYPE_CHECKING:
    from conftest import Harness

_LATER = 40 * 86_400


def _code(result: object) -> str:
    assert isinstance(result, Err)
    return result.error.code


def _unlock(term: InvestmentTerm, now: int) -> int:
    return unwrap(term.unlock_after(now, "t"))


class TestDepositLiquidity:
    def test_opens_position(self, harness: Harness) -> None:
        position = unwrap(harness.program.position(harness.investor))
        assert position.owner == harness.investor
        assert position.principal == 20_000_000
        assert position.realized_profit == 0
        assert position.term is InvestmentTerm.ONE_MONTH
        assert position.unlock_ts == _unlock(InvestmentTerm.ONE_MONTH, harness.now)
        assert harness.tracked_liquidity() == 20_000_000
        assert harness.cash_of(harness.pool_address()) == 20_000_000
        assert harness.cash_of(harness.investor) == 0

    def test_top_up_keeps_latest_unlock(self, harness: Harness) -> None:
        harness.provide_liquidity(1_000_000, InvestmentTerm.TWELVE_MONTHS)
        position = unwrap(harness.program.position(harness.investor))
        assert position.principal == 21_000_000
        assert position.term is InvestmentTerm.TWELVE_MONTHS
        assert position.unlock_ts == _unlock(InvestmentTerm.TWELVE_MONTHS, harness.now)

        harness.provide_liquidity(1_000_000, InvestmentTerm.ONE_MONTH)
        position = unwrap(harness.program.position(harness.investor))
        assert position.principal == 22_000_000
        assert position.unlock_ts == _unlock(InvestmentTerm.TWELVE_MONTHS, harness.now)
        assert harness.tracked_liquidity() == 22_000_000

    def test_zero_amount(self, harness: Harness) -> None:
        result = harness.program.deposit_liquidity(
            harness.request(harness.investor), harness.investor, harness.cash, 0,
            InvestmentTerm.ONE_MONTH,
        )
        assert _code(result) == "InvalidAmount"

    def test_unsupported_asset(self, harness: Harness) -> None:
        result = harness.program.deposit_liquidity(
            harness.request(harness.investor), harness.investor, Address.from_seed("doge"),
            1_000, InvestmentTerm.ONE_MONTH,
        )
        assert _code(result) == "AssetNotSupported"

    def test_investor_must_sign(self, harness: Harness) -> None:
        result = harness.program.deposit_liquidity(
            harness.request(), harness.investor, harness.cash, 1_000, InvestmentTerm.ONE_MONTH,
        )
        assert _code(result) == "MissingSignature"

    def test_unfunded_investor_rolls_back(self, harness: Harness) -> None:
        result = harness.program.deposit_liquidity(
            harness.request(harness.investor), harness.investor, harness.cash, 1_000,
            InvestmentTerm.ONE_MONTH,
        )
        assert _code(result) == "InsufficientFunds"
        assert harness.tracked_liquidity() == 20_000_000
        assert unwrap(harness.program.position(harness.investor)).principal == 20_000_000


class TestWithdrawLiquidity:
    def test_before_unlock(self, harness: Harness) -> None:
        result = harness.program.withdraw_liquidity(
            harness.request(harness.investor, now=harness.now + 86_400),
            harness.investor, harness.cash,
        )
        assert _code(result) == "LiquidityLocked"

    def test_pays_principal_and_closes_position(self, harness: Harness) -> None:
        result = harness.program.withdraw_liquidity(
            harness.request(harness.investor, now=harness.now + _LATER),
            harness.investor, harness.cash,
        )
        assert result == Ok(20_000_000)
        assert harness.cash_of(harness.investor) == 20_000_000
        assert harness.tracked_liquidity() == 0
        assert _code(harness.program.position(harness.investor)) == "AccountNotInitialized"

    def test_no_position(self, harness: Harness) -> None:
        stranger = Address.from_seed("stranger")
        result = harness.program.withdraw_liquidity(
            harness.request(stranger, now=harness.now + _LATER), stranger, harness.cash,
        )
        assert _code(result) == "AccountNotInitialized"

    def test_tracked_underflow_moves_nothing(self, harness: Harness) -> None:
        unit = harness.mint()
        harness.lock(unit)
        result = harness.program.withdraw_liquidity(
            harness.request(harness.investor, now=harness.now + _LATER),
            harness.investor, harness.cash,
        )
        assert _code(result) == "MathOverflow"
        assert harness.cash_of(harness.investor) == 0
        assert harness.cash_of(harness.pool_address()) == 15_000_000
        assert harness.tracked_liquidity() == 15_000_000
        assert unwrap(harness.program.position(harness.investor)).principal == 20_000_000

    def test_payout_includes_realized_profit(self, harness: Harness) -> None:
        unit = harness.mint()
        harness.lock(unit)
        harness.fund(harness.host, 750_000)
        unwrap(harness.program.settle_booking(
            harness.request(harness.host), harness.host, unit, harness.cash,
        ))
        assert harness.tracked_liquidity() == 20_750_000
        result = harness.program.withdraw_liquidity(
            harness.request(harness.investor, now=harness.now + _LATER),
            harness.investor, harness.cash,
        )
        assert result == Ok(20_125_000)
        assert harness.tracked_liquidity() == 625_000
        assert harness.cash_of(harness.pool_address()) == 625_000


class TestUninitializedProgram:
    def test_deposit_before_setup(self, make_harness: Callable[..., Harness]) -> None:
        h = make_harness()
        h.fund(h.investor, 1_000)
        result = h.program.deposit_liquidity(
            h.request(h.investor), h.investor, h.cash, 1_000, InvestmentTerm.ONE_MONTH,
        )
        assert _code(result) == "AssetNotSupported"
        assert h.cash_of(h.investor) == 1_000

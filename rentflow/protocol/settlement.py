"""Settlement calculator: fixed-tier flat yield in basis points.

Pure integer arithmetic, every step checked against u64 (timestamps
against i64), divisions truncating. No state, no I/O.

    yield   = principal * yield_bps / 10000
    penalty = principal * penalty_bps / 10000   (only when now < end_date)
    total   = principal + yield [+ penalty]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from rentflow.core.checked_math import apply_bps, checked_add, checked_add_i64
from rentflow.core.errors import RentFlowError
from rentflow.core.result import Err, Ok
from rentflow.protocol.state import ProfitTier

YIELD_BPS = 1000
PENALTY_BPS = 500
GRACE_PERIOD_SECONDS = 7 * 24 * 60 * 60  # 604800

_SRC = "protocol.settlement"


@final
@dataclass(frozen=True, slots=True)
class RepaymentQuote:
    principal: int
    yield_amount: int
    penalty: int
    total: int

    @property
    def is_early(self) -> bool:
        return self.penalty > 0


def repayment_quote(
    principal: int,
    now: int,
    end_date: int,
    yield_bps: int = YIELD_BPS,
    penalty_bps: int = PENALTY_BPS,
) -> Ok[RepaymentQuote] | Err[RentFlowError]:
    """Break down what the host owes when settling at now."""
    src = f"{_SRC}.repayment_quote"
    match apply_bps(principal, yield_bps, src):
        case Err() as e:
            return e
        case Ok(yield_amount):
            pass
    match checked_add(principal, yield_amount, src):
        case Err() as e:
            return e
        case Ok(total):
            pass

    penalty = 0
    if now < end_date:
        match apply_bps(principal, penalty_bps, src):
            case Err() as e:
                return e
            case Ok(penalty):
                pass
        match checked_add(total, penalty, src):
            case Err() as e:
                return e
            case Ok(total):
                pass

    return Ok(RepaymentQuote(
        principal=principal, yield_amount=yield_amount, penalty=penalty, total=total,
    ))


def total_repayment(
    principal: int,
    now: int,
    end_date: int,
    yield_bps: int = YIELD_BPS,
    penalty_bps: int = PENALTY_BPS,
) -> Ok[int] | Err[RentFlowError]:
    return repayment_quote(principal, now, end_date, yield_bps, penalty_bps).map(
        lambda q: q.total,
    )


def liquidation_threshold(
    end_date: int, grace_period: int = GRACE_PERIOD_SECONDS,
) -> Ok[int] | Err[RentFlowError]:
    """Last instant at which liquidation is still barred."""
    return checked_add_i64(end_date, grace_period, f"{_SRC}.liquidation_threshold")


def max_principal(booking_value: int, ltv_bps: int) -> Ok[int] | Err[RentFlowError]:
    """Loan-to-value ceiling on the cash advance for a booking."""
    return apply_bps(booking_value, ltv_bps, f"{_SRC}.max_principal")


def tier_profit(principal: int, tier: ProfitTier) -> Ok[int] | Err[RentFlowError]:
    """Investor profit share for a repaid obligation of the given tier."""
    return apply_bps(principal, tier.rate_bps, f"{_SRC}.tier_profit")

"""Checked fixed-width integer arithmetic.

Python ints are unbounded, so every ledger quantity is range-checked
explicitly: u64 for amounts, i64 for unix timestamps. Any result outside
the range is Err(MathError MathOverflow). Division truncates toward zero.
"""

from __future__ import annotations

from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.result import Err, Ok

U64_MAX = (1 << 64) - 1
U16_MAX = (1 << 16) - 1
I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1

BPS_DENOMINATOR = 10_000


def is_u64(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= U64_MAX


def is_i64(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and I64_MIN <= value <= I64_MAX


def _overflow(op: str, a: int, b: int, source: str) -> Err[RentFlowError]:
    return fail(ErrorCode.MATH_OVERFLOW, source, f"{a} {op} {b}", operation=op)


def checked_add(a: int, b: int, source: str) -> Ok[int] | Err[RentFlowError]:
    """u64 addition."""
    total = a + b
    if not (is_u64(a) and is_u64(b) and total <= U64_MAX):
        return _overflow("add", a, b, source)
    return Ok(total)


def checked_sub(a: int, b: int, source: str) -> Ok[int] | Err[RentFlowError]:
    """u64 subtraction. Underflow below zero is an error."""
    if not (is_u64(a) and is_u64(b)) or b > a:
        return _overflow("sub", a, b, source)
    return Ok(a - b)


def checked_mul(a: int, b: int, source: str) -> Ok[int] | Err[RentFlowError]:
    """u64 multiplication."""
    product = a * b
    if not (is_u64(a) and is_u64(b) and product <= U64_MAX):
        return _overflow("mul", a, b, source)
    return Ok(product)


def checked_div(a: int, b: int, source: str) -> Ok[int] | Err[RentFlowError]:
    """u64 division, truncating. Division by zero is an error."""
    if not (is_u64(a) and is_u64(b)) or b == 0:
        return _overflow("div", a, b, source)
    return Ok(a // b)


def checked_add_i64(a: int, b: int, source: str) -> Ok[int] | Err[RentFlowError]:
    """i64 addition, for timestamps."""
    total = a + b
    if not (is_i64(a) and is_i64(b) and is_i64(total)):
        return _overflow("add_i64", a, b, source)
    return Ok(total)


def apply_bps(amount: int, bps: int, source: str) -> Ok[int] | Err[RentFlowError]:
    """amount * bps / 10000, multiply first, truncating division."""
    match checked_mul(amount, bps, source):
        case Err() as e:
            return e
        case Ok(scaled):
            return checked_div(scaled, BPS_DENOMINATOR, source)

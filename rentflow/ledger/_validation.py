"""Shared validation helpers for custody transaction builders.

Reduces the owner/asset -> custody address + quantity check to a 1-liner.
"""

from __future__ import annotations

from rentflow.core.checked_math import is_u64
from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.identifiers import TransferAuthority
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.ledger.transactions import Move, Transaction, custody_address


def positive_quantity(
    quantity: int, field_name: str, fn_name: str, source: str,
) -> Ok[int] | Err[RentFlowError]:
    """Accept quantity iff 0 < quantity <= u64::MAX."""
    if quantity <= 0 or not is_u64(quantity):
        return fail(
            ErrorCode.INVALID_AMOUNT, source, f"{fn_name}: {field_name} must be in 1..u64",
            field=field_name, actual_value=str(quantity),
        )
    return Ok(quantity)


def create_move(
    from_owner: Address,
    to_owner: Address,
    asset: Address,
    quantity: int,
    authority: TransferAuthority,
    fn_name: str,
    source: str,
    *,
    label: str = "quantity",
) -> Ok[Move] | Err[RentFlowError]:
    """Move between the canonical custody accounts of two owners."""
    match positive_quantity(quantity, label, fn_name, source):
        case Err() as e:
            return e
        case Ok(qty):
            pass
    return Ok(Move(
        source=custody_address(from_owner, asset),
        destination=custody_address(to_owner, asset),
        asset=asset,
        quantity=qty,
        authority=authority,
    ))


def create_tx(
    tx_id: str,
    moves: tuple[Move, ...],
    timestamp: int,
    fn_name: str,
    source: str,
) -> Ok[Transaction] | Err[RentFlowError]:
    """Create a Transaction; rejects empty ids and empty move lists."""
    if not tx_id:
        return fail(ErrorCode.INVALID_AMOUNT, source, f"{fn_name}: empty tx_id", field="tx_id")
    if not moves:
        return fail(ErrorCode.INVALID_AMOUNT, source, f"{fn_name}: no moves", field="moves")
    return Ok(Transaction(tx_id=tx_id, moves=moves, timestamp=timestamp))

"""Temporal activities exposing each RentFlow instruction.

Activities are thin IO wrappers. All domain logic lives in the program
facade; an activity parses its input, runs one instruction, and reports
the committed record or the error code.

Each activity:
- Is decorated with @activity.defn
- Takes a single frozen-dataclass input
- Returns an InstructionOutput (result XOR error)
- Is NOT retried on a business error: the request was rolled back and
  the same input would fail the same way
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from enum import Enum
from typing import final

from temporalio import activity

from rentflow.core.checked_math import is_i64, is_u64
from rentflow.core.errors import ErrorCode, RentFlowError, make_error
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.oracle.attestation import BookingProof
from rentflow.oracle.signature_instruction import Instruction
from rentflow.protocol.context import Request
from rentflow.protocol.program import RentFlowProgram
from rentflow.protocol.state import InvestmentTerm
from rentflow.workflow.types import (
    BookingProofInput,
    DepositCollateralInput,
    DepositLiquidityInput,
    InstructionOutput,
    IntegratorInput,
    MintBookingInput,
    ObligationInput,
    RequestInput,
    SettleBookingInput,
    SupportedAssetInput,
    WithdrawLiquidityInput,
)

_SRC = "workflow.activities"


class InputParseError(ValueError):
    """Raised while parsing an activity input; reported as an error output."""

    def __init__(self, error: RentFlowError) -> None:
        super().__init__(error.message)
        self.error = error


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _address(raw: str, field_name: str) -> Address:
    match Address.parse(raw):
        case Ok(address):
            return address
        case Err(msg):
            raise InputParseError(make_error(
                ErrorCode.INVALID_ADDRESS, f"{_SRC}.parse", msg,
                field=field_name, actual_value=raw,
            ))


def _request(inp: RequestInput) -> Request:
    if not is_i64(inp.now):
        raise InputParseError(make_error(
            ErrorCode.MATH_OVERFLOW, f"{_SRC}.parse", f"now {inp.now} is not i64 unix seconds",
            operation="parse",
        ))
    if inp.current_index < 0:
        raise InputParseError(make_error(
            ErrorCode.INVALID_INSTRUCTION_INDEX, f"{_SRC}.parse",
            f"current_index {inp.current_index}", check="current_index",
        ))
    instructions = []
    for i, ix in enumerate(inp.instructions):
        try:
            data = bytes.fromhex(ix.data_hex)
        except ValueError as e:
            raise InputParseError(make_error(
                ErrorCode.INVALID_OFFSET, f"{_SRC}.parse", str(e),
                field=f"instructions[{i}].data_hex",
            )) from e
        instructions.append(Instruction(
            program_id=_address(ix.program_id, f"instructions[{i}].program_id"), data=data,
        ))
    return Request(
        signers=frozenset(_address(s, "signers") for s in inp.signers),
        now=inp.now,
        instructions=tuple(instructions),
        current_index=inp.current_index,
        request_id=inp.request_id,
    )


def _proof(inp: BookingProofInput) -> BookingProof:
    if not is_u64(inp.amount):
        raise InputParseError(make_error(
            ErrorCode.INVALID_AMOUNT, f"{_SRC}.parse", f"amount {inp.amount} is not u64",
            field="proof.amount", actual_value=str(inp.amount),
        ))
    if not 0 <= inp.tier_index <= 0xFF:
        raise InputParseError(make_error(
            ErrorCode.INVALID_TIER, f"{_SRC}.parse", f"tier_index {inp.tier_index} is not u8",
            field="proof.tier_index", actual_value=str(inp.tier_index),
        ))
    if not (is_i64(inp.start_date) and is_i64(inp.end_date)):
        raise InputParseError(make_error(
            ErrorCode.MATH_OVERFLOW, f"{_SRC}.parse",
            f"dates {inp.start_date}..{inp.end_date} are not i64 unix seconds",
            operation="parse",
        ))
    return BookingProof(
        booking_id=inp.booking_id,
        amount=inp.amount,
        start_date=inp.start_date,
        end_date=inp.end_date,
        host=_address(inp.host, "proof.host"),
        oracle_pubkey=_address(inp.oracle_pubkey, "proof.oracle_pubkey"),
        tier_index=inp.tier_index,
        investor=_address(inp.investor, "proof.investor"),
    )


def _term(raw: str) -> InvestmentTerm:
    try:
        return InvestmentTerm[raw]
    except KeyError as e:
        raise InputParseError(make_error(
            ErrorCode.INVALID_TERM, f"{_SRC}.parse", f"unknown term {raw!r}",
            field="term", actual_value=raw,
        )) from e


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def _plain(value: object) -> object:
    if isinstance(value, Address):
        return value.hex
    if isinstance(value, Enum):
        return value.name
    return value


def to_payload(value: object) -> dict[str, object]:
    """JSON-ready view of a record (or a bare amount)."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        payload = {
            f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
        status = getattr(value, "status", None)
        if status is not None:
            payload["status"] = _plain(status)
        return payload
    return {"value": _plain(value)}


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


@final
class RentFlowActivities:
    """Activity set bound to one program instance.

    Register the bound methods with a Worker (see worker.py).
    """

    def __init__(self, program: RentFlowProgram) -> None:
        self._program = program

    def _invoke(
        self,
        name: str,
        call: Callable[[], Ok[object] | Err[RentFlowError]],
    ) -> InstructionOutput:
        before = len(self._program.log.entries())
        try:
            result = call()
        except InputParseError as e:
            activity.logger.warning("%s rejected input: %s", name, e.error.code)
            return InstructionOutput(instruction=name, error=e.error.to_dict())
        match result:
            case Ok(value):
                messages = self._program.log.entries()[before:]
                activity.logger.info("%s committed (%d messages)", name, len(messages))
                return InstructionOutput(
                    instruction=name, result=to_payload(value), messages=messages,
                )
            case Err(error):
                activity.logger.warning(
                    "%s rolled back: %s (%s)", name, error.code, error.source,
                )
                return InstructionOutput(instruction=name, error=error.to_dict())

    @activity.defn(name="initialize")
    async def initialize(self, inp: IntegratorInput) -> InstructionOutput:
        """Authorize an integrator and create the pool vault on first use."""
        activity.logger.info("Initializing integrator %s", inp.integrator_wallet)
        return self._invoke("initialize", lambda: self._program.initialize(
            _request(inp.request),
            _address(inp.authority, "authority"),
            _address(inp.integrator_wallet, "integrator_wallet"),
        ))

    @activity.defn(name="deactivate_integrator")
    async def deactivate_integrator(self, inp: IntegratorInput) -> InstructionOutput:
        activity.logger.info("Deactivating integrator %s", inp.integrator_wallet)
        return self._invoke("deactivate_integrator", lambda: self._program.deactivate_integrator(
            _request(inp.request),
            _address(inp.authority, "authority"),
            _address(inp.integrator_wallet, "integrator_wallet"),
        ))

    @activity.defn(name="add_supported_asset")
    async def add_supported_asset(self, inp: SupportedAssetInput) -> InstructionOutput:
        activity.logger.info("Adding supported asset %s at %d bps", inp.mint, inp.ltv_bps)
        return self._invoke("add_supported_asset", lambda: self._program.add_supported_asset(
            _request(inp.request),
            _address(inp.admin, "admin"),
            _address(inp.mint, "mint"),
            inp.ltv_bps,
        ))

    @activity.defn(name="mint_booking")
    async def mint_booking(self, inp: MintBookingInput) -> InstructionOutput:
        """Verify the co-signed booking proof and mint its collateral unit."""
        activity.logger.info("Minting booking %s", inp.proof.booking_id)
        return self._invoke("mint_booking", lambda: self._program.mint_booking(
            _request(inp.request),
            _address(inp.host, "host"),
            _address(inp.integrator_wallet, "integrator_wallet"),
            _address(inp.collateral_mint, "collateral_mint"),
            _proof(inp.proof),
        ))

    @activity.defn(name="deposit_collateral")
    async def deposit_collateral(self, inp: DepositCollateralInput) -> InstructionOutput:
        activity.logger.info(
            "Locking collateral %s for %d", inp.collateral_mint, inp.funding_amount,
        )
        return self._invoke("deposit_collateral", lambda: self._program.deposit_collateral(
            _request(inp.request),
            _address(inp.host, "host"),
            _address(inp.collateral_mint, "collateral_mint"),
            _address(inp.cash_mint, "cash_mint"),
            inp.funding_amount,
        ))

    @activity.defn(name="lock_cycle")
    async def lock_cycle(self, inp: ObligationInput) -> InstructionOutput:
        activity.logger.info("Lock cycle for %s", inp.collateral_mint)
        return self._invoke("lock_cycle", lambda: self._program.lock_cycle(
            _request(inp.request),
            _address(inp.caller, "caller"),
            _address(inp.collateral_mint, "collateral_mint"),
        ))

    @activity.defn(name="settle_booking")
    async def settle_booking(self, inp: SettleBookingInput) -> InstructionOutput:
        """Repay principal + yield (+ early penalty) and release the unit."""
        activity.logger.info("Settling booking for %s", inp.collateral_mint)
        return self._invoke("settle_booking", lambda: self._program.settle_booking(
            _request(inp.request),
            _address(inp.host, "host"),
            _address(inp.collateral_mint, "collateral_mint"),
            _address(inp.cash_mint, "cash_mint"),
        ))

    @activity.defn(name="liquidate_default")
    async def liquidate_default(self, inp: ObligationInput) -> InstructionOutput:
        activity.logger.info("Liquidating %s", inp.collateral_mint)
        return self._invoke("liquidate_default", lambda: self._program.liquidate_default(
            _request(inp.request),
            _address(inp.caller, "caller"),
            _address(inp.collateral_mint, "collateral_mint"),
        ))

    @activity.defn(name="withdraw_collateral")
    async def withdraw_collateral(self, inp: ObligationInput) -> InstructionOutput:
        activity.logger.info("Withdrawing collateral %s", inp.collateral_mint)
        return self._invoke("withdraw_collateral", lambda: self._program.withdraw_collateral(
            _request(inp.request),
            _address(inp.caller, "caller"),
            _address(inp.collateral_mint, "collateral_mint"),
        ))

    @activity.defn(name="deposit_liquidity")
    async def deposit_liquidity(self, inp: DepositLiquidityInput) -> InstructionOutput:
        activity.logger.info("Deposit of %d by %s", inp.amount, inp.investor)
        return self._invoke("deposit_liquidity", lambda: self._program.deposit_liquidity(
            _request(inp.request),
            _address(inp.investor, "investor"),
            _address(inp.cash_mint, "cash_mint"),
            inp.amount,
            _term(inp.term),
        ))

    @activity.defn(name="withdraw_liquidity")
    async def withdraw_liquidity(self, inp: WithdrawLiquidityInput) -> InstructionOutput:
        activity.logger.info("Withdrawal by %s", inp.investor)
        return self._invoke("withdraw_liquidity", lambda: self._program.withdraw_liquidity(
            _request(inp.request),
            _address(inp.investor, "investor"),
            _address(inp.cash_mint, "cash_mint"),
        ))

    def all(self) -> list[Callable[..., object]]:
        """Every activity, for Worker registration."""
        return [
            self.initialize,
            self.deactivate_integrator,
            self.add_supported_asset,
            self.mint_booking,
            self.deposit_collateral,
            self.lock_cycle,
            self.settle_booking,
            self.liquidate_default,
            self.withdraw_collateral,
            self.deposit_liquidity,
            self.withdraw_liquidity,
        ]

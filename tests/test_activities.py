"""Tests for the RentFlow Temporal activities.

Activities run under temporalio's ActivityEnvironment, so no server is
needed. Each test drives one instruction through its JSON-shaped input.
"""

from __future__ import annotations

from dataclasses import replace

import pytest
from temporalio.testing import ActivityEnvironment

from conftest import Harness
from rentflow.core.types import Address
from rentflow.protocol.context import Request
from rentflow.workflow.activities import RentFlowActivities, to_payload
from rentflow.workflow.types import (
    BookingProofInput,
    DepositLiquidityInput,
    InstructionInput,
    InstructionOutput,
    IntegratorInput,
    MintBookingInput,
    ObligationInput,
    RequestInput,
    WithdrawLiquidityInput,
)

# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


def _request_input(request: Request) -> RequestInput:
    return RequestInput(
        signers=tuple(sorted(s.hex for s in request.signers)),
        now=request.now,
        instructions=tuple(
            InstructionInput(program_id=ix.program_id.hex, data_hex=ix.data.hex())
            for ix in request.instructions
        ),
        current_index=request.current_index,
        request_id=request.request_id,
    )


def _setup() -> tuple[Harness, RentFlowActivities, ActivityEnvironment]:
    h = Harness().setup()
    return h, RentFlowActivities(h.program), ActivityEnvironment()


def _mint_input(h: Harness, unit: Address) -> MintBookingInput:
    proof = h.proof()
    return MintBookingInput(
        request=_request_input(h.mint_request(proof, unit)),
        host=h.host.hex,
        integrator_wallet=h.integrator.hex,
        collateral_mint=unit.hex,
        proof=BookingProofInput(
            booking_id=proof.booking_id,
            amount=proof.amount,
            start_date=proof.start_date,
            end_date=proof.end_date,
            host=proof.host.hex,
            oracle_pubkey=proof.oracle_pubkey.hex,
            tier_index=proof.tier_index,
            investor=proof.investor.hex,
        ),
    )


# ---------------------------------------------------------------------------
# InstructionOutput
# ---------------------------------------------------------------------------


class TestInstructionOutput:
    def test_result_xor_error(self) -> None:
        with pytest.raises(TypeError):
            InstructionOutput(instruction="x")
        with pytest.raises(TypeError):
            InstructionOutput(instruction="x", result={}, error={"code": "E"})

    def test_error_code(self) -> None:
        out = InstructionOutput(instruction="x", error={"code": "NotLocked"})
        assert not out.ok
        assert out.error_code == "NotLocked"
        assert InstructionOutput(instruction="x", result={}).error_code is None

    def test_payload_of_bare_amount(self) -> None:
        assert to_payload(42) == {"value": 42}


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_deactivate_integrator() -> None:
    h, activities, env = _setup()
    out = await env.run(activities.deactivate_integrator, IntegratorInput(
        request=_request_input(h.request(h.admin)),
        authority=h.admin.hex,
        integrator_wallet=h.integrator.hex,
    ))
    assert out.ok
    assert out.result is not None
    assert out.result["is_active"] is False
    assert out.result["authority"] == h.admin.hex
    assert out.messages == (f"Integrator deactivated: {h.integrator}",)


@pytest.mark.asyncio
async def test_malformed_address_is_rejected() -> None:
    h, activities, env = _setup()
    out = await env.run(activities.initialize, IntegratorInput(
        request=_request_input(h.request(h.admin)),
        authority="not-hex",
        integrator_wallet=h.integrator.hex,
    ))
    assert out.error_code == "InvalidAddress"
    assert out.error is not None
    assert out.error["field"] == "authority"
    assert out.messages == ()


@pytest.mark.asyncio
async def test_malformed_instruction_data() -> None:
    h, activities, env = _setup()
    unit = Address.from_seed("unit-1")
    inp = _mint_input(h, unit)
    broken = RequestInput(
        signers=inp.request.signers,
        now=inp.request.now,
        instructions=(InstructionInput(program_id=h.host.hex, data_hex="zz"),),
    )
    out = await env.run(activities.mint_booking, MintBookingInput(
        request=broken, host=inp.host, integrator_wallet=inp.integrator_wallet,
        collateral_mint=inp.collateral_mint, proof=inp.proof,
    ))
    assert out.error_code == "InvalidOffset"


@pytest.mark.asyncio
async def test_mint_booking() -> None:
    h, activities, env = _setup()
    unit = Address.from_seed("unit-1")
    out = await env.run(activities.mint_booking, _mint_input(h, unit))
    assert out.ok
    assert out.result is not None
    assert out.result["status"] == "MINTED"
    assert out.result["tier"] == "ONE_MONTH"
    assert out.result["collateral_mint"] == unit.hex
    assert out.result["booking_value"] == h.value
    assert out.messages == (f"Booking minted: BK-1 value={h.value}",)


@pytest.mark.asyncio
async def test_business_error_is_reported() -> None:
    h, activities, env = _setup()
    unit = h.mint()
    out = await env.run(activities.lock_cycle, ObligationInput(
        request=_request_input(h.request(h.host)),
        caller=h.host.hex,
        collateral_mint=unit.hex,
    ))
    assert out.error_code == "CollateralNotInCustody"
    assert out.error is not None
    assert out.error["state"] == "Minted"


@pytest.mark.asyncio
async def test_deposit_liquidity_term_by_name() -> None:
    h, activities, env = _setup()
    h.fund(h.investor, 1_000)
    out = await env.run(activities.deposit_liquidity, DepositLiquidityInput(
        request=_request_input(h.request(h.investor)),
        investor=h.investor.hex,
        cash_mint=h.cash.hex,
        amount=1_000,
        term="SIX_MONTHS",
    ))
    assert out.ok
    assert out.result is not None
    assert out.result["term"] == "SIX_MONTHS"
    assert out.result["principal"] == 20_001_000


@pytest.mark.asyncio
async def test_unknown_term() -> None:
    h, activities, env = _setup()
    out = await env.run(activities.deposit_liquidity, DepositLiquidityInput(
        request=_request_input(h.request(h.investor)),
        investor=h.investor.hex,
        cash_mint=h.cash.hex,
        amount=1_000,
        term="FOREVER",
    ))
    assert out.error_code == "InvalidTerm"
    assert out.error is not None
    assert out.error["field"] == "term"


@pytest.mark.asyncio
async def test_tier_outside_u8_is_rejected() -> None:
    h, activities, env = _setup()
    inp = _mint_input(h, Address.from_seed("unit-1"))
    out = await env.run(
        activities.mint_booking, replace(inp, proof=replace(inp.proof, tier_index=300)),
    )
    assert out.error_code == "InvalidTier"
    assert out.error is not None
    assert out.error["field"] == "proof.tier_index"
    assert out.error["actual_value"] == "300"


@pytest.mark.asyncio
async def test_amount_outside_u64_is_rejected() -> None:
    h, activities, env = _setup()
    inp = _mint_input(h, Address.from_seed("unit-1"))
    out = await env.run(
        activities.mint_booking, replace(inp, proof=replace(inp.proof, amount=2**64)),
    )
    assert out.error_code == "InvalidAmount"
    assert out.error is not None
    assert out.error["field"] == "proof.amount"


@pytest.mark.asyncio
async def test_dates_outside_i64_are_rejected() -> None:
    h, activities, env = _setup()
    inp = _mint_input(h, Address.from_seed("unit-1"))
    out = await env.run(
        activities.mint_booking, replace(inp, proof=replace(inp.proof, end_date=2**63)),
    )
    assert out.error_code == "MathOverflow"


@pytest.mark.asyncio
async def test_request_time_outside_i64_is_rejected() -> None:
    h, activities, env = _setup()
    out = await env.run(activities.deactivate_integrator, IntegratorInput(
        request=replace(_request_input(h.request(h.admin)), now=2**63),
        authority=h.admin.hex,
        integrator_wallet=h.integrator.hex,
    ))
    assert out.error_code == "MathOverflow"
    assert out.error is not None
    assert out.error["operation"] == "parse"


@pytest.mark.asyncio
async def test_negative_instruction_index_is_rejected() -> None:
    h, activities, env = _setup()
    out = await env.run(activities.deactivate_integrator, IntegratorInput(
        request=replace(_request_input(h.request(h.admin)), current_index=-1),
        authority=h.admin.hex,
        integrator_wallet=h.integrator.hex,
    ))
    assert out.error_code == "InvalidInstructionIndex"
    assert out.error is not None
    assert out.error["check"] == "current_index"


@pytest.mark.asyncio
async def test_withdraw_liquidity_payout() -> None:
    h, activities, env = _setup()
    out = await env.run(activities.withdraw_liquidity, WithdrawLiquidityInput(
        request=_request_input(h.request(h.investor, now=h.now + 40 * 86_400)),
        investor=h.investor.hex,
        cash_mint=h.cash.hex,
    ))
    assert out.result == {"value": 20_000_000}


def test_every_instruction_is_registered() -> None:
    h = Harness()
    assert len(RentFlowActivities(h.program).all()) == 11

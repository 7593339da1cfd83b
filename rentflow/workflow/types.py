"""Activity input/output types for the RentFlow service boundary.

Addresses travel as 64-character hex strings and instruction data as hex,
so every payload is plain JSON for Temporal's default data converter.

All types: @final @dataclass(frozen=True, slots=True).
Convention: parse into domain types inside the activity; __post_init__ for
invariants that should hold at all times.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

# ---------------------------------------------------------------------------
# Request envelope
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class InstructionInput:
    """One instruction of the enclosing request."""

    program_id: str
    data_hex: str


@final
@dataclass(frozen=True, slots=True)
class RequestInput:
    """Signers, clock and instruction list of one atomic request."""

    signers: tuple[str, ...]
    now: int
    instructions: tuple[InstructionInput, ...] = ()
    current_index: int = 0
    request_id: str = ""


# ---------------------------------------------------------------------------
# Setup instructions
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class IntegratorInput:
    """Input to initialize and deactivate_integrator."""

    request: RequestInput
    authority: str
    integrator_wallet: str


@final
@dataclass(frozen=True, slots=True)
class SupportedAssetInput:
    request: RequestInput
    admin: str
    mint: str
    ltv_bps: int


# ---------------------------------------------------------------------------
# Lifecycle instructions
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class BookingProofInput:
    """Oracle-attested booking, as signed."""

    booking_id: str
    amount: int
    start_date: int
    end_date: int
    host: str
    oracle_pubkey: str
    tier_index: int
    investor: str


@final
@dataclass(frozen=True, slots=True)
class MintBookingInput:
    request: RequestInput
    host: str
    integrator_wallet: str
    collateral_mint: str
    proof: BookingProofInput


@final
@dataclass(frozen=True, slots=True)
class DepositCollateralInput:
    request: RequestInput
    host: str
    collateral_mint: str
    cash_mint: str
    funding_amount: int


@final
@dataclass(frozen=True, slots=True)
class ObligationInput:
    """Input to lock_cycle, liquidate_default and withdraw_collateral.

    caller is the host, or the liquidator for liquidate_default.
    """

    request: RequestInput
    caller: str
    collateral_mint: str


@final
@dataclass(frozen=True, slots=True)
class SettleBookingInput:
    request: RequestInput
    host: str
    collateral_mint: str
    cash_mint: str


# ---------------------------------------------------------------------------
# Pool instructions
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class DepositLiquidityInput:
    request: RequestInput
    investor: str
    cash_mint: str
    amount: int
    term: str  # InvestmentTerm member name, e.g. "THREE_MONTHS"


@final
@dataclass(frozen=True, slots=True)
class WithdrawLiquidityInput:
    request: RequestInput
    investor: str
    cash_mint: str


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class InstructionOutput:
    """Committed record snapshot, or the error that rolled the request back."""

    instruction: str
    result: dict[str, object] | None = None
    error: dict[str, object] | None = None
    messages: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise TypeError(
                "InstructionOutput must have exactly one of result or error"
            )

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_code(self) -> str | None:
        if self.error is None:
            return None
        return str(self.error["code"])

"""Hypothesis strategies and pytest fixtures for RentFlow.

Strategies cover the primitive values (addresses, u64 amounts, unix
times). The Harness fixture wires a RentFlowProgram to a CustodyLedger
with a funded cash asset, an authorized integrator, and an oracle whose
co-signed proofs mint_booking accepts.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from hypothesis import HealthCheck, settings
from hypothesis import strategies as st
from hypothesis.strategies import SearchStrategy

from rentflow.core.checked_math import U64_MAX
from rentflow.core.identifiers import WalletSigner
from rentflow.core.result import unwrap
from rentflow.core.types import SECONDS_PER_DAY, Address
from rentflow.infra.config import ProtocolConfig
from rentflow.ledger.engine import CustodyLedger
from rentflow.ledger.transactions import Asset, AssetKind
from rentflow.oracle.attestation import BookingProof, serialize_booking_proof
from rentflow.oracle.signature_instruction import (
    ED25519_PROGRAM_ID,
    Instruction,
    build_signature_instruction,
)
from rentflow.protocol.context import Request
from rentflow.protocol.program import RentFlowProgram
from rentflow.protocol.state import BookingObligation, InvestmentTerm

# ---------------------------------------------------------------------------
# Hypothesis global settings
# ---------------------------------------------------------------------------

settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.register_profile(
    "dev",
    max_examples=50,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.load_profile("dev")


# ===================================================================
# PRIMITIVE STRATEGIES
# ===================================================================


def addresses() -> SearchStrategy[Address]:
    """Arbitrary 32-byte addresses."""
    return st.binary(min_size=32, max_size=32).map(lambda b: Address(value=b))


def u64s(min_value: int = 0, max_value: int = U64_MAX) -> SearchStrategy[int]:
    return st.integers(min_value=min_value, max_value=max_value)


def principals() -> SearchStrategy[int]:
    """Booking values small enough that principal * 1500 bps fits u64."""
    return st.integers(min_value=0, max_value=U64_MAX // 10_000)


def unix_times() -> SearchStrategy[int]:
    """Unix seconds between 2020 and 2035."""
    return st.integers(min_value=1_577_836_800, max_value=2_051_222_400)


# ===================================================================
# PROGRAM HARNESS
# ===================================================================

NOW = 1_700_000_000
DAY = SECONDS_PER_DAY
BOOKING_START = NOW + 10 * DAY
BOOKING_END = NOW + 15 * DAY
BOOKING_VALUE = 5_000_000
POOL_LIQUIDITY = 20_000_000


class Harness:
    """A program with one cash asset, one integrator, one host, one investor."""

    now = NOW
    start = BOOKING_START
    end = BOOKING_END
    value = BOOKING_VALUE

    def __init__(self, **config_overrides: Any) -> None:
        self.admin = Address.from_seed("admin")
        self.oracle = Address.from_seed("oracle")
        self.integrator = Address.from_seed("integrator")
        self.host = Address.from_seed("host")
        self.investor = Address.from_seed("investor")
        self.treasury = Address.from_seed("treasury")
        self.cash = Address.from_seed("cash.usdc")
        self.ledger = CustodyLedger()
        self.config = ProtocolConfig(
            admin=self.admin, oracle_key=self.oracle, **config_overrides,
        )
        self.program = RentFlowProgram(self.config, custody=self.ledger)
        unwrap(self.ledger.create_asset(Asset(
            mint=self.cash, kind=AssetKind.FUNGIBLE, decimals=6,
            mint_authority=self.treasury,
        )))

    # -- requests -------------------------------------------------------

    def request(self, *signers: Address, now: int = NOW) -> Request:
        return Request(signers=frozenset(signers), now=now, request_id="test")

    def proof(
        self,
        booking_id: str = "BK-1",
        amount: int = BOOKING_VALUE,
        start_date: int = BOOKING_START,
        end_date: int = BOOKING_END,
        tier_index: int = 0,
        host: Address | None = None,
        oracle: Address | None = None,
    ) -> BookingProof:
        return BookingProof(
            booking_id=booking_id,
            amount=amount,
            start_date=start_date,
            end_date=end_date,
            host=host or self.host,
            oracle_pubkey=oracle or self.oracle,
            tier_index=tier_index,
            investor=self.investor,
        )

    def mint_request(
        self,
        proof: BookingProof,
        collateral: Address,
        *,
        signer_key: Address | None = None,
        message: bytes | None = None,
        verifier: Address = ED25519_PROGRAM_ID,
        now: int = NOW,
    ) -> Request:
        """Verify instruction at index 0, mint_booking at index 1."""
        verify_ix = build_signature_instruction(
            signer_key or self.oracle,
            serialize_booking_proof(proof) if message is None else message,
            program_id=verifier,
        )
        mint_ix = Instruction(program_id=self.config.program_id, data=b"mint_booking")
        return Request(
            signers=frozenset({self.host, collateral}),
            now=now,
            instructions=(verify_ix, mint_ix),
            current_index=1,
            request_id="mint",
        )

    # -- setup steps ----------------------------------------------------

    def fund(self, wallet: Address, amount: int) -> None:
        """Mint cash straight into a wallet's custody account."""
        account = unwrap(self.ledger.ensure_account(wallet, self.cash))
        unwrap(self.ledger.mint_to(
            self.cash, account.address, amount, WalletSigner(wallet=self.treasury),
            frozenset({self.treasury}), self.config.program_id,
        ))

    def initialize(self) -> None:
        unwrap(self.program.initialize(
            self.request(self.admin), self.admin, self.integrator,
        ))

    def support_cash(self, ltv_bps: int = 10_000) -> None:
        unwrap(self.program.add_supported_asset(
            self.request(self.admin), self.admin, self.cash, ltv_bps,
        ))

    def provide_liquidity(
        self, amount: int = POOL_LIQUIDITY, term: InvestmentTerm = InvestmentTerm.ONE_MONTH,
    ) -> None:
        self.fund(self.investor, amount)
        unwrap(self.program.deposit_liquidity(
            self.request(self.investor), self.investor, self.cash, amount, term,
        ))

    def setup(self, ltv_bps: int = 10_000, liquidity: int = POOL_LIQUIDITY) -> Harness:
        self.initialize()
        self.support_cash(ltv_bps)
        self.provide_liquidity(liquidity)
        return self

    def mint(self, label: str = "unit-1", **proof_fields: Any) -> Address:
        """Mint a booking; returns its collateral mint."""
        collateral = Address.from_seed(label)
        proof = self.proof(**proof_fields)
        unwrap(self.program.mint_booking(
            self.mint_request(proof, collateral), self.host, self.integrator,
            collateral, proof,
        ))
        return collateral

    def lock(self, collateral: Address, funding: int = BOOKING_VALUE) -> BookingObligation:
        return unwrap(self.program.deposit_collateral(
            self.request(self.host), self.host, collateral, self.cash, funding,
        ))

    # -- queries --------------------------------------------------------

    def obligation(self, collateral: Address) -> BookingObligation:
        return unwrap(self.program.obligation(collateral))

    def cash_of(self, owner: Address) -> int:
        return self.ledger.balance_of(owner, self.cash)

    def pool_address(self) -> Address:
        return self.program.pool_vault_address()

    def tracked_liquidity(self) -> int:
        return unwrap(self.program.pool_vault()).total_liquidity_tracked


@pytest.fixture
def make_harness() -> Callable[..., Harness]:
    """Factory for harnesses with config overrides."""
    return Harness


@pytest.fixture
def harness() -> Harness:
    """Default-config harness, set up with pool liquidity and a supported asset."""
    return Harness().setup()

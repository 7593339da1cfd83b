"""RentFlowProgram: the instruction surface.

Each public method runs one instruction as an atomic request:

1. Snapshot the record store and custody gateway
2. Run the handler against a fresh ProgramContext with a per-request log
3. On Err, or if the handler raises, restore both snapshots and drop the
   request's messages
4. On Ok append the request's messages to the program log

Every request gets a unique id (caller prefix + sequence number), which
scopes the custody transaction ids it produces.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Any, TypeVar, final

from rentflow.core.errors import RentFlowError
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.infra.config import ProtocolConfig
from rentflow.infra.memory_adapter import InMemoryProgramLog, InMemoryRecordStore
from rentflow.infra.protocols import CustodyGateway, ProgramLog, RecordStore
from rentflow.ledger.engine import CustodyLedger
from rentflow.oracle.attestation import BookingProof
from rentflow.protocol import admin, lifecycle, pool
from rentflow.protocol.context import ProgramContext, Request
from rentflow.protocol.state import (
    BookingObligation,
    IntegratorAuthorization,
    InvestmentTerm,
    LiquidityPosition,
    PoolVault,
    R,
    SupportedAssetConfig,
    integrator_seeds,
    obligation_seeds,
    pool_vault_seeds,
    position_seeds,
    supported_asset_seeds,
)

_SRC = "protocol.program.RentFlowProgram"

T = TypeVar("T")


@final
class RentFlowProgram:
    """Obligation lifecycle and liquidity pool over pluggable infrastructure."""

    def __init__(
        self,
        config: ProtocolConfig,
        store: RecordStore | None = None,
        custody: CustodyGateway | None = None,
        log: ProgramLog | None = None,
    ) -> None:
        self._config = config
        self._store: RecordStore = store if store is not None else InMemoryRecordStore()
        self._custody: CustodyGateway = custody if custody is not None else CustodyLedger()
        self._log: ProgramLog = log if log is not None else InMemoryProgramLog()
        self._sequence = 0

    @property
    def config(self) -> ProtocolConfig:
        return self._config

    @property
    def custody(self) -> CustodyGateway:
        return self._custody

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def log(self) -> ProgramLog:
        return self._log

    # ------------------------------------------------------------------
    # Atomic request runner
    # ------------------------------------------------------------------

    def _run(
        self,
        request: Request,
        handler: Callable[..., Ok[T] | Err[RentFlowError]],
        *args: Any,
    ) -> Ok[T] | Err[RentFlowError]:
        self._sequence += 1
        request = replace(
            request, request_id=f"{request.request_id or 'req'}-{self._sequence}",
        )
        store_snapshot = self._store.clone()
        custody_snapshot = self._custody.clone()
        buffer = InMemoryProgramLog()
        ctx = ProgramContext(
            config=self._config,
            store=self._store,
            custody=self._custody,
            log=buffer,
            request=request,
        )
        try:
            result = handler(ctx, *args)
        except BaseException:
            self._store.restore(store_snapshot)
            self._custody.restore(custody_snapshot)
            raise
        match result:
            case Err():
                self._store.restore(store_snapshot)
                self._custody.restore(custody_snapshot)
            case Ok():
                for message in buffer.entries():
                    self._log.emit(message)
        return result

    # ------------------------------------------------------------------
    # Instructions
    # ------------------------------------------------------------------

    def initialize(
        self, request: Request, authority: Address, integrator_wallet: Address,
    ) -> Ok[IntegratorAuthorization] | Err[RentFlowError]:
        return self._run(request, admin.initialize, authority, integrator_wallet)

    def deactivate_integrator(
        self, request: Request, authority: Address, integrator_wallet: Address,
    ) -> Ok[IntegratorAuthorization] | Err[RentFlowError]:
        return self._run(request, admin.deactivate_integrator, authority, integrator_wallet)

    def add_supported_asset(
        self, request: Request, admin_wallet: Address, mint: Address, ltv_bps: int,
    ) -> Ok[SupportedAssetConfig] | Err[RentFlowError]:
        return self._run(request, admin.add_supported_asset, admin_wallet, mint, ltv_bps)

    def mint_booking(
        self,
        request: Request,
        host: Address,
        integrator_wallet: Address,
        collateral_mint: Address,
        proof: BookingProof,
    ) -> Ok[BookingObligation] | Err[RentFlowError]:
        return self._run(
            request, lifecycle.mint_booking, host, integrator_wallet, collateral_mint, proof,
        )

    def deposit_collateral(
        self,
        request: Request,
        host: Address,
        collateral_mint: Address,
        cash_mint: Address,
        funding_amount: int,
    ) -> Ok[BookingObligation] | Err[RentFlowError]:
        return self._run(
            request, lifecycle.deposit_collateral, host, collateral_mint, cash_mint,
            funding_amount,
        )

    def lock_cycle(
        self, request: Request, host: Address, collateral_mint: Address,
    ) -> Ok[BookingObligation] | Err[RentFlowError]:
        return self._run(request, lifecycle.lock_cycle, host, collateral_mint)

    def settle_booking(
        self, request: Request, host: Address, collateral_mint: Address, cash_mint: Address,
    ) -> Ok[BookingObligation] | Err[RentFlowError]:
        return self._run(request, lifecycle.settle_booking, host, collateral_mint, cash_mint)

    def liquidate_default(
        self, request: Request, liquidator: Address, collateral_mint: Address,
    ) -> Ok[BookingObligation] | Err[RentFlowError]:
        return self._run(request, lifecycle.liquidate_default, liquidator, collateral_mint)

    def withdraw_collateral(
        self, request: Request, host: Address, collateral_mint: Address,
    ) -> Ok[BookingObligation] | Err[RentFlowError]:
        return self._run(request, lifecycle.withdraw_collateral, host, collateral_mint)

    def deposit_liquidity(
        self,
        request: Request,
        investor: Address,
        cash_mint: Address,
        amount: int,
        term: InvestmentTerm,
    ) -> Ok[LiquidityPosition] | Err[RentFlowError]:
        return self._run(request, pool.deposit_liquidity, investor, cash_mint, amount, term)

    def withdraw_liquidity(
        self, request: Request, investor: Address, cash_mint: Address,
    ) -> Ok[int] | Err[RentFlowError]:
        return self._run(request, pool.withdraw_liquidity, investor, cash_mint)

    # ------------------------------------------------------------------
    # Addresses and record queries
    # ------------------------------------------------------------------

    def _read_ctx(self) -> ProgramContext:
        return ProgramContext(
            config=self._config,
            store=self._store,
            custody=self._custody,
            log=InMemoryProgramLog(),
            request=Request(signers=frozenset(), now=0),
        )

    def address_of(self, seeds: tuple[bytes, ...]) -> Address:
        return self._read_ctx().derive(seeds)[0]

    def obligation_address(self, collateral_mint: Address) -> Address:
        return self.address_of(obligation_seeds(collateral_mint))

    def pool_vault_address(self) -> Address:
        return self.address_of(pool_vault_seeds())

    def _fetch(
        self, seeds: tuple[bytes, ...], record_type: type[R],
    ) -> Ok[R] | Err[RentFlowError]:
        ctx = self._read_ctx()
        return ctx.load(ctx.derive(seeds)[0], record_type, f"{_SRC}.fetch")

    def integrator(self, wallet: Address) -> Ok[IntegratorAuthorization] | Err[RentFlowError]:
        return self._fetch(integrator_seeds(wallet), IntegratorAuthorization)

    def supported_asset(self, mint: Address) -> Ok[SupportedAssetConfig] | Err[RentFlowError]:
        return self._fetch(supported_asset_seeds(mint), SupportedAssetConfig)

    def obligation(self, collateral_mint: Address) -> Ok[BookingObligation] | Err[RentFlowError]:
        return self._fetch(obligation_seeds(collateral_mint), BookingObligation)

    def position(self, investor: Address) -> Ok[LiquidityPosition] | Err[RentFlowError]:
        return self._fetch(position_seeds(investor), LiquidityPosition)

    def pool_vault(self) -> Ok[PoolVault] | Err[RentFlowError]:
        return self._fetch(pool_vault_seeds(), PoolVault)

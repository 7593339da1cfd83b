"""Obligation lifecycle: mint, lock/fund, settle, liquidate, withdraw.

States (see BookingObligation.status):

    Minted --deposit_collateral/lock_cycle--> Locked
    Locked --settle_booking--> SettledRepaid
    Locked --liquidate_default--> SettledDefaulted
    Settled* --withdraw_collateral--> (record deleted)

is_settled is set exactly once, by settle or liquidate, and never reset.
is_locked implies the collateral unit sits in obligation custody, so
both settle and liquidate clear it. A defaulted obligation is
kept as evidence and only withdrawn when allow_defaulted_withdrawal is set.
Custody moves and record updates happen in the same request; the program
facade rolls both back if any step returns Err.

Collateral leaves obligation custody only through the obligation's
DerivedSigner, built here from the record's seeds and recorded bump.
"""

from __future__ import annotations

from dataclasses import replace

from rentflow.core.checked_math import checked_add
from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.identifiers import DerivedSigner
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address, BookingId
from rentflow.ledger.custody import (
    COLLATERAL_UNIT,
    create_collateral_return_transaction,
    create_lock_and_disburse_transaction,
    create_repay_and_release_transaction,
    create_seizure_transaction,
)
from rentflow.ledger.transactions import Asset, AssetKind
from rentflow.oracle.attestation import BookingProof
from rentflow.oracle.verifier import verify_booking_proof
from rentflow.protocol.context import ProgramContext
from rentflow.protocol.pool import (
    credit_liquidity,
    debit_liquidity,
    load_pool_vault,
    pool_signer,
    require_supported_asset,
)
from rentflow.protocol.settlement import (
    liquidation_threshold,
    max_principal,
    repayment_quote,
    tier_profit,
)
from rentflow.protocol.state import (
    BookingObligation,
    IntegratorAuthorization,
    LiquidityPosition,
    ProfitTier,
    integrator_seeds,
    obligation_seeds,
    position_seeds,
)

_SRC = "protocol.lifecycle"


def _load_obligation(
    ctx: ProgramContext, collateral_mint: Address, source: str,
) -> Ok[tuple[Address, BookingObligation]] | Err[RentFlowError]:
    address, _ = ctx.derive(obligation_seeds(collateral_mint))
    return ctx.load(address, BookingObligation, source).map(lambda ob: (address, ob))


def _obligation_signer(ctx: ProgramContext, obligation: BookingObligation) -> DerivedSigner:
    return ctx.signer_for(obligation_seeds(obligation.collateral_mint), obligation.bump)


# ---------------------------------------------------------------------------
# Mint
# ---------------------------------------------------------------------------


def _validate_booking(proof: BookingProof, source: str) -> Ok[ProfitTier] | Err[RentFlowError]:
    match ProfitTier.from_index(proof.tier_index, source):
        case Err() as e:
            return e
        case Ok(tier):
            pass
    match BookingId.parse(proof.booking_id):
        case Err(msg):
            return fail(
                ErrorCode.INVALID_BOOKING_ID, source, msg,
                field="booking_id", actual_value=proof.booking_id,
            )
        case Ok():
            pass
    if proof.end_date <= proof.start_date:
        return fail(
            ErrorCode.INVALID_BOOKING_WINDOW, source,
            f"start {proof.start_date} end {proof.end_date}", field="end_date",
            actual_value=str(proof.end_date),
        )
    if proof.amount <= 0:
        return fail(
            ErrorCode.INVALID_AMOUNT, source, field="amount", actual_value=str(proof.amount),
        )
    return Ok(tier)


def mint_booking(
    ctx: ProgramContext,
    host: Address,
    integrator_wallet: Address,
    collateral_mint: Address,
    proof: BookingProof,
) -> Ok[BookingObligation] | Err[RentFlowError]:
    """Verify the attested booking, mint its collateral unit, record the obligation.

    collateral_mint is a fresh address that must co-sign the request.
    """
    src = f"{_SRC}.mint_booking"
    match ctx.require_signer(host, src):
        case Err() as e:
            return e
        case Ok():
            pass
    match ctx.require_signer(collateral_mint, src):
        case Err() as e:
            return e
        case Ok():
            pass

    integrator_address, _ = ctx.derive(integrator_seeds(integrator_wallet))
    if not ctx.exists(integrator_address):
        return fail(ErrorCode.INTEGRATOR_NOT_AUTHORIZED, src, actor=integrator_wallet.hex)
    match ctx.load(integrator_address, IntegratorAuthorization, src):
        case Err() as e:
            return e
        case Ok(integrator):
            pass
    if not integrator.is_active:
        return fail(ErrorCode.INTEGRATOR_NOT_AUTHORIZED, src, actor=integrator_wallet.hex)

    match verify_booking_proof(
        proof,
        ctx.request.instructions,
        ctx.request.current_index,
        ctx.config.verifier_program_id,
        ctx.config.oracle_key,
    ):
        case Err() as e:
            return e
        case Ok(attestation):
            pass
    booking = attestation.proof
    if booking.host != host:
        return fail(ErrorCode.NOT_HUB_OWNER, src, actor=host.hex)
    match _validate_booking(booking, src):
        case Err() as e:
            return e
        case Ok(tier):
            pass

    match ctx.custody.create_asset(Asset(
        mint=collateral_mint,
        kind=AssetKind.NON_FUNGIBLE,
        decimals=0,
        mint_authority=integrator_address,
    )):
        case Err() as e:
            return e
        case Ok():
            pass
    match ctx.custody.ensure_account(host, collateral_mint):
        case Err() as e:
            return e
        case Ok(host_account):
            pass
    match ctx.custody.mint_to(
        collateral_mint,
        host_account.address,
        COLLATERAL_UNIT,
        ctx.signer_for(integrator_seeds(integrator_wallet), integrator.bump),
        ctx.request.signers,
        ctx.program_id,
    ):
        case Err() as e:
            return e
        case Ok():
            pass

    obligation_address, bump = ctx.derive(obligation_seeds(collateral_mint))
    obligation = BookingObligation(
        booking_id=booking.booking_id,
        booking_value=booking.amount,
        max_principal=booking.amount,
        borrowed_amount=0,
        start_date=booking.start_date,
        end_date=booking.end_date,
        host=host,
        integrator=integrator_wallet,
        investor=booking.investor,
        collateral_mint=collateral_mint,
        tier=tier,
        is_locked=False,
        is_settled=False,
        is_defaulted=False,
        bump=bump,
    )
    match ctx.create(obligation_address, obligation):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(f"Booking minted: {booking.booking_id} value={booking.amount}")
    return Ok(obligation)


# ---------------------------------------------------------------------------
# Lock / fund
# ---------------------------------------------------------------------------


def deposit_collateral(
    ctx: ProgramContext,
    host: Address,
    collateral_mint: Address,
    cash_mint: Address,
    funding_amount: int,
) -> Ok[BookingObligation] | Err[RentFlowError]:
    """Lock the collateral unit and disburse funding_amount to the host."""
    src = f"{_SRC}.deposit_collateral"
    match ctx.require_signer(host, src):
        case Err() as e:
            return e
        case Ok():
            pass
    match _load_obligation(ctx, collateral_mint, src):
        case Err() as e:
            return e
        case Ok((obligation_address, obligation)):
            pass
    if obligation.is_locked:
        return fail(ErrorCode.ALREADY_LOCKED, src, state=obligation.status.value)
    if obligation.is_settled:
        return fail(ErrorCode.ALREADY_SETTLED, src, state=obligation.status.value)
    if obligation.host != host:
        return fail(ErrorCode.NOT_HUB_OWNER, src, actor=host.hex)
    if funding_amount <= 0:
        return fail(
            ErrorCode.INVALID_AMOUNT, src,
            field="funding_amount", actual_value=str(funding_amount),
        )

    ceiling = obligation.max_principal
    if ctx.config.enforce_ltv:
        match require_supported_asset(ctx, cash_mint, src):
            case Err() as e:
                return e
            case Ok(asset_config):
                pass
        match max_principal(obligation.booking_value, asset_config.ltv_bps):
            case Err() as e:
                return e
            case Ok(ceiling):
                pass
        if funding_amount > ceiling:
            return fail(
                ErrorCode.FUNDING_EXCEEDS_LTV, src, f"max {ceiling}",
                field="funding_amount", actual_value=str(funding_amount),
            )

    match load_pool_vault(ctx, src):
        case Err() as e:
            return e
        case Ok((pool_address, pool)):
            pass
    match debit_liquidity(pool, funding_amount, src):
        case Err():
            return fail(
                ErrorCode.INSUFFICIENT_LIQUIDITY, src,
                f"tracked {pool.total_liquidity_tracked}, requested {funding_amount}",
                state=str(pool.total_liquidity_tracked),
            )
        case Ok(debited):
            pass

    for owner, mint in ((obligation_address, collateral_mint), (host, cash_mint)):
        match ctx.custody.ensure_account(owner, mint):
            case Err() as e:
                return e
            case Ok():
                pass
    match create_lock_and_disburse_transaction(
        host, obligation_address, pool_address, pool_signer(ctx, pool),
        collateral_mint, cash_mint, funding_amount,
        ctx.tx_id("deposit_collateral"), ctx.now,
    ):
        case Err() as e:
            return e
        case Ok(tx):
            pass
    match ctx.execute(tx):
        case Err() as e:
            return e
        case Ok():
            pass

    updated = replace(
        obligation, is_locked=True, borrowed_amount=funding_amount, max_principal=ceiling,
    )
    match ctx.save(obligation_address, updated):
        case Err() as e:
            return e
        case Ok():
            pass
    match ctx.save(pool_address, debited):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(f"Collateral locked: {obligation.booking_id} funded={funding_amount}")
    return Ok(updated)


def lock_cycle(
    ctx: ProgramContext, host: Address, collateral_mint: Address,
) -> Ok[BookingObligation] | Err[RentFlowError]:
    """Mark locked an obligation whose unit already sits in its custody."""
    src = f"{_SRC}.lock_cycle"
    match ctx.require_signer(host, src):
        case Err() as e:
            return e
        case Ok():
            pass
    match _load_obligation(ctx, collateral_mint, src):
        case Err() as e:
            return e
        case Ok((obligation_address, obligation)):
            pass
    if obligation.is_settled:
        return fail(ErrorCode.ALREADY_SETTLED, src, state=obligation.status.value)
    if obligation.host != host:
        return fail(ErrorCode.NOT_HUB_OWNER, src, actor=host.hex)
    if obligation.is_locked:
        return fail(ErrorCode.ALREADY_LOCKED, src, state=obligation.status.value)
    held = ctx.custody.balance_of(obligation_address, collateral_mint)
    if held != COLLATERAL_UNIT:
        return fail(
            ErrorCode.COLLATERAL_NOT_IN_CUSTODY, src,
            f"custody holds {held}", state=obligation.status.value,
        )

    updated = replace(obligation, is_locked=True)
    match ctx.save(obligation_address, updated):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(f"Asset Locked: {obligation.booking_id}")
    return Ok(updated)


# ---------------------------------------------------------------------------
# Settle
# ---------------------------------------------------------------------------


def settle_booking(
    ctx: ProgramContext, host: Address, collateral_mint: Address, cash_mint: Address,
) -> Ok[BookingObligation] | Err[RentFlowError]:
    """Host repays principal + yield (+ early penalty) and gets the unit back."""
    src = f"{_SRC}.settle_booking"
    match ctx.require_signer(host, src):
        case Err() as e:
            return e
        case Ok():
            pass
    match _load_obligation(ctx, collateral_mint, src):
        case Err() as e:
            return e
        case Ok((obligation_address, obligation)):
            pass
    if obligation.is_settled:
        return fail(ErrorCode.ALREADY_SETTLED, src, state=obligation.status.value)
    if obligation.host != host:
        return fail(ErrorCode.NOT_HUB_OWNER, src, actor=host.hex)
    if not obligation.is_locked:
        return fail(ErrorCode.NOT_LOCKED, src, state=obligation.status.value)

    match repayment_quote(
        obligation.booking_value, ctx.now, obligation.end_date,
        ctx.config.yield_bps, ctx.config.penalty_bps,
    ):
        case Err() as e:
            return e
        case Ok(quote):
            pass
    if quote.is_early:
        ctx.log.emit(f"Early Exit Detected. Penalty Applied: {quote.penalty}")

    match load_pool_vault(ctx, src):
        case Err() as e:
            return e
        case Ok((pool_address, pool)):
            pass
    match credit_liquidity(pool, quote.total, src):
        case Err() as e:
            return e
        case Ok(pool):
            pass

    match ctx.custody.ensure_account(pool_address, cash_mint):
        case Err() as e:
            return e
        case Ok():
            pass
    match create_repay_and_release_transaction(
        host, obligation_address, _obligation_signer(ctx, obligation), pool_address,
        collateral_mint, cash_mint, quote.total,
        ctx.tx_id("settle_booking"), ctx.now,
    ):
        case Err() as e:
            return e
        case Ok(tx):
            pass
    match ctx.execute(tx):
        case Err() as e:
            return e
        case Ok():
            pass

    position_address, _ = ctx.derive(position_seeds(obligation.investor))
    if ctx.exists(position_address):
        match ctx.load(position_address, LiquidityPosition, src):
            case Err() as e:
                return e
            case Ok(position):
                pass
        match tier_profit(obligation.booking_value, obligation.tier).bind(
            lambda profit: checked_add(position.realized_profit, profit, src),
        ):
            case Err() as e:
                return e
            case Ok(realized):
                pass
        match ctx.save(position_address, replace(position, realized_profit=realized)):
            case Err() as e:
                return e
            case Ok():
                pass

    updated = replace(obligation, is_settled=True, is_locked=False)
    match ctx.save(obligation_address, updated):
        case Err() as e:
            return e
        case Ok():
            pass
    match ctx.save(pool_address, pool):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(f"Booking settled: {obligation.booking_id} repaid={quote.total}")
    return Ok(updated)


# ---------------------------------------------------------------------------
# Liquidate
# ---------------------------------------------------------------------------


def liquidate_default(
    ctx: ProgramContext, liquidator: Address, collateral_mint: Address,
) -> Ok[BookingObligation] | Err[RentFlowError]:
    """Seize the collateral unit into the pool once the grace period has passed."""
    src = f"{_SRC}.liquidate_default"
    match ctx.require_signer(liquidator, src):
        case Err() as e:
            return e
        case Ok():
            pass
    match _load_obligation(ctx, collateral_mint, src):
        case Err() as e:
            return e
        case Ok((obligation_address, obligation)):
            pass
    if obligation.is_settled:
        return fail(ErrorCode.ALREADY_SETTLED, src, state=obligation.status.value)
    match liquidation_threshold(obligation.end_date, ctx.config.grace_period_seconds):
        case Err() as e:
            return e
        case Ok(threshold):
            pass
    if ctx.now <= threshold:
        return fail(
            ErrorCode.GRACE_PERIOD_NOT_OVER, src,
            f"liquidatable after {threshold}", state=obligation.status.value,
        )
    if not obligation.is_locked:
        return fail(ErrorCode.NOT_LOCKED, src, state=obligation.status.value)

    match load_pool_vault(ctx, src):
        case Err() as e:
            return e
        case Ok((pool_address, _)):
            pass
    match ctx.custody.ensure_account(pool_address, collateral_mint):
        case Err() as e:
            return e
        case Ok():
            pass
    match create_seizure_transaction(
        obligation_address, _obligation_signer(ctx, obligation), pool_address,
        collateral_mint, ctx.tx_id("liquidate_default"), ctx.now,
    ):
        case Err() as e:
            return e
        case Ok(tx):
            pass
    match ctx.execute(tx):
        case Err() as e:
            return e
        case Ok():
            pass

    updated = replace(obligation, is_settled=True, is_defaulted=True, is_locked=False)
    match ctx.save(obligation_address, updated):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit("Liquidation Complete: Asset Seized for Investors.")
    return Ok(updated)


# ---------------------------------------------------------------------------
# Withdraw
# ---------------------------------------------------------------------------


def withdraw_collateral(
    ctx: ProgramContext, host: Address, collateral_mint: Address,
) -> Ok[BookingObligation] | Err[RentFlowError]:
    """Close a settled, unlocked obligation. Returns the deleted record."""
    src = f"{_SRC}.withdraw_collateral"
    match ctx.require_signer(host, src):
        case Err() as e:
            return e
        case Ok():
            pass
    match _load_obligation(ctx, collateral_mint, src):
        case Err() as e:
            return e
        case Ok((obligation_address, obligation)):
            pass
    if not obligation.is_settled:
        return fail(ErrorCode.NOT_YET_SETTLED, src, state=obligation.status.value)
    if obligation.is_locked:
        return fail(ErrorCode.OBLIGATION_STILL_LOCKED, src, state=obligation.status.value)
    if obligation.is_defaulted and not ctx.config.allow_defaulted_withdrawal:
        return fail(ErrorCode.OBLIGATION_DEFAULTED, src, state=obligation.status.value)
    if obligation.host != host:
        return fail(ErrorCode.NOT_AUTHORIZED_OWNER, src, actor=host.hex)

    signer = _obligation_signer(ctx, obligation)
    match ctx.custody.ensure_account(obligation_address, collateral_mint):
        case Err() as e:
            return e
        case Ok(vault):
            pass
    residual = ctx.custody.balance(vault.address)
    if residual > 0:
        match ctx.custody.ensure_account(host, collateral_mint):
            case Err() as e:
                return e
            case Ok():
                pass
        match create_collateral_return_transaction(
            obligation_address, signer, host, collateral_mint, residual,
            ctx.tx_id("withdraw_collateral"), ctx.now,
        ):
            case Err() as e:
                return e
            case Ok(tx):
                pass
        match ctx.execute(tx):
            case Err() as e:
                return e
            case Ok():
                pass
    match ctx.custody.close_account(
        vault.address, signer, ctx.request.signers, ctx.program_id,
    ):
        case Err() as e:
            return e
        case Ok():
            pass

    match ctx.delete(obligation_address):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit("Asset Withdrawn: Collateral returned to Host.")
    return Ok(obligation)

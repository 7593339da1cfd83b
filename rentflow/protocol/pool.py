"""Liquidity pool accounting: the PoolVault aggregate and investor positions.

The PoolVault is passed explicitly to every operation that touches
liquidity, and total_liquidity_tracked only changes through
credit_liquidity / debit_liquidity, which fail closed on u64 overflow
or underflow.

Withdrawal order matters: the tracked total is debited before any cash
leaves the pool, so an underflow rejects the request with no transfer.
"""

from __future__ import annotations

from dataclasses import replace

from rentflow.core.checked_math import checked_add, checked_sub
from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.identifiers import DerivedSigner
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.ledger.custody import (
    create_liquidity_deposit_transaction,
    create_liquidity_payout_transaction,
)
from rentflow.protocol.context import ProgramContext
from rentflow.protocol.state import (
    InvestmentTerm,
    LiquidityPosition,
    PoolVault,
    SupportedAssetConfig,
    pool_vault_seeds,
    position_seeds,
    supported_asset_seeds,
)

_SRC = "protocol.pool"

# ---------------------------------------------------------------------------
# PoolVault helpers
# ---------------------------------------------------------------------------


def load_pool_vault(
    ctx: ProgramContext, source: str,
) -> Ok[tuple[Address, PoolVault]] | Err[RentFlowError]:
    address, _ = ctx.derive(pool_vault_seeds())
    return ctx.load(address, PoolVault, source).map(lambda pool: (address, pool))


def credit_liquidity(
    pool: PoolVault, amount: int, source: str,
) -> Ok[PoolVault] | Err[RentFlowError]:
    return checked_add(pool.total_liquidity_tracked, amount, source).map(
        lambda total: replace(pool, total_liquidity_tracked=total),
    )


def debit_liquidity(
    pool: PoolVault, amount: int, source: str,
) -> Ok[PoolVault] | Err[RentFlowError]:
    return checked_sub(pool.total_liquidity_tracked, amount, source).map(
        lambda total: replace(pool, total_liquidity_tracked=total),
    )


def pool_signer(ctx: ProgramContext, pool: PoolVault) -> DerivedSigner:
    return ctx.signer_for(pool_vault_seeds(), pool.bump)


def require_supported_asset(
    ctx: ProgramContext, mint: Address, source: str,
) -> Ok[SupportedAssetConfig] | Err[RentFlowError]:
    """Active SupportedAssetConfig for mint, else AssetNotSupported."""
    address, _ = ctx.derive(supported_asset_seeds(mint))
    if not ctx.exists(address):
        return fail(ErrorCode.ASSET_NOT_SUPPORTED, source, str(mint), field="cash_mint")
    match ctx.load(address, SupportedAssetConfig, source):
        case Err() as e:
            return e
        case Ok(config):
            pass
    if not config.is_active:
        return fail(
            ErrorCode.ASSET_NOT_SUPPORTED, source, f"{mint} inactive", field="cash_mint",
        )
    return Ok(config)


# ---------------------------------------------------------------------------
# Deposit
# ---------------------------------------------------------------------------


def deposit_liquidity(
    ctx: ProgramContext,
    investor: Address,
    cash_mint: Address,
    amount: int,
    term: InvestmentTerm,
) -> Ok[LiquidityPosition] | Err[RentFlowError]:
    """Fund the pool and open or top up the investor's position."""
    src = f"{_SRC}.deposit_liquidity"
    match ctx.require_signer(investor, src):
        case Err() as e:
            return e
        case Ok():
            pass
    if amount <= 0:
        return fail(ErrorCode.INVALID_AMOUNT, src, field="amount", actual_value=str(amount))
    match require_supported_asset(ctx, cash_mint, src):
        case Err() as e:
            return e
        case Ok():
            pass
    match load_pool_vault(ctx, src):
        case Err() as e:
            return e
        case Ok((pool_address, pool)):
            pass
    match credit_liquidity(pool, amount, src):
        case Err() as e:
            return e
        case Ok(pool):
            pass

    position_address, position_bump = ctx.derive(position_seeds(investor))
    match term.unlock_after(ctx.now, src):
        case Err() as e:
            return e
        case Ok(unlock_ts):
            pass
    if ctx.exists(position_address):
        match ctx.load(position_address, LiquidityPosition, src):
            case Err() as e:
                return e
            case Ok(existing):
                pass
        match checked_add(existing.principal, amount, src):
            case Err() as e:
                return e
            case Ok(principal):
                pass
        position = replace(
            existing,
            principal=principal,
            unlock_ts=max(existing.unlock_ts, unlock_ts),
            term=term,
        )
        persist = ctx.save
    else:
        position = LiquidityPosition(
            owner=investor,
            principal=amount,
            realized_profit=0,
            unlock_ts=unlock_ts,
            term=term,
            bump=position_bump,
        )
        persist = ctx.create

    match ctx.custody.ensure_account(pool_address, cash_mint):
        case Err() as e:
            return e
        case Ok():
            pass
    match create_liquidity_deposit_transaction(
        investor, pool_address, cash_mint, amount, ctx.tx_id("deposit_liquidity"), ctx.now,
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

    match ctx.save(pool_address, pool):
        case Err() as e:
            return e
        case Ok():
            pass
    match persist(position_address, position):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(
        f"Liquidity deposited: {amount} by {investor}, unlocks at {position.unlock_ts}"
    )
    return Ok(position)


# ---------------------------------------------------------------------------
# Withdrawal
# ---------------------------------------------------------------------------


def withdraw_liquidity(
    ctx: ProgramContext, investor: Address, cash_mint: Address,
) -> Ok[int] | Err[RentFlowError]:
    """Pay out principal + realized_profit and close the position.

    Returns the payout.
    """
    src = f"{_SRC}.withdraw_liquidity"
    match ctx.require_signer(investor, src):
        case Err() as e:
            return e
        case Ok():
            pass
    position_address, _ = ctx.derive(position_seeds(investor))
    match ctx.load(position_address, LiquidityPosition, src):
        case Err() as e:
            return e
        case Ok(position):
            pass
    if ctx.now < position.unlock_ts:
        return fail(
            ErrorCode.LIQUIDITY_LOCKED, src,
            f"unlocks at {position.unlock_ts}", state=str(position.unlock_ts),
        )
    match checked_add(position.principal, position.realized_profit, src):
        case Err() as e:
            return e
        case Ok(payout):
            pass

    match load_pool_vault(ctx, src):
        case Err() as e:
            return e
        case Ok((pool_address, pool)):
            pass
    match debit_liquidity(pool, payout, src):
        case Err() as e:
            return e
        case Ok(pool):
            pass
    match ctx.save(pool_address, pool):
        case Err() as e:
            return e
        case Ok():
            pass

    match ctx.custody.ensure_account(investor, cash_mint):
        case Err() as e:
            return e
        case Ok():
            pass
    match create_liquidity_payout_transaction(
        pool_address, pool_signer(ctx, pool), investor, cash_mint, payout,
        ctx.tx_id("withdraw_liquidity"), ctx.now,
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

    match ctx.delete(position_address):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(f"Liquidity withdrawn: {payout} to {investor}")
    return Ok(payout)

"""Setup instructions: integrators, the pool vault, supported cash assets."""

from __future__ import annotations

from dataclasses import replace

from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.protocol.context import ProgramContext
from rentflow.protocol.state import (
    IntegratorAuthorization,
    PoolVault,
    SupportedAssetConfig,
    integrator_seeds,
    pool_vault_seeds,
    supported_asset_seeds,
)

_SRC = "protocol.admin"


def initialize(
    ctx: ProgramContext, authority: Address, integrator_wallet: Address,
) -> Ok[IntegratorAuthorization] | Err[RentFlowError]:
    """Admin-only: authorize an integrator; create the pool vault on first use."""
    src = f"{_SRC}.initialize"
    match ctx.require_signer(authority, src):
        case Err() as e:
            return e
        case Ok():
            pass
    if authority != ctx.config.admin:
        return fail(ErrorCode.UNAUTHORIZED, src, actor=authority.hex)
    ctx.log.emit("Starting initialization...")

    address, bump = ctx.derive(integrator_seeds(integrator_wallet))
    integrator = IntegratorAuthorization(authority=authority, is_active=True, bump=bump)
    match ctx.create(address, integrator):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(f"Config set. Authority: {authority}")

    pool_address, pool_bump = ctx.derive(pool_vault_seeds())
    if not ctx.exists(pool_address):
        match ctx.create(pool_address, PoolVault(total_liquidity_tracked=0, bump=pool_bump)):
            case Err() as e:
                return e
            case Ok():
                pass
        ctx.log.emit(f"Pool Vault set. Bump: {pool_bump}")

    ctx.log.emit("Integrator Config Initialized Success")
    return Ok(integrator)


def deactivate_integrator(
    ctx: ProgramContext, authority: Address, integrator_wallet: Address,
) -> Ok[IntegratorAuthorization] | Err[RentFlowError]:
    """Stop an integrator from minting. Existing obligations are unaffected."""
    src = f"{_SRC}.deactivate_integrator"
    match ctx.require_signer(authority, src):
        case Err() as e:
            return e
        case Ok():
            pass
    address, _ = ctx.derive(integrator_seeds(integrator_wallet))
    match ctx.load(address, IntegratorAuthorization, src):
        case Err() as e:
            return e
        case Ok(integrator):
            pass
    if integrator.authority != authority:
        return fail(ErrorCode.NOT_HUB_OWNER, src, actor=authority.hex)

    updated = replace(integrator, is_active=False)
    match ctx.save(address, updated):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(f"Integrator deactivated: {integrator_wallet}")
    return Ok(updated)


def add_supported_asset(
    ctx: ProgramContext, admin: Address, mint: Address, ltv_bps: int,
) -> Ok[SupportedAssetConfig] | Err[RentFlowError]:
    """Admin-only: accept mint as pool cash and open the pool's vault for it."""
    src = f"{_SRC}.add_supported_asset"
    match ctx.require_signer(admin, src):
        case Err() as e:
            return e
        case Ok():
            pass
    if admin != ctx.config.admin:
        return fail(ErrorCode.UNAUTHORIZED, src, actor=admin.hex)
    if not 0 <= ltv_bps <= 0xFFFF:
        return fail(
            ErrorCode.INVALID_AMOUNT, src, "ltv_bps must fit u16",
            field="ltv_bps", actual_value=str(ltv_bps),
        )

    address, bump = ctx.derive(supported_asset_seeds(mint))
    config = SupportedAssetConfig(mint=mint, ltv_bps=ltv_bps, is_active=True, bump=bump)
    match ctx.create(address, config):
        case Err() as e:
            return e
        case Ok():
            pass

    pool_address, _ = ctx.derive(pool_vault_seeds())
    match ctx.custody.ensure_account(pool_address, mint):
        case Err() as e:
            return e
        case Ok():
            pass
    ctx.log.emit(f"Supported asset added: {mint} ltv_bps={ltv_bps}")
    return Ok(config)

"""Protocol records, their derivation seeds, and their persisted layout.

Every record is stored as discriminator(<RecordName>) followed by its
fields in a fixed order (see core/serialization.py). Records are
immutable; handlers persist an updated copy made with dataclasses.replace.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, TypeAlias, TypeVar, Union, final

from dateutil.relativedelta import relativedelta

from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.result import Err, Ok
from rentflow.core.serialization import (
    DecodeError,
    Reader,
    Writer,
    discriminator,
    split_discriminator,
)
from rentflow.core.types import Address, UtcDatetime

# ---------------------------------------------------------------------------
# Seeds
# ---------------------------------------------------------------------------

INTEGRATOR_SEED = b"integrator"
OBLIGATION_SEED = b"obligation"
SUPPORTED_ASSET_SEED = b"vault"
POSITION_SEED = b"position"
POOL_VAULT_SEED = b"pool_vault"


def integrator_seeds(wallet: Address) -> tuple[bytes, ...]:
    return (INTEGRATOR_SEED, wallet.value)


def obligation_seeds(collateral_mint: Address) -> tuple[bytes, ...]:
    return (OBLIGATION_SEED, collateral_mint.value)


def supported_asset_seeds(mint: Address) -> tuple[bytes, ...]:
    return (SUPPORTED_ASSET_SEED, mint.value)


def position_seeds(investor: Address) -> tuple[bytes, ...]:
    return (POSITION_SEED, investor.value)


def pool_vault_seeds() -> tuple[bytes, ...]:
    return (POOL_VAULT_SEED,)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProfitTier(Enum):
    """Investor profit bucket chosen at mint. Value is the tier index."""

    ONE_MONTH = 0
    THREE_MONTH = 1
    SIX_MONTH = 2
    TWELVE_MONTH = 3

    @property
    def rate_bps(self) -> int:
        return _TIER_RATE_BPS[self]

    @staticmethod
    def from_index(index: int, source: str) -> Ok[ProfitTier] | Err[RentFlowError]:
        try:
            return Ok(ProfitTier(index))
        except ValueError:
            return fail(
                ErrorCode.INVALID_TIER, source, f"tier index {index}",
                field="tier_index", actual_value=str(index),
            )


_TIER_RATE_BPS: dict[ProfitTier, int] = {
    ProfitTier.ONE_MONTH: 250,
    ProfitTier.THREE_MONTH: 350,
    ProfitTier.SIX_MONTH: 450,
    ProfitTier.TWELVE_MONTH: 650,
}


class InvestmentTerm(Enum):
    """Lock-up chosen at liquidity deposit, in calendar months."""

    ONE_MONTH = 0
    THREE_MONTHS = 1
    SIX_MONTHS = 2
    TWELVE_MONTHS = 3

    @property
    def months(self) -> int:
        return _TERM_MONTHS[self]

    def unlock_after(self, now: int, source: str) -> Ok[int] | Err[RentFlowError]:
        """Unix time `months` calendar months after now (end-of-month clamped).

        Times outside the datetime range fail with MathOverflow.
        """
        try:
            start = UtcDatetime.from_unix(now).value
            return Ok(int((start + relativedelta(months=self.months)).timestamp()))
        except (OverflowError, OSError, ValueError) as e:
            return fail(
                ErrorCode.MATH_OVERFLOW, source, f"{self.name} after {now}: {e}",
                operation="add_months",
            )


_TERM_MONTHS: dict[InvestmentTerm, int] = {
    InvestmentTerm.ONE_MONTH: 1,
    InvestmentTerm.THREE_MONTHS: 3,
    InvestmentTerm.SIX_MONTHS: 6,
    InvestmentTerm.TWELVE_MONTHS: 12,
}


class ObligationStatus(Enum):
    MINTED = "Minted"
    LOCKED = "Locked"
    SETTLED_REPAID = "SettledRepaid"
    SETTLED_DEFAULTED = "SettledDefaulted"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class IntegratorAuthorization:
    """Booking platform allowed to mint obligations while is_active."""

    RECORD_NAME: ClassVar[str] = "IntegratorAuthorization"

    authority: Address
    is_active: bool
    bump: int

    def encode(self, w: Writer) -> None:
        w.u8(self.bump).flag(self.is_active).address(self.authority)

    @staticmethod
    def decode(r: Reader) -> IntegratorAuthorization:
        bump = r.u8()
        is_active = r.flag()
        return IntegratorAuthorization(authority=r.address(), is_active=is_active, bump=bump)


@final
@dataclass(frozen=True, slots=True)
class SupportedAssetConfig:
    """Cash asset the pool lends, with its loan-to-value ceiling."""

    RECORD_NAME: ClassVar[str] = "SupportedAssetConfig"

    mint: Address
    ltv_bps: int
    is_active: bool
    bump: int

    def __post_init__(self) -> None:
        if not 0 <= self.ltv_bps <= 0xFFFF:
            raise TypeError(f"ltv_bps must fit u16, got {self.ltv_bps}")

    def encode(self, w: Writer) -> None:
        w.address(self.mint).u16(self.ltv_bps).flag(self.is_active).u8(self.bump)

    @staticmethod
    def decode(r: Reader) -> SupportedAssetConfig:
        return SupportedAssetConfig(
            mint=r.address(), ltv_bps=r.u16(), is_active=r.flag(), bump=r.u8(),
        )


@final
@dataclass(frozen=True, slots=True)
class BookingObligation:
    """One booking, its collateral unit, and the cash advanced against it."""

    RECORD_NAME: ClassVar[str] = "BookingObligation"

    booking_id: str
    booking_value: int
    max_principal: int
    borrowed_amount: int
    start_date: int
    end_date: int
    host: Address
    integrator: Address
    investor: Address
    collateral_mint: Address
    tier: ProfitTier
    is_locked: bool
    is_settled: bool
    is_defaulted: bool
    bump: int

    @property
    def status(self) -> ObligationStatus:
        if self.is_settled:
            if self.is_defaulted:
                return ObligationStatus.SETTLED_DEFAULTED
            return ObligationStatus.SETTLED_REPAID
        if self.is_locked:
            return ObligationStatus.LOCKED
        return ObligationStatus.MINTED

    def encode(self, w: Writer) -> None:
        (
            w.string(self.booking_id)
            .u64(self.booking_value)
            .u64(self.max_principal)
            .u64(self.borrowed_amount)
            .i64(self.start_date)
            .i64(self.end_date)
            .address(self.host)
            .address(self.integrator)
            .address(self.investor)
            .address(self.collateral_mint)
            .flag(self.is_locked)
            .flag(self.is_settled)
            .flag(self.is_defaulted)
            .u8(self.tier.value)
            .u8(self.bump)
        )

    @staticmethod
    def decode(r: Reader) -> BookingObligation:
        booking_id = r.string()
        booking_value = r.u64()
        max_principal = r.u64()
        borrowed_amount = r.u64()
        start_date = r.i64()
        end_date = r.i64()
        host = r.address()
        integrator = r.address()
        investor = r.address()
        collateral_mint = r.address()
        is_locked = r.flag()
        is_settled = r.flag()
        is_defaulted = r.flag()
        tier_index = r.u8()
        try:
            tier = ProfitTier(tier_index)
        except ValueError as e:
            raise DecodeError(f"invalid tier byte {tier_index}") from e
        return BookingObligation(
            booking_id=booking_id,
            booking_value=booking_value,
            max_principal=max_principal,
            borrowed_amount=borrowed_amount,
            start_date=start_date,
            end_date=end_date,
            host=host,
            integrator=integrator,
            investor=investor,
            collateral_mint=collateral_mint,
            tier=tier,
            is_locked=is_locked,
            is_settled=is_settled,
            is_defaulted=is_defaulted,
            bump=r.u8(),
        )


@final
@dataclass(frozen=True, slots=True)
class LiquidityPosition:
    """One investor's share of the pool."""

    RECORD_NAME: ClassVar[str] = "LiquidityPosition"

    owner: Address
    principal: int
    realized_profit: int
    unlock_ts: int
    term: InvestmentTerm
    bump: int

    def encode(self, w: Writer) -> None:
        (
            w.address(self.owner)
            .u64(self.principal)
            .u64(self.realized_profit)
            .i64(self.unlock_ts)
            .u8(self.term.value)
            .u8(self.bump)
        )

    @staticmethod
    def decode(r: Reader) -> LiquidityPosition:
        owner = r.address()
        principal = r.u64()
        realized_profit = r.u64()
        unlock_ts = r.i64()
        term_index = r.u8()
        try:
            term = InvestmentTerm(term_index)
        except ValueError as e:
            raise DecodeError(f"invalid term byte {term_index}") from e
        return LiquidityPosition(
            owner=owner,
            principal=principal,
            realized_profit=realized_profit,
            unlock_ts=unlock_ts,
            term=term,
            bump=r.u8(),
        )


@final
@dataclass(frozen=True, slots=True)
class PoolVault:
    """Singleton pool aggregate. Owns cash custody and seized collateral."""

    RECORD_NAME: ClassVar[str] = "PoolVault"

    total_liquidity_tracked: int
    bump: int

    def encode(self, w: Writer) -> None:
        w.u64(self.total_liquidity_tracked).u8(self.bump)

    @staticmethod
    def decode(r: Reader) -> PoolVault:
        return PoolVault(total_liquidity_tracked=r.u64(), bump=r.u8())


Record: TypeAlias = Union[
    IntegratorAuthorization,
    SupportedAssetConfig,
    BookingObligation,
    LiquidityPosition,
    PoolVault,
]

R = TypeVar("R", bound=Record)

# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


def encode_record(record: Record) -> bytes:
    w = Writer().raw(discriminator(record.RECORD_NAME))
    record.encode(w)
    return w.to_bytes()


def decode_record(
    data: bytes, record_type: type[R], source: str,
) -> Ok[R] | Err[RentFlowError]:
    """Decode bytes as record_type, checking the discriminator first."""
    match split_discriminator(data):
        case Err(msg):
            return fail(
                ErrorCode.ACCOUNT_DISCRIMINATOR_MISMATCH, source, msg, operation="decode",
            )
        case Ok((tag, body)):
            pass
    if tag != discriminator(record_type.RECORD_NAME):
        return fail(
            ErrorCode.ACCOUNT_DISCRIMINATOR_MISMATCH, source,
            f"expected {record_type.RECORD_NAME}", operation="decode",
        )
    r = Reader(body)
    try:
        record = record_type.decode(r)
    except (DecodeError, TypeError) as e:
        return fail(ErrorCode.ACCOUNT_DATA_INVALID, source, str(e), operation="decode")
    if r.remaining:
        return fail(
            ErrorCode.ACCOUNT_DATA_INVALID, source,
            f"{r.remaining} trailing bytes", operation="decode",
        )
    return Ok(record)

"""Error value hierarchy: no instruction handler raises exceptions.

Every error is a frozen dataclass value carrying a stable code from
ErrorCode. Base class RentFlowError, seven @final category subclasses:

    Authorization  inactive integrator, wrong owner, wrong admin
    Lifecycle      already locked/settled, not yet settled, grace period
    Proof          instruction introspection and oracle signature checks
    Math           checked u64/i64 overflow and underflow
    Input          invalid tier, offsets, booking fields
    Custody        failures reported by the custody transfer gateway
    Persistence    record store failures (missing / mistyped records)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import final

from rentflow.core.result import Err
from rentflow.core.types import UtcDatetime


class ErrorCode(Enum):
    """Stable error identifiers surfaced verbatim to callers."""

    # Authorization
    INTEGRATOR_NOT_AUTHORIZED = "IntegratorNotAuthorized"
    NOT_HUB_OWNER = "NotHubOwner"
    NOT_AUTHORIZED_OWNER = "NotAuthorizedOwner"
    UNAUTHORIZED = "Unauthorized"
    MISSING_SIGNATURE = "MissingSignature"
    # Lifecycle
    ALREADY_LOCKED = "AlreadyLocked"
    NOT_LOCKED = "NotLocked"
    ALREADY_SETTLED = "AlreadySettled"
    NOT_YET_SETTLED = "NotYetSettled"
    OBLIGATION_STILL_LOCKED = "ObligationStillLocked"
    OBLIGATION_DEFAULTED = "ObligationDefaulted"
    LIQUIDITY_LOCKED = "LiquidityLocked"
    GRACE_PERIOD_NOT_OVER = "GracePeriodNotOver"
    INSUFFICIENT_LIQUIDITY = "InsufficientLiquidity"
    COLLATERAL_NOT_IN_CUSTODY = "CollateralNotInCustody"
    # Proof
    INVALID_ORACLE_KEY = "InvalidOracleKey"
    ORACLE_MESSAGE_MISMATCH = "OracleMessageMismatch"
    INVALID_INSTRUCTION_INDEX = "InvalidInstructionIndex"
    INVALID_PROGRAM_ID = "InvalidProgramId"
    # Math
    MATH_OVERFLOW = "MathOverflow"
    # Input
    INVALID_OFFSET = "InvalidOffset"
    INVALID_TIER = "InvalidTier"
    INVALID_BOOKING_ID = "InvalidBookingId"
    INVALID_BOOKING_WINDOW = "InvalidBookingWindow"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_TERM = "InvalidTerm"
    ASSET_NOT_SUPPORTED = "AssetNotSupported"
    FUNDING_EXCEEDS_LTV = "FundingExceedsLtv"
    INVALID_ADDRESS = "InvalidAddress"
    # Custody
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    UNKNOWN_CUSTODY_ACCOUNT = "UnknownCustodyAccount"
    CUSTODY_ACCOUNT_EXISTS = "CustodyAccountExists"
    UNAUTHORIZED_TRANSFER = "UnauthorizedTransfer"
    ASSET_MISMATCH = "AssetMismatch"
    UNKNOWN_ASSET = "UnknownAsset"
    ASSET_EXISTS = "AssetExists"
    CUSTODY_ACCOUNT_NOT_EMPTY = "CustodyAccountNotEmpty"
    # Persistence
    ACCOUNT_NOT_INITIALIZED = "AccountNotInitialized"
    ACCOUNT_ALREADY_INITIALIZED = "AccountAlreadyInitialized"
    ACCOUNT_DISCRIMINATOR_MISMATCH = "AccountDiscriminatorMismatch"
    ACCOUNT_DATA_INVALID = "AccountDataInvalid"


MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INTEGRATOR_NOT_AUTHORIZED:
        "The integrator is not authorized or is currently inactive.",
    ErrorCode.NOT_HUB_OWNER: "The signer is not the authorized owner of this booking hub.",
    ErrorCode.NOT_AUTHORIZED_OWNER: "The host is not the authorized owner of this obligation.",
    ErrorCode.UNAUTHORIZED: "The signer is not the protocol admin.",
    ErrorCode.MISSING_SIGNATURE: "A required signer did not sign the request.",
    ErrorCode.ALREADY_LOCKED: "The asset is already locked in a financial cycle.",
    ErrorCode.NOT_LOCKED: "The obligation has not been funded against its collateral.",
    ErrorCode.ALREADY_SETTLED: "Attempted to settle an already settled obligation.",
    ErrorCode.NOT_YET_SETTLED: "The obligation has not yet been settled.",
    ErrorCode.OBLIGATION_STILL_LOCKED: "The obligation is still locked.",
    ErrorCode.OBLIGATION_DEFAULTED:
        "The obligation was liquidated; its record is kept as evidence of default.",
    ErrorCode.LIQUIDITY_LOCKED: "Liquidity is currently locked.",
    ErrorCode.GRACE_PERIOD_NOT_OVER: "The grace period has not yet ended.",
    ErrorCode.INSUFFICIENT_LIQUIDITY: "The pool does not track enough liquidity.",
    ErrorCode.COLLATERAL_NOT_IN_CUSTODY:
        "The collateral unit is not held by the obligation custody account.",
    ErrorCode.INVALID_ORACLE_KEY:
        "The provided oracle public key does not match the protocol config.",
    ErrorCode.ORACLE_MESSAGE_MISMATCH:
        "The reconstructed message does not match the oracle's signature.",
    ErrorCode.INVALID_INSTRUCTION_INDEX:
        "The instruction index for introspection is out of bounds.",
    ErrorCode.INVALID_PROGRAM_ID:
        "The expected program ID was not found in the instruction sysvar.",
    ErrorCode.MATH_OVERFLOW: "A mathematical operation resulted in an overflow or underflow.",
    ErrorCode.INVALID_OFFSET: "The account data offset is invalid for the requested operation.",
    ErrorCode.INVALID_TIER: "The selected profit tier is invalid.",
    ErrorCode.INVALID_BOOKING_ID: "The booking id must be 1 to 32 characters.",
    ErrorCode.INVALID_BOOKING_WINDOW: "The booking end date must be after its start date.",
    ErrorCode.INVALID_AMOUNT: "The amount must be greater than zero.",
    ErrorCode.INVALID_TERM: "The investment term is not one of the offered terms.",
    ErrorCode.ASSET_NOT_SUPPORTED: "The cash asset is not a supported, active asset.",
    ErrorCode.FUNDING_EXCEEDS_LTV: "The funding amount exceeds the loan-to-value ceiling.",
    ErrorCode.INVALID_ADDRESS: "An address is not 32 bytes of hex.",
    ErrorCode.INSUFFICIENT_FUNDS: "The source custody account has insufficient funds.",
    ErrorCode.UNKNOWN_CUSTODY_ACCOUNT: "The custody account does not exist.",
    ErrorCode.CUSTODY_ACCOUNT_EXISTS: "The custody account already exists.",
    ErrorCode.UNAUTHORIZED_TRANSFER: "The transfer authority does not own the source account.",
    ErrorCode.ASSET_MISMATCH: "The custody account holds a different asset.",
    ErrorCode.UNKNOWN_ASSET: "The asset has not been created.",
    ErrorCode.ASSET_EXISTS: "The asset already exists.",
    ErrorCode.CUSTODY_ACCOUNT_NOT_EMPTY: "The custody account still holds a balance.",
    ErrorCode.ACCOUNT_NOT_INITIALIZED: "The account has not been initialized.",
    ErrorCode.ACCOUNT_ALREADY_INITIALIZED: "The account is already initialized.",
    ErrorCode.ACCOUNT_DISCRIMINATOR_MISMATCH:
        "The account discriminator does not match the expected record type.",
    ErrorCode.ACCOUNT_DATA_INVALID: "The account data could not be decoded.",
}


@dataclass(frozen=True, slots=True)
class RentFlowError:
    """Base error value. NOT @final, has subclasses."""

    message: str
    code: str
    timestamp: UtcDatetime
    source: str  # "module.function" that produced this error

    @property
    def error_code(self) -> ErrorCode:
        return ErrorCode(self.code)

    def with_context(self, context: str) -> RentFlowError:
        """Return a copy with context prepended to message."""
        return replace(self, message=f"{context}: {self.message}")

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "code": self.code,
            "timestamp": self.timestamp.value.isoformat(),
            "source": self.source,
        }


@final
@dataclass(frozen=True, slots=True)
class AuthorizationError(RentFlowError):
    """The caller is not allowed to perform the instruction."""

    actor: str = ""

    def to_dict(self) -> dict[str, object]:
        return {**RentFlowError.to_dict(self), "actor": self.actor}


@final
@dataclass(frozen=True, slots=True)
class LifecycleError(RentFlowError):
    """The obligation or position is in the wrong state for the transition."""

    state: str = ""

    def to_dict(self) -> dict[str, object]:
        return {**RentFlowError.to_dict(self), "state": self.state}


@final
@dataclass(frozen=True, slots=True)
class ProofError(RentFlowError):
    """The booking attestation could not be verified."""

    check: str = ""

    def to_dict(self) -> dict[str, object]:
        return {**RentFlowError.to_dict(self), "check": self.check}


@final
@dataclass(frozen=True, slots=True)
class MathError(RentFlowError):
    """Checked integer arithmetic left the representable range."""

    operation: str = ""

    def to_dict(self) -> dict[str, object]:
        return {**RentFlowError.to_dict(self), "operation": self.operation}


@final
@dataclass(frozen=True, slots=True)
class InputError(RentFlowError):
    """An instruction argument is malformed."""

    field: str = ""
    actual_value: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            **RentFlowError.to_dict(self),
            "field": self.field,
            "actual_value": self.actual_value,
        }


@final
@dataclass(frozen=True, slots=True)
class CustodyError(RentFlowError):
    """The custody transfer gateway rejected a transfer."""

    account: str = ""

    def to_dict(self) -> dict[str, object]:
        return {**RentFlowError.to_dict(self), "account": self.account}


@final
@dataclass(frozen=True, slots=True)
class PersistenceError(RentFlowError):
    """Record store operation failed."""

    operation: str = ""

    def to_dict(self) -> dict[str, object]:
        return {**RentFlowError.to_dict(self), "operation": self.operation}


_CATEGORY: dict[ErrorCode, type[RentFlowError]] = {
    **dict.fromkeys((
        ErrorCode.INTEGRATOR_NOT_AUTHORIZED, ErrorCode.NOT_HUB_OWNER,
        ErrorCode.NOT_AUTHORIZED_OWNER, ErrorCode.UNAUTHORIZED,
        ErrorCode.MISSING_SIGNATURE,
    ), AuthorizationError),
    **dict.fromkeys((
        ErrorCode.ALREADY_LOCKED, ErrorCode.NOT_LOCKED,
        ErrorCode.ALREADY_SETTLED, ErrorCode.NOT_YET_SETTLED,
        ErrorCode.OBLIGATION_STILL_LOCKED, ErrorCode.OBLIGATION_DEFAULTED,
        ErrorCode.LIQUIDITY_LOCKED,
        ErrorCode.GRACE_PERIOD_NOT_OVER, ErrorCode.INSUFFICIENT_LIQUIDITY,
        ErrorCode.COLLATERAL_NOT_IN_CUSTODY,
    ), LifecycleError),
    **dict.fromkeys((
        ErrorCode.INVALID_ORACLE_KEY, ErrorCode.ORACLE_MESSAGE_MISMATCH,
        ErrorCode.INVALID_INSTRUCTION_INDEX, ErrorCode.INVALID_PROGRAM_ID,
    ), ProofError),
    ErrorCode.MATH_OVERFLOW: MathError,
    **dict.fromkeys((
        ErrorCode.INVALID_OFFSET, ErrorCode.INVALID_TIER,
        ErrorCode.INVALID_BOOKING_ID, ErrorCode.INVALID_BOOKING_WINDOW,
        ErrorCode.INVALID_AMOUNT, ErrorCode.INVALID_TERM,
        ErrorCode.ASSET_NOT_SUPPORTED, ErrorCode.FUNDING_EXCEEDS_LTV,
        ErrorCode.INVALID_ADDRESS,
    ), InputError),
    **dict.fromkeys((
        ErrorCode.INSUFFICIENT_FUNDS, ErrorCode.UNKNOWN_CUSTODY_ACCOUNT,
        ErrorCode.CUSTODY_ACCOUNT_EXISTS, ErrorCode.UNAUTHORIZED_TRANSFER,
        ErrorCode.ASSET_MISMATCH, ErrorCode.UNKNOWN_ASSET, ErrorCode.ASSET_EXISTS,
        ErrorCode.CUSTODY_ACCOUNT_NOT_EMPTY,
    ), CustodyError),
    **dict.fromkeys((
        ErrorCode.ACCOUNT_NOT_INITIALIZED, ErrorCode.ACCOUNT_ALREADY_INITIALIZED,
        ErrorCode.ACCOUNT_DISCRIMINATOR_MISMATCH, ErrorCode.ACCOUNT_DATA_INVALID,
    ), PersistenceError),
}


def category_of(code: ErrorCode) -> type[RentFlowError]:
    """The error subclass that carries a given code."""
    return _CATEGORY[code]


def make_error(
    code: ErrorCode, source: str, detail: str = "", **fields: str,
) -> RentFlowError:
    """Build the category error for code. detail is appended to the canonical message."""
    message = MESSAGES[code] if not detail else f"{MESSAGES[code]} ({detail})"
    return _CATEGORY[code](
        message=message,
        code=code.value,
        timestamp=UtcDatetime.now(),
        source=source,
        **fields,
    )


def fail(
    code: ErrorCode, source: str, detail: str = "", **fields: str,
) -> Err[RentFlowError]:
    """Err-wrapped make_error, the one-liner used by every handler."""
    return Err(make_error(code, source, detail, **fields))

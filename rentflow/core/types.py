"""Core types: UtcDatetime, Address, BookingId, and unix-time helpers.

Ledger time is signed 64-bit unix seconds (the request clock); UtcDatetime
is used for error timestamps and for calendar arithmetic at the edges.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import ClassVar, final

from rentflow.core.result import Err, Ok

ADDRESS_LENGTH = 32
BOOKING_ID_MAX_LEN = 32

SECONDS_PER_DAY = 24 * 60 * 60


@final
@dataclass(frozen=True, slots=True)
class UtcDatetime:
    """Timezone-aware UTC datetime. Naive datetimes are rejected."""

    value: datetime

    def __post_init__(self) -> None:
        if self.value.tzinfo is None:
            raise TypeError("UtcDatetime requires timezone-aware datetime, got naive")

    @staticmethod
    def parse(raw: datetime) -> Ok[UtcDatetime] | Err[str]:
        if raw.tzinfo is None:
            return Err("UtcDatetime requires timezone-aware datetime, got naive")
        return Ok(UtcDatetime(value=raw.astimezone(UTC)))

    @staticmethod
    def now() -> UtcDatetime:
        return UtcDatetime(value=datetime.now(tz=UTC))

    @staticmethod
    def from_unix(ts: int) -> UtcDatetime:
        return UtcDatetime(value=datetime.fromtimestamp(ts, tz=UTC))

    def to_unix(self) -> int:
        return int(self.value.timestamp())


@final
@dataclass(frozen=True, slots=True)
class Address:
    """32-byte identity of a wallet, asset, record, or custody account."""

    value: bytes

    ZERO: ClassVar[Address]  # Assigned after class definition

    def __post_init__(self) -> None:
        if not isinstance(self.value, bytes) or len(self.value) != ADDRESS_LENGTH:
            raise TypeError(
                f"Address requires {ADDRESS_LENGTH} bytes, got {self.value!r}"
            )

    @staticmethod
    def parse(raw: str) -> Ok[Address] | Err[str]:
        """Parse a 64-character hex string."""
        try:
            data = bytes.fromhex(raw)
        except ValueError as e:
            return Err(f"Address must be hex: {e}")
        if len(data) != ADDRESS_LENGTH:
            return Err(f"Address must be {ADDRESS_LENGTH} bytes, got {len(data)}")
        return Ok(Address(value=data))

    @staticmethod
    def from_seed(label: str) -> Address:
        """Deterministic address from a label. Wallet fixtures and demos."""
        return Address(value=hashlib.sha256(label.encode("utf-8")).digest())

    @property
    def hex(self) -> str:
        return self.value.hex()

    def __str__(self) -> str:
        return self.value.hex()[:16]


Address.ZERO = Address(value=bytes(ADDRESS_LENGTH))


@final
@dataclass(frozen=True, slots=True)
class BookingId:
    """Booking identifier: 1 to 32 characters."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or len(self.value) > BOOKING_ID_MAX_LEN:
            raise TypeError(
                f"BookingId requires 1..{BOOKING_ID_MAX_LEN} characters, got {self.value!r}"
            )

    @staticmethod
    def parse(raw: str) -> Ok[BookingId] | Err[str]:
        if not raw:
            return Err("BookingId requires non-empty string")
        if len(raw) > BOOKING_ID_MAX_LEN:
            return Err(f"BookingId longer than {BOOKING_ID_MAX_LEN} characters: {len(raw)}")
        return Ok(BookingId(value=raw))

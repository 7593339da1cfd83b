"""Booking proof and the verified attestation the lifecycle consumes.

BookingProof is the oracle's claim about one booking. Its canonical
serialization is the exact message the oracle signs; the verifier compares
the signed bytes against it. VerifiedAttestation can only come out of
verify_booking_proof and is the sole input the mint handler trusts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from rentflow.core.checked_math import is_i64, is_u64
from rentflow.core.result import Err, Ok
from rentflow.core.serialization import DecodeError, Reader, Writer, content_hash
from rentflow.core.types import Address


@final
@dataclass(frozen=True, slots=True)
class BookingProof:
    """Oracle-attested booking details. tier_index is validated at mint."""

    booking_id: str
    amount: int
    start_date: int
    end_date: int
    host: Address
    oracle_pubkey: Address
    tier_index: int
    investor: Address

    def __post_init__(self) -> None:
        if not is_u64(self.amount):
            raise TypeError(f"BookingProof.amount must be u64, got {self.amount!r}")
        if not (is_i64(self.start_date) and is_i64(self.end_date)):
            raise TypeError("BookingProof dates must be i64 unix seconds")
        if not 0 <= self.tier_index <= 0xFF:
            raise TypeError(f"BookingProof.tier_index must be u8, got {self.tier_index!r}")


def serialize_booking_proof(proof: BookingProof) -> bytes:
    """Canonical message bytes: the field order is part of the signed format."""
    return (
        Writer()
        .string(proof.booking_id)
        .u64(proof.amount)
        .i64(proof.start_date)
        .i64(proof.end_date)
        .address(proof.host)
        .address(proof.oracle_pubkey)
        .u8(proof.tier_index)
        .address(proof.investor)
        .to_bytes()
    )


def deserialize_booking_proof(data: bytes) -> Ok[BookingProof] | Err[str]:
    r = Reader(data)
    try:
        proof = BookingProof(
            booking_id=r.string(),
            amount=r.u64(),
            start_date=r.i64(),
            end_date=r.i64(),
            host=r.address(),
            oracle_pubkey=r.address(),
            tier_index=r.u8(),
            investor=r.address(),
        )
    except DecodeError as e:
        return Err(f"BookingProof: {e}")
    if r.remaining:
        return Err(f"BookingProof: {r.remaining} trailing bytes")
    return Ok(proof)


@final
@dataclass(frozen=True, slots=True)
class VerifiedAttestation:
    """A BookingProof whose oracle co-signature was found in the request."""

    proof: BookingProof
    verifier_instruction_index: int

    @property
    def message_hash(self) -> str:
        return content_hash(serialize_booking_proof(self.proof))

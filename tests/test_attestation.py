"""Tests for rentflow.oracle.attestation: BookingProof and its signed bytes."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rentflow.core.result import Err, Ok
from rentflow.core.serialization import Writer
from rentflow.core.types import Address
from rentflow.oracle.attestation import (
    BookingProof,
    VerifiedAttestation,
    deserialize_booking_proof,
    serialize_booking_proof,
)

_HOST = Address.from_seed("host")
_ORACLE = Address.from_seed("oracle")
_INVESTOR = Address.from_seed("investor")


def _proof(**overrides: object) -> BookingProof:
    fields: dict[str, object] = {
        "booking_id": "BK-1",
        "amount": 5_000_000,
        "start_date": 1_700_864_000,
        "end_date": 1_701_296_000,
        "host": _HOST,
        "oracle_pubkey": _ORACLE,
        "tier_index": 2,
        "investor": _INVESTOR,
    }
    fields.update(overrides)
    return BookingProof(**fields)  # type: ignore[arg-type]


class TestBookingProof:
    def test_amount_must_be_u64(self) -> None:
        with pytest.raises(TypeError):
            _proof(amount=-1)

    def test_tier_index_must_be_u8(self) -> None:
        with pytest.raises(TypeError):
            _proof(tier_index=256)

    def test_out_of_range_tier_is_representable(self) -> None:
        assert _proof(tier_index=4).tier_index == 4


class TestSerialization:
    def test_field_order(self) -> None:
        p = _proof()
        expected = (
            Writer().string("BK-1").u64(5_000_000).i64(1_700_864_000).i64(1_701_296_000)
            .address(_HOST).address(_ORACLE).u8(2).address(_INVESTOR).to_bytes()
        )
        assert serialize_booking_proof(p) == expected

    def test_deserialize(self) -> None:
        p = _proof()
        assert deserialize_booking_proof(serialize_booking_proof(p)) == Ok(p)

    def test_trailing_bytes(self) -> None:
        assert isinstance(deserialize_booking_proof(serialize_booking_proof(_proof()) + b"\x00"), Err)

    def test_truncated(self) -> None:
        assert isinstance(deserialize_booking_proof(serialize_booking_proof(_proof())[:-1]), Err)

    @given(st.integers(min_value=0, max_value=(1 << 64) - 1), st.text(min_size=1, max_size=32))
    def test_any_amount_and_id(self, amount: int, booking_id: str) -> None:
        p = _proof(amount=amount, booking_id=booking_id)
        assert deserialize_booking_proof(serialize_booking_proof(p)) == Ok(p)


class TestVerifiedAttestation:
    def test_message_hash_tracks_proof(self) -> None:
        a = VerifiedAttestation(proof=_proof(), verifier_instruction_index=0)
        b = VerifiedAttestation(proof=_proof(amount=1), verifier_instruction_index=0)
        assert len(a.message_hash) == 64
        assert a.message_hash != b.message_hash

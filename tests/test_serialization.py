"""Tests for rentflow.core.serialization: Writer/Reader and discriminators."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rentflow.core.result import Err, Ok
from rentflow.core.serialization import (
    DISCRIMINATOR_LENGTH,
    DecodeError,
    Reader,
    Writer,
    content_hash,
    discriminator,
    split_discriminator,
)
from rentflow.core.types import Address


class TestWriter:
    def test_little_endian(self) -> None:
        assert Writer().u16(0x0102).to_bytes() == b"\x02\x01"
        assert Writer().u64(1).to_bytes() == b"\x01" + bytes(7)

    def test_signed(self) -> None:
        assert Writer().i64(-1).to_bytes() == b"\xff" * 8

    def test_string_is_length_prefixed(self) -> None:
        assert Writer().string("ab").to_bytes() == b"\x02\x00\x00\x00ab"

    def test_flag(self) -> None:
        assert Writer().flag(True).flag(False).to_bytes() == b"\x01\x00"

    def test_address_is_raw(self) -> None:
        a = Address.from_seed("x")
        assert Writer().address(a).to_bytes() == a.value


class TestReader:
    def test_reads_back_in_order(self) -> None:
        a = Address.from_seed("owner")
        data = Writer().u8(7).u64(99).i64(-5).address(a).string("BK").flag(True).to_bytes()
        r = Reader(data)
        assert r.u8() == 7
        assert r.u64() == 99
        assert r.i64() == -5
        assert r.address() == a
        assert r.string() == "BK"
        assert r.flag() is True
        assert r.remaining == 0

    def test_truncation_raises(self) -> None:
        with pytest.raises(DecodeError):
            Reader(b"\x01\x02").u32()

    def test_bad_flag_byte(self) -> None:
        with pytest.raises(DecodeError):
            Reader(b"\x02").flag()

    def test_bad_utf8(self) -> None:
        with pytest.raises(DecodeError):
            Reader(Writer().u32(1).raw(b"\xff").to_bytes()).string()

    @given(st.text(max_size=64), st.integers(min_value=0, max_value=(1 << 64) - 1))
    def test_string_u64_inverse(self, s: str, n: int) -> None:
        r = Reader(Writer().string(s).u64(n).to_bytes())
        assert (r.string(), r.u64()) == (s, n)


class TestDiscriminator:
    def test_length_and_determinism(self) -> None:
        tag = discriminator("BookingObligation")
        assert len(tag) == DISCRIMINATOR_LENGTH
        assert tag == discriminator("BookingObligation")
        assert tag != discriminator("PoolVault")

    def test_split(self) -> None:
        tag = discriminator("PoolVault")
        assert split_discriminator(tag + b"body") == Ok((tag, b"body"))
        assert isinstance(split_discriminator(b"short"), Err)

    def test_content_hash(self) -> None:
        assert len(content_hash(b"x")) == 64
        assert content_hash(b"x") != content_hash(b"y")

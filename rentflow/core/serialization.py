"""Canonical binary serialization and record discriminators.

Little-endian fixed-width integers, one-byte booleans, 32-byte addresses
and u32-length-prefixed UTF-8 strings. The same encoding is used for
persisted records and for the message bytes an oracle signs, so a proof
serializes identically on both sides of the signature.

discriminator(name) -> 8 bytes: record type tag.
content_hash(data) -> SHA-256 hex digest.
"""

from __future__ import annotations

import hashlib
import struct
from typing import final

from rentflow.core.result import Err, Ok
from rentflow.core.types import ADDRESS_LENGTH, Address

DISCRIMINATOR_LENGTH = 8


class DecodeError(ValueError):
    """Raised inside a Reader; converted to Err at the decode boundary."""


def discriminator(name: str) -> bytes:
    """First 8 bytes of SHA-256("account:<name>")."""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:DISCRIMINATOR_LENGTH]


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@final
class Writer:
    """Append-only encoder."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def u8(self, value: int) -> Writer:
        self._buf += struct.pack("<B", value)
        return self

    def u16(self, value: int) -> Writer:
        self._buf += struct.pack("<H", value)
        return self

    def u32(self, value: int) -> Writer:
        self._buf += struct.pack("<I", value)
        return self

    def u64(self, value: int) -> Writer:
        self._buf += struct.pack("<Q", value)
        return self

    def i64(self, value: int) -> Writer:
        self._buf += struct.pack("<q", value)
        return self

    def flag(self, value: bool) -> Writer:
        return self.u8(1 if value else 0)

    def address(self, value: Address) -> Writer:
        self._buf += value.value
        return self

    def string(self, value: str) -> Writer:
        raw = value.encode("utf-8")
        self.u32(len(raw))
        self._buf += raw
        return self

    def raw(self, data: bytes) -> Writer:
        self._buf += data
        return self

    def to_bytes(self) -> bytes:
        return bytes(self._buf)


@final
class Reader:
    """Cursor over encoded bytes. Raises DecodeError on truncation."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def _take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise DecodeError(
                f"need {n} bytes at offset {self._pos}, only {len(self._data) - self._pos} left"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return struct.unpack("<B", self._take(1))[0]

    def u16(self) -> int:
        return struct.unpack("<H", self._take(2))[0]

    def u32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]

    def i64(self) -> int:
        return struct.unpack("<q", self._take(8))[0]

    def flag(self) -> bool:
        value = self.u8()
        if value > 1:
            raise DecodeError(f"invalid bool byte {value}")
        return value == 1

    def address(self) -> Address:
        return Address(value=self._take(ADDRESS_LENGTH))

    def string(self) -> str:
        size = self.u32()
        try:
            return self._take(size).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid utf-8 string: {e}") from e

    def raw(self, n: int) -> bytes:
        return self._take(n)

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos


def split_discriminator(data: bytes) -> Ok[tuple[bytes, bytes]] | Err[str]:
    """Split record bytes into (discriminator, body)."""
    if len(data) < DISCRIMINATOR_LENGTH:
        return Err(f"record shorter than discriminator: {len(data)} bytes")
    return Ok((data[:DISCRIMINATOR_LENGTH], data[DISCRIMINATOR_LENGTH:]))

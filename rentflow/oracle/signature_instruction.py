"""Signature-verification instruction layout (Ed25519 verifier format).

Instruction data:

    u8   signature count
    u8   padding
    then per signature, seven little-endian u16:
        signature_offset, signature_instruction_index,
        public_key_offset, public_key_instruction_index,
        message_data_offset, message_data_size, message_instruction_index

An instruction index of 0xFFFF means "the verify instruction itself".
Public keys are 32 bytes and signatures 64 bytes. Checking the signature
itself is the runtime's job; this module only locates the bytes it covered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from rentflow.core.checked_math import U16_MAX
from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.result import Err, Ok
from rentflow.core.serialization import DecodeError, Reader, Writer
from rentflow.core.types import ADDRESS_LENGTH, Address

ED25519_PROGRAM_ID = Address.from_seed("Ed25519SigVerify111111111111111111111111111")
SELF_INSTRUCTION_INDEX = U16_MAX
SIGNATURE_LENGTH = 64
HEADER_LENGTH = 2
OFFSETS_LENGTH = 14

_SRC = "oracle.signature_instruction"


@final
@dataclass(frozen=True, slots=True)
class Instruction:
    """One instruction of a request: the program it targets and its data."""

    program_id: Address
    data: bytes


@final
@dataclass(frozen=True, slots=True)
class SignatureOffsets:
    signature_offset: int
    signature_instruction_index: int
    public_key_offset: int
    public_key_instruction_index: int
    message_data_offset: int
    message_data_size: int
    message_instruction_index: int


@final
@dataclass(frozen=True, slots=True)
class SignedPayload:
    """Bytes located by one SignatureOffsets entry."""

    public_key: Address
    signature: bytes
    message: bytes


def parse_signature_offsets(data: bytes) -> Ok[tuple[SignatureOffsets, ...]] | Err[RentFlowError]:
    """Decode the header and offset table of a verify instruction."""
    src = f"{_SRC}.parse_signature_offsets"
    r = Reader(data)
    try:
        count = r.u8()
        r.u8()
        entries = tuple(
            SignatureOffsets(
                signature_offset=r.u16(),
                signature_instruction_index=r.u16(),
                public_key_offset=r.u16(),
                public_key_instruction_index=r.u16(),
                message_data_offset=r.u16(),
                message_data_size=r.u16(),
                message_instruction_index=r.u16(),
            )
            for _ in range(count)
        )
    except DecodeError as e:
        return fail(ErrorCode.INVALID_OFFSET, src, str(e), field="data")
    return Ok(entries)


def _instruction_data(
    index: int,
    own_data: bytes,
    instructions: tuple[Instruction, ...],
    source: str,
) -> Ok[bytes] | Err[RentFlowError]:
    if index == SELF_INSTRUCTION_INDEX:
        return Ok(own_data)
    if index >= len(instructions):
        return fail(
            ErrorCode.INVALID_INSTRUCTION_INDEX, source,
            f"index {index} of {len(instructions)}", check="offsets",
        )
    return Ok(instructions[index].data)


def _slice(
    data: bytes, offset: int, size: int, field: str, source: str,
) -> Ok[bytes] | Err[RentFlowError]:
    if offset + size > len(data):
        return fail(
            ErrorCode.INVALID_OFFSET, source,
            f"{field} [{offset}, {offset + size}) past {len(data)} bytes",
            field=field, actual_value=str(offset),
        )
    return Ok(data[offset:offset + size])


def resolve_payload(
    offsets: SignatureOffsets,
    own_data: bytes,
    instructions: tuple[Instruction, ...],
) -> Ok[SignedPayload] | Err[RentFlowError]:
    """Fetch public key, signature and message bytes named by offsets."""
    src = f"{_SRC}.resolve_payload"

    match _instruction_data(offsets.public_key_instruction_index, own_data, instructions, src):
        case Err() as e:
            return e
        case Ok(pk_data):
            pass
    match _slice(pk_data, offsets.public_key_offset, ADDRESS_LENGTH, "public_key", src):
        case Err() as e:
            return e
        case Ok(pk_bytes):
            pass

    match _instruction_data(offsets.signature_instruction_index, own_data, instructions, src):
        case Err() as e:
            return e
        case Ok(sig_data):
            pass
    match _slice(sig_data, offsets.signature_offset, SIGNATURE_LENGTH, "signature", src):
        case Err() as e:
            return e
        case Ok(sig_bytes):
            pass

    match _instruction_data(offsets.message_instruction_index, own_data, instructions, src):
        case Err() as e:
            return e
        case Ok(msg_data):
            pass
    match _slice(
        msg_data, offsets.message_data_offset, offsets.message_data_size, "message", src,
    ):
        case Err() as e:
            return e
        case Ok(msg_bytes):
            pass

    return Ok(SignedPayload(
        public_key=Address(value=pk_bytes), signature=sig_bytes, message=msg_bytes,
    ))


def build_signature_instruction(
    public_key: Address,
    message: bytes,
    signature: bytes = bytes(SIGNATURE_LENGTH),
    program_id: Address = ED25519_PROGRAM_ID,
) -> Instruction:
    """Self-contained verify instruction: key, signature, message inline.

    Raises ValueError if the layout cannot address the message.
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise ValueError(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")
    public_key_offset = HEADER_LENGTH + OFFSETS_LENGTH
    signature_offset = public_key_offset + ADDRESS_LENGTH
    message_offset = signature_offset + SIGNATURE_LENGTH
    if message_offset + len(message) > U16_MAX:
        raise ValueError(f"message too long for u16 offsets: {len(message)} bytes")
    data = (
        Writer()
        .u8(1)
        .u8(0)
        .u16(signature_offset)
        .u16(SELF_INSTRUCTION_INDEX)
        .u16(public_key_offset)
        .u16(SELF_INSTRUCTION_INDEX)
        .u16(message_offset)
        .u16(len(message))
        .u16(SELF_INSTRUCTION_INDEX)
        .address(public_key)
        .raw(signature)
        .raw(message)
        .to_bytes()
    )
    return Instruction(program_id=program_id, data=data)

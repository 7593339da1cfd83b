"""Oracle proof verifier.

A booking proof is trusted only if the instruction immediately before the
current one is a signature-verification instruction that covered exactly
one signature, by the configured oracle key, over the proof's canonical
bytes. Pure: reads the request's instruction list, mutates nothing.
"""

from __future__ import annotations

from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.oracle.attestation import (
    BookingProof,
    VerifiedAttestation,
    serialize_booking_proof,
)
from rentflow.oracle.signature_instruction import (
    Instruction,
    parse_signature_offsets,
    resolve_payload,
)

_SRC = "oracle.verifier.verify_booking_proof"


def verify_booking_proof(
    proof: BookingProof,
    instructions: tuple[Instruction, ...],
    current_index: int,
    verifier_program_id: Address,
    oracle_key: Address,
) -> Ok[VerifiedAttestation] | Err[RentFlowError]:
    """Check the co-located oracle signature for proof.

    Order: instruction index, program id, offsets, oracle key, message.
    """
    if current_index <= 0 or current_index > len(instructions):
        return fail(
            ErrorCode.INVALID_INSTRUCTION_INDEX, _SRC,
            f"current index {current_index} of {len(instructions)}", check="index",
        )
    prev_index = current_index - 1
    verify_ix = instructions[prev_index]
    if verify_ix.program_id != verifier_program_id:
        return fail(
            ErrorCode.INVALID_PROGRAM_ID, _SRC,
            f"instruction {prev_index} targets {verify_ix.program_id}", check="program_id",
        )

    match parse_signature_offsets(verify_ix.data):
        case Err() as e:
            return e
        case Ok(entries):
            pass
    if len(entries) != 1:
        return fail(
            ErrorCode.INVALID_OFFSET, _SRC,
            f"expected exactly one signature, got {len(entries)}",
            field="count", actual_value=str(len(entries)),
        )

    match resolve_payload(entries[0], verify_ix.data, instructions):
        case Err() as e:
            return e
        case Ok(payload):
            pass

    if payload.public_key != oracle_key or proof.oracle_pubkey != oracle_key:
        return fail(
            ErrorCode.INVALID_ORACLE_KEY, _SRC,
            f"signed by {payload.public_key}", check="oracle_key",
        )
    if payload.message != serialize_booking_proof(proof):
        return fail(ErrorCode.ORACLE_MESSAGE_MISMATCH, _SRC, check="message")

    return Ok(VerifiedAttestation(proof=proof, verifier_instruction_index=prev_index))

"""rentflow.oracle: booking attestations and their verification."""

from rentflow.oracle.attestation import BookingProof as BookingProof
from rentflow.oracle.attestation import VerifiedAttestation as VerifiedAttestation
from rentflow.oracle.attestation import deserialize_booking_proof as deserialize_booking_proof
from rentflow.oracle.attestation import serialize_booking_proof as serialize_booking_proof
from rentflow.oracle.signature_instruction import ED25519_PROGRAM_ID as ED25519_PROGRAM_ID
from rentflow.oracle.signature_instruction import Instruction as Instruction
from rentflow.oracle.signature_instruction import SignatureOffsets as SignatureOffsets
from rentflow.oracle.signature_instruction import SignedPayload as SignedPayload
from rentflow.oracle.signature_instruction import (
    build_signature_instruction as build_signature_instruction,
)
from rentflow.oracle.signature_instruction import (
    parse_signature_offsets as parse_signature_offsets,
)
from rentflow.oracle.signature_instruction import resolve_payload as resolve_payload
from rentflow.oracle.verifier import verify_booking_proof as verify_booking_proof

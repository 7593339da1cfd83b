"""Request and per-instruction execution context.

A Request is what the runtime hands an instruction: who signed, the
clock, and the ordered instruction list for introspection. ProgramContext
binds a Request to the program's configuration and infrastructure, and
is the only place handlers derive addresses, build derived signers, and
read or write typed records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from rentflow.core.checked_math import is_i64
from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.identifiers import DerivedSigner, find_derived_address
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.infra.config import ProtocolConfig
from rentflow.infra.protocols import CustodyGateway, ProgramLog, RecordStore
from rentflow.ledger.transactions import ExecuteResult, Transaction
from rentflow.oracle.signature_instruction import Instruction
from rentflow.protocol.state import R, Record, decode_record, encode_record


@final
@dataclass(frozen=True, slots=True)
class Request:
    """One atomic request as seen by the instruction it invokes."""

    signers: frozenset[Address]
    now: int
    instructions: tuple[Instruction, ...] = ()
    current_index: int = 0
    request_id: str = ""

    def __post_init__(self) -> None:
        if not is_i64(self.now):
            raise TypeError(f"Request.now must be i64 unix seconds, got {self.now!r}")
        if self.current_index < 0:
            raise TypeError(f"Request.current_index must be >= 0, got {self.current_index}")


@final
@dataclass(frozen=True, slots=True)
class ProgramContext:
    config: ProtocolConfig
    store: RecordStore
    custody: CustodyGateway
    log: ProgramLog
    request: Request

    @property
    def program_id(self) -> Address:
        return self.config.program_id

    @property
    def now(self) -> int:
        return self.request.now

    # ------------------------------------------------------------------
    # Signers and derived addresses
    # ------------------------------------------------------------------

    def require_signer(self, who: Address, source: str) -> Ok[None] | Err[RentFlowError]:
        if who not in self.request.signers:
            return fail(ErrorCode.MISSING_SIGNATURE, source, str(who), actor=who.hex)
        return Ok(None)

    def derive(self, seeds: tuple[bytes, ...]) -> tuple[Address, int]:
        """Canonical (address, bump) of a record under this program."""
        match find_derived_address(seeds, self.program_id):
            case Ok(found):
                return found
            case Err(e):
                # Protocol seeds are fixed-size and always derivable.
                raise AssertionError(f"record address derivation failed: {e}")

    def signer_for(self, seeds: tuple[bytes, ...], bump: int) -> DerivedSigner:
        """Signing capability of the record at seeds, from its recorded bump."""
        return DerivedSigner(seeds=seeds, bump=bump, program_id=self.program_id)

    def tx_id(self, label: str) -> str:
        return f"{self.request.request_id}:{label}"

    # ------------------------------------------------------------------
    # Typed records
    # ------------------------------------------------------------------

    def load(
        self, address: Address, record_type: type[R], source: str,
    ) -> Ok[R] | Err[RentFlowError]:
        match self.store.load(address):
            case Err() as e:
                return e
            case Ok(data):
                return decode_record(data, record_type, source)

    def create(self, address: Address, record: Record) -> Ok[None] | Err[RentFlowError]:
        return self.store.create(address, encode_record(record))

    def save(self, address: Address, record: Record) -> Ok[None] | Err[RentFlowError]:
        return self.store.save(address, encode_record(record))

    def delete(self, address: Address) -> Ok[None] | Err[RentFlowError]:
        return self.store.delete(address)

    def exists(self, address: Address) -> bool:
        return self.store.exists(address)

    # ------------------------------------------------------------------
    # Custody
    # ------------------------------------------------------------------

    def execute(self, tx: Transaction) -> Ok[ExecuteResult] | Err[RentFlowError]:
        """Run tx on the custody gateway with this request's signers."""
        return self.custody.execute(tx, self.request.signers, self.program_id)

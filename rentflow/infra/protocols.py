"""Infrastructure protocol definitions.

Instruction handlers depend on these abstractions. The in-memory adapters
in memory_adapter.py and the CustodyLedger implement them.

All fallible methods return Ok[T] | Err[RentFlowError]. Store failures are
PersistenceError values, custody failures CustodyError values.
"""

from __future__ import annotations

from typing import Protocol, Self, runtime_checkable

from rentflow.core.errors import RentFlowError
from rentflow.core.identifiers import TransferAuthority
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.ledger.transactions import Asset, CustodyAccount, ExecuteResult, Transaction


@runtime_checkable
class RecordStore(Protocol):
    """Raw record bytes keyed by derived address.

    Invariants:
      - create() fails with AccountAlreadyInitialized if the address is taken.
      - load(), save() and delete() fail with AccountNotInitialized if it is not.
      - clone() is a snapshot that restore() can roll back to.
    """

    def create(self, address: Address, data: bytes) -> Ok[None] | Err[RentFlowError]: ...

    def load(self, address: Address) -> Ok[bytes] | Err[RentFlowError]: ...

    def save(self, address: Address, data: bytes) -> Ok[None] | Err[RentFlowError]: ...

    def delete(self, address: Address) -> Ok[None] | Err[RentFlowError]: ...

    def exists(self, address: Address) -> bool: ...

    def clone(self) -> Self: ...

    def restore(self, snapshot: Self) -> None: ...


@runtime_checkable
class CustodyGateway(Protocol):
    """Asset-transfer subsystem: assets, custody accounts, atomic transfers."""

    def create_asset(self, asset: Asset) -> Ok[Asset] | Err[RentFlowError]: ...

    def ensure_account(
        self, owner: Address, asset: Address,
    ) -> Ok[CustodyAccount] | Err[RentFlowError]: ...

    def close_account(
        self, address: Address, authority: TransferAuthority,
        signers: frozenset[Address], invoker: Address,
    ) -> Ok[None] | Err[RentFlowError]: ...

    def mint_to(
        self, mint: Address, destination: Address, quantity: int,
        authority: TransferAuthority, signers: frozenset[Address], invoker: Address,
    ) -> Ok[None] | Err[RentFlowError]: ...

    def execute(
        self, tx: Transaction, signers: frozenset[Address], invoker: Address,
    ) -> Ok[ExecuteResult] | Err[RentFlowError]: ...

    def balance(self, address: Address) -> int: ...

    def balance_of(self, owner: Address, asset: Address) -> int: ...

    def clone(self) -> Self: ...

    def restore(self, snapshot: Self) -> None: ...


@runtime_checkable
class ProgramLog(Protocol):
    """Append-only program messages emitted by committed instructions."""

    def emit(self, message: str) -> None: ...

    def entries(self) -> tuple[str, ...]: ...

"""In-memory implementations of RecordStore and ProgramLog.

Test doubles and the reference runtime for the program facade.
All classes are @final. None of them are production storage.
"""

from __future__ import annotations

from typing import final

from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address

_SRC = "memory_adapter"


@final
class InMemoryRecordStore:
    """Record bytes keyed by address."""

    def __init__(self) -> None:
        self._records: dict[Address, bytes] = {}

    def create(self, address: Address, data: bytes) -> Ok[None] | Err[RentFlowError]:
        if address in self._records:
            return fail(
                ErrorCode.ACCOUNT_ALREADY_INITIALIZED, f"{_SRC}.create",
                str(address), operation="create",
            )
        self._records[address] = data
        return Ok(None)

    def load(self, address: Address) -> Ok[bytes] | Err[RentFlowError]:
        data = self._records.get(address)
        if data is None:
            return fail(
                ErrorCode.ACCOUNT_NOT_INITIALIZED, f"{_SRC}.load",
                str(address), operation="load",
            )
        return Ok(data)

    def save(self, address: Address, data: bytes) -> Ok[None] | Err[RentFlowError]:
        if address not in self._records:
            return fail(
                ErrorCode.ACCOUNT_NOT_INITIALIZED, f"{_SRC}.save",
                str(address), operation="save",
            )
        self._records[address] = data
        return Ok(None)

    def delete(self, address: Address) -> Ok[None] | Err[RentFlowError]:
        if self._records.pop(address, None) is None:
            return fail(
                ErrorCode.ACCOUNT_NOT_INITIALIZED, f"{_SRC}.delete",
                str(address), operation="delete",
            )
        return Ok(None)

    def exists(self, address: Address) -> bool:
        return address in self._records

    def clone(self) -> InMemoryRecordStore:
        new = InMemoryRecordStore()
        new._records = dict(self._records)
        return new

    def restore(self, snapshot: InMemoryRecordStore) -> None:
        self._records = dict(snapshot._records)

    def count(self) -> int:
        """Test-only helper."""
        return len(self._records)


@final
class InMemoryProgramLog:
    """Append-only list of program messages."""

    def __init__(self) -> None:
        self._entries: list[str] = []

    def emit(self, message: str) -> None:
        self._entries.append(message)

    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def count(self) -> int:
        """Test-only helper."""
        return len(self._entries)

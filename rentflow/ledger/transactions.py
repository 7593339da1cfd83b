"""Custody domain types: Asset, CustodyAccount, Move, Transaction.

A custody account holds a quantity of exactly one asset and is owned by
either a wallet or a derived address. Quantities are u64 base units.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from rentflow.core.identifiers import TransferAuthority, find_derived_address
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address

CUSTODY_PROGRAM_ID = Address.from_seed("rentflow.custody")


class AssetKind(Enum):
    FUNGIBLE = "FUNGIBLE"
    NON_FUNGIBLE = "NON_FUNGIBLE"


class ExecuteResult(Enum):
    APPLIED = "APPLIED"
    ALREADY_APPLIED = "ALREADY_APPLIED"


@final
@dataclass(frozen=True, slots=True)
class Asset:
    """A mint. NON_FUNGIBLE assets have zero decimals and a supply cap of one."""

    mint: Address
    kind: AssetKind
    decimals: int
    mint_authority: Address

    def __post_init__(self) -> None:
        if self.kind is AssetKind.NON_FUNGIBLE and self.decimals != 0:
            raise TypeError(f"non-fungible asset must have 0 decimals, got {self.decimals}")
        if not 0 <= self.decimals <= 18:
            raise TypeError(f"decimals must be in 0..18, got {self.decimals}")

    @property
    def max_supply(self) -> int | None:
        return 1 if self.kind is AssetKind.NON_FUNGIBLE else None


@final
@dataclass(frozen=True, slots=True)
class CustodyAccount:
    address: Address
    owner: Address
    asset: Address


@final
@dataclass(frozen=True, slots=True)
class Move:
    """One leg of a transaction: quantity of asset from source to destination."""

    source: Address
    destination: Address
    asset: Address
    quantity: int
    authority: TransferAuthority


@final
@dataclass(frozen=True, slots=True)
class Transaction:
    """Atomic batch of moves. Either every move applies or none does."""

    tx_id: str
    moves: tuple[Move, ...]
    timestamp: int  # unix seconds of the enclosing request


def custody_address(owner: Address, asset: Address) -> Address:
    """The canonical custody account address for (owner, asset)."""
    match find_derived_address((owner.value, asset.value), CUSTODY_PROGRAM_ID):
        case Ok((address, _)):
            return address
        case Err(e):
            # Two 32-byte seeds are always within the derivation limits.
            raise AssertionError(f"custody address derivation failed: {e}")

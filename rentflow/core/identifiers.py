"""Deterministic derived addresses and the signing capability bound to them.

A derived address is SHA-256(seeds || bump || program_id || domain tag).
No private key exists for it: the only way to authorize a transfer out of
a custody account owned by a derived address is to present a DerivedSigner
whose seeds and bump re-derive that address under the invoking program.

find_derived_address searches bumps from 255 downward and returns the first
candidate that does not collide with a reserved address (a wallet key).
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeAlias, Union, final

from rentflow.core.result import Err, Ok
from rentflow.core.types import Address

DERIVATION_DOMAIN = b"ProgramDerivedAddress"
MAX_SEED_LENGTH = 32
MAX_SEEDS = 16


def _check_seeds(seeds: tuple[bytes, ...]) -> Ok[None] | Err[str]:
    if len(seeds) > MAX_SEEDS:
        return Err(f"at most {MAX_SEEDS} seeds, got {len(seeds)}")
    for i, seed in enumerate(seeds):
        if len(seed) > MAX_SEED_LENGTH:
            return Err(f"seed {i} longer than {MAX_SEED_LENGTH} bytes: {len(seed)}")
    return Ok(None)


def create_derived_address(
    seeds: tuple[bytes, ...], bump: int, program_id: Address,
) -> Ok[Address] | Err[str]:
    """Derive the address for seeds + bump under program_id."""
    if not 0 <= bump <= 255:
        return Err(f"bump must be in 0..255, got {bump}")
    match _check_seeds(seeds):
        case Err() as e:
            return e
        case Ok():
            pass
    h = hashlib.sha256()
    for seed in seeds:
        h.update(seed)
    h.update(bytes([bump]))
    h.update(program_id.value)
    h.update(DERIVATION_DOMAIN)
    return Ok(Address(value=h.digest()))


def find_derived_address(
    seeds: tuple[bytes, ...],
    program_id: Address,
    reserved: Iterable[Address] = (),
) -> Ok[tuple[Address, int]] | Err[str]:
    """Canonical (address, bump): highest bump whose address is not reserved."""
    taken = frozenset(reserved)
    for bump in range(255, -1, -1):
        match create_derived_address(seeds, bump, program_id):
            case Err() as e:
                return e
            case Ok(candidate):
                if candidate not in taken:
                    return Ok((candidate, bump))
    return Err("no viable bump for seeds")


@final
@dataclass(frozen=True, slots=True)
class DerivedSigner:
    """Signing capability for the custody accounts of one derived address.

    Carries no secret. The custody ledger re-derives the address from
    seeds + bump under the invoking program before honoring it.
    """

    seeds: tuple[bytes, ...]
    bump: int
    program_id: Address

    def address(self) -> Ok[Address] | Err[str]:
        return create_derived_address(self.seeds, self.bump, self.program_id)


@final
@dataclass(frozen=True, slots=True)
class WalletSigner:
    """A wallet that signed the enclosing request."""

    wallet: Address


TransferAuthority: TypeAlias = Union[WalletSigner, DerivedSigner]

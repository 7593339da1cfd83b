"""Tests for rentflow.ledger.custody: lifecycle and pool transaction builders."""

from __future__ import annotations

from rentflow.core.identifiers import DerivedSigner, WalletSigner
from rentflow.core.result import Err, unwrap
from rentflow.core.types import Address
from rentflow.ledger.custody import (
    COLLATERAL_UNIT,
    create_collateral_return_transaction,
    create_liquidity_deposit_transaction,
    create_liquidity_payout_transaction,
    create_lock_and_disburse_transaction,
    create_repay_and_release_transaction,
    create_seizure_transaction,
)
from rentflow.ledger.transactions import custody_address

_HOST = Address.from_seed("host")
_OBLIGATION = Address.from_seed("obligation")
_POOL = Address.from_seed("pool")
_UNIT = Address.from_seed("unit")
_CASH = Address.from_seed("cash")
_PROGRAM = Address.from_seed("program")
_POOL_SIGNER = DerivedSigner(seeds=(b"pool_vault",), bump=255, program_id=_PROGRAM)
_OB_SIGNER = DerivedSigner(seeds=(b"obligation", _UNIT.value), bump=255, program_id=_PROGRAM)


class TestLockAndDisburse:
    def test_two_moves(self) -> None:
        tx = unwrap(create_lock_and_disburse_transaction(
            _HOST, _OBLIGATION, _POOL, _POOL_SIGNER, _UNIT, _CASH, 5_000_000, "r-1:lock", 0,
        ))
        lock, disburse = tx.moves
        assert lock.source == custody_address(_HOST, _UNIT)
        assert lock.destination == custody_address(_OBLIGATION, _UNIT)
        assert lock.quantity == COLLATERAL_UNIT
        assert lock.authority == WalletSigner(wallet=_HOST)
        assert disburse.source == custody_address(_POOL, _CASH)
        assert disburse.destination == custody_address(_HOST, _CASH)
        assert disburse.quantity == 5_000_000
        assert disburse.authority == _POOL_SIGNER

    def test_zero_funding_rejected(self) -> None:
        result = create_lock_and_disburse_transaction(
            _HOST, _OBLIGATION, _POOL, _POOL_SIGNER, _UNIT, _CASH, 0, "r-1:lock", 0,
        )
        assert isinstance(result, Err)
        assert result.error.code == "InvalidAmount"
        assert result.error.field == "funding_amount"


class TestRepayAndRelease:
    def test_two_moves(self) -> None:
        tx = unwrap(create_repay_and_release_transaction(
            _HOST, _OBLIGATION, _OB_SIGNER, _POOL, _UNIT, _CASH, 5_750_000, "r-2:settle", 0,
        ))
        repay, release = tx.moves
        assert (repay.asset, repay.quantity) == (_CASH, 5_750_000)
        assert repay.destination == custody_address(_POOL, _CASH)
        assert (release.asset, release.quantity) == (_UNIT, 1)
        assert release.destination == custody_address(_HOST, _UNIT)
        assert release.authority == _OB_SIGNER


class TestSeizureAndReturn:
    def test_seizure_moves_unit_to_pool(self) -> None:
        tx = unwrap(create_seizure_transaction(_OBLIGATION, _OB_SIGNER, _POOL, _UNIT, "r-3", 0))
        (move,) = tx.moves
        assert move.source == custody_address(_OBLIGATION, _UNIT)
        assert move.destination == custody_address(_POOL, _UNIT)

    def test_return_quantity(self) -> None:
        tx = unwrap(create_collateral_return_transaction(
            _OBLIGATION, _OB_SIGNER, _HOST, _UNIT, 1, "r-4", 0,
        ))
        assert tx.moves[0].destination == custody_address(_HOST, _UNIT)


class TestLiquidity:
    def test_deposit(self) -> None:
        investor = Address.from_seed("investor")
        tx = unwrap(create_liquidity_deposit_transaction(investor, _POOL, _CASH, 100, "d", 0))
        assert tx.moves[0].authority == WalletSigner(wallet=investor)

    def test_payout(self) -> None:
        investor = Address.from_seed("investor")
        tx = unwrap(create_liquidity_payout_transaction(
            _POOL, _POOL_SIGNER, investor, _CASH, 100, "w", 0,
        ))
        assert tx.moves[0].authority == _POOL_SIGNER

    def test_empty_tx_id(self) -> None:
        result = create_liquidity_deposit_transaction(_HOST, _POOL, _CASH, 100, "", 0)
        assert isinstance(result, Err)

    def test_amount_beyond_u64(self) -> None:
        result = create_liquidity_deposit_transaction(_HOST, _POOL, _CASH, 1 << 64, "d", 0)
        assert isinstance(result, Err)
        assert result.error.code == "InvalidAmount"

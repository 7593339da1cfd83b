"""Custody transactions for the obligation lifecycle and the liquidity pool.

All functions produce Transaction objects that the CustodyLedger executes.
Conservation: sigma(asset) unchanged after every transaction.

Owners are addresses: a host or investor wallet, the obligation's derived
address (collateral while locked), or the pool vault's derived address
(cash, seized collateral).
"""

from __future__ import annotations

from rentflow.core.errors import RentFlowError
from rentflow.core.identifiers import DerivedSigner, WalletSigner
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.ledger._validation import create_move, create_tx
from rentflow.ledger.transactions import Transaction

COLLATERAL_UNIT = 1

# ---------------------------------------------------------------------------
# Lock and disburse
# ---------------------------------------------------------------------------


def create_lock_and_disburse_transaction(
    host: Address,
    obligation: Address,
    pool: Address,
    pool_signer: DerivedSigner,
    collateral_mint: Address,
    cash_mint: Address,
    funding_amount: int,
    tx_id: str,
    timestamp: int,
) -> Ok[Transaction] | Err[RentFlowError]:
    """Book collateral lock and cash advance.

    Move 1: host -> obligation, unit = collateral_mint, quantity = 1.
    Move 2: pool -> host, unit = cash_mint, quantity = funding_amount.
    """
    _fn = "create_lock_and_disburse_transaction"
    _src = f"ledger.custody.{_fn}"

    match create_move(
        host, obligation, collateral_mint, COLLATERAL_UNIT,
        WalletSigner(wallet=host), _fn, _src,
    ):
        case Err() as e:
            return e
        case Ok(lock_move):
            pass

    match create_move(
        pool, host, cash_mint, funding_amount, pool_signer, _fn, _src,
        label="funding_amount",
    ):
        case Err() as e:
            return e
        case Ok(disburse_move):
            pass

    return create_tx(tx_id, (lock_move, disburse_move), timestamp, _fn, _src)


# ---------------------------------------------------------------------------
# Repay and release
# ---------------------------------------------------------------------------


def create_repay_and_release_transaction(
    host: Address,
    obligation: Address,
    obligation_signer: DerivedSigner,
    pool: Address,
    collateral_mint: Address,
    cash_mint: Address,
    repayment: int,
    tx_id: str,
    timestamp: int,
) -> Ok[Transaction] | Err[RentFlowError]:
    """Book repayment and collateral release.

    Move 1: host -> pool, unit = cash_mint, quantity = repayment.
    Move 2: obligation -> host, unit = collateral_mint, quantity = 1.
    """
    _fn = "create_repay_and_release_transaction"
    _src = f"ledger.custody.{_fn}"

    match create_move(
        host, pool, cash_mint, repayment, WalletSigner(wallet=host), _fn, _src,
        label="repayment",
    ):
        case Err() as e:
            return e
        case Ok(repay_move):
            pass

    match create_move(
        obligation, host, collateral_mint, COLLATERAL_UNIT, obligation_signer, _fn, _src,
    ):
        case Err() as e:
            return e
        case Ok(release_move):
            pass

    return create_tx(tx_id, (repay_move, release_move), timestamp, _fn, _src)


# ---------------------------------------------------------------------------
# Seizure
# ---------------------------------------------------------------------------


def create_seizure_transaction(
    obligation: Address,
    obligation_signer: DerivedSigner,
    pool: Address,
    collateral_mint: Address,
    tx_id: str,
    timestamp: int,
) -> Ok[Transaction] | Err[RentFlowError]:
    """Book seizure of defaulted collateral.

    One Move: obligation -> pool, unit = collateral_mint, quantity = 1.
    """
    _fn = "create_seizure_transaction"
    _src = f"ledger.custody.{_fn}"

    match create_move(
        obligation, pool, collateral_mint, COLLATERAL_UNIT, obligation_signer, _fn, _src,
    ):
        case Err() as e:
            return e
        case Ok(seize_move):
            pass

    return create_tx(tx_id, (seize_move,), timestamp, _fn, _src)


def create_collateral_return_transaction(
    obligation: Address,
    obligation_signer: DerivedSigner,
    host: Address,
    collateral_mint: Address,
    quantity: int,
    tx_id: str,
    timestamp: int,
) -> Ok[Transaction] | Err[RentFlowError]:
    """Book return of residual collateral before the obligation closes."""
    _fn = "create_collateral_return_transaction"
    _src = f"ledger.custody.{_fn}"

    match create_move(
        obligation, host, collateral_mint, quantity, obligation_signer, _fn, _src,
    ):
        case Err() as e:
            return e
        case Ok(return_move):
            pass

    return create_tx(tx_id, (return_move,), timestamp, _fn, _src)


# ---------------------------------------------------------------------------
# Liquidity pool
# ---------------------------------------------------------------------------


def create_liquidity_deposit_transaction(
    investor: Address,
    pool: Address,
    cash_mint: Address,
    amount: int,
    tx_id: str,
    timestamp: int,
) -> Ok[Transaction] | Err[RentFlowError]:
    """One Move: investor -> pool, unit = cash_mint, quantity = amount."""
    _fn = "create_liquidity_deposit_transaction"
    _src = f"ledger.custody.{_fn}"

    match create_move(
        investor, pool, cash_mint, amount, WalletSigner(wallet=investor), _fn, _src,
        label="amount",
    ):
        case Err() as e:
            return e
        case Ok(deposit_move):
            pass

    return create_tx(tx_id, (deposit_move,), timestamp, _fn, _src)


def create_liquidity_payout_transaction(
    pool: Address,
    pool_signer: DerivedSigner,
    investor: Address,
    cash_mint: Address,
    payout: int,
    tx_id: str,
    timestamp: int,
) -> Ok[Transaction] | Err[RentFlowError]:
    """One Move: pool -> investor, unit = cash_mint, quantity = payout."""
    _fn = "create_liquidity_payout_transaction"
    _src = f"ledger.custody.{_fn}"

    match create_move(
        pool, investor, cash_mint, payout, pool_signer, _fn, _src, label="payout",
    ):
        case Err() as e:
            return e
        case Ok(payout_move):
            pass

    return create_tx(tx_id, (payout_move,), timestamp, _fn, _src)

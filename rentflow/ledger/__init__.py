"""rentflow.ledger: custody domain types, engine and transaction builders."""

from rentflow.ledger.custody import (
    create_collateral_return_transaction as create_collateral_return_transaction,
)
from rentflow.ledger.custody import (
    create_liquidity_deposit_transaction as create_liquidity_deposit_transaction,
)
from rentflow.ledger.custody import (
    create_liquidity_payout_transaction as create_liquidity_payout_transaction,
)
from rentflow.ledger.custody import (
    create_lock_and_disburse_transaction as create_lock_and_disburse_transaction,
)
from rentflow.ledger.custody import (
    create_repay_and_release_transaction as create_repay_and_release_transaction,
)
from rentflow.ledger.custody import create_seizure_transaction as create_seizure_transaction
from rentflow.ledger.engine import CustodyLedger as CustodyLedger
from rentflow.ledger.transactions import CUSTODY_PROGRAM_ID as CUSTODY_PROGRAM_ID
from rentflow.ledger.transactions import Asset as Asset
from rentflow.ledger.transactions import AssetKind as AssetKind
from rentflow.ledger.transactions import CustodyAccount as CustodyAccount
from rentflow.ledger.transactions import ExecuteResult as ExecuteResult
from rentflow.ledger.transactions import Move as Move
from rentflow.ledger.transactions import Transaction as Transaction
from rentflow.ledger.transactions import custody_address as custody_address

"""In-memory custody ledger: the reference Custody Transfer Gateway.

Core invariants:
  - balances are never negative; a move exceeding the source balance
    rejects the whole transaction (InsufficientFunds).
  - for every asset, sum of balances == minted supply; execute() moves
    quantity without creating or destroying it.
  - a non-fungible asset never has more than one unit in existence.
  - transfers out of an account are honored only for its owner: a wallet
    that signed the request, or a DerivedSigner that re-derives the owner
    address under the invoking program.

CustodyLedger is @final but NOT a dataclass: it holds mutable internal state.
"""

from __future__ import annotations

from collections import defaultdict
from typing import final

from rentflow.core.checked_math import U64_MAX
from rentflow.core.errors import ErrorCode, RentFlowError, fail
from rentflow.core.identifiers import DerivedSigner, TransferAuthority, WalletSigner
from rentflow.core.result import Err, Ok
from rentflow.core.types import Address
from rentflow.ledger.transactions import (
    Asset,
    AssetKind,
    CustodyAccount,
    ExecuteResult,
    Move,
    Transaction,
    custody_address,
)

_SRC = "ledger.engine.CustodyLedger"


@final
class CustodyLedger:
    """Asset registry, custody accounts and balances with atomic execute()."""

    def __init__(self) -> None:
        self._assets: dict[Address, Asset] = {}
        self._accounts: dict[Address, CustodyAccount] = {}
        self._balances: dict[Address, int] = defaultdict(int)
        self._supply: dict[Address, int] = defaultdict(int)
        self._transactions: list[Transaction] = []
        self._applied_tx_ids: set[str] = set()

    # ------------------------------------------------------------------
    # Assets and accounts
    # ------------------------------------------------------------------

    def create_asset(self, asset: Asset) -> Ok[Asset] | Err[RentFlowError]:
        if asset.mint in self._assets:
            return fail(ErrorCode.ASSET_EXISTS, f"{_SRC}.create_asset", account=asset.mint.hex)
        self._assets[asset.mint] = asset
        return Ok(asset)

    def get_asset(self, mint: Address) -> Ok[Asset] | Err[RentFlowError]:
        asset = self._assets.get(mint)
        if asset is None:
            return fail(ErrorCode.UNKNOWN_ASSET, f"{_SRC}.get_asset", account=mint.hex)
        return Ok(asset)

    def open_account(
        self, owner: Address, asset: Address,
    ) -> Ok[CustodyAccount] | Err[RentFlowError]:
        """Open the canonical custody account for (owner, asset)."""
        if asset not in self._assets:
            return fail(ErrorCode.UNKNOWN_ASSET, f"{_SRC}.open_account", account=asset.hex)
        address = custody_address(owner, asset)
        if address in self._accounts:
            return fail(
                ErrorCode.CUSTODY_ACCOUNT_EXISTS, f"{_SRC}.open_account", account=address.hex,
            )
        account = CustodyAccount(address=address, owner=owner, asset=asset)
        self._accounts[address] = account
        return Ok(account)

    def ensure_account(
        self, owner: Address, asset: Address,
    ) -> Ok[CustodyAccount] | Err[RentFlowError]:
        """Open the account for (owner, asset) unless it already exists."""
        existing = self._accounts.get(custody_address(owner, asset))
        if existing is not None:
            return Ok(existing)
        return self.open_account(owner, asset)

    def close_account(
        self, address: Address, authority: TransferAuthority,
        signers: frozenset[Address], invoker: Address,
    ) -> Ok[None] | Err[RentFlowError]:
        """Close an empty account. Only its owner may close it."""
        src = f"{_SRC}.close_account"
        account = self._accounts.get(address)
        if account is None:
            return fail(ErrorCode.UNKNOWN_CUSTODY_ACCOUNT, src, account=address.hex)
        match self._authorize(account, authority, signers, invoker, src):
            case Err() as e:
                return e
            case Ok():
                pass
        if self._balances.get(address, 0) != 0:
            return fail(ErrorCode.CUSTODY_ACCOUNT_NOT_EMPTY, src, account=address.hex)
        del self._accounts[address]
        self._balances.pop(address, None)
        return Ok(None)

    def get_account(self, address: Address) -> CustodyAccount | None:
        return self._accounts.get(address)

    # ------------------------------------------------------------------
    # Authority
    # ------------------------------------------------------------------

    def _authorize(
        self,
        account: CustodyAccount,
        authority: TransferAuthority,
        signers: frozenset[Address],
        invoker: Address,
        source: str,
    ) -> Ok[None] | Err[RentFlowError]:
        match authority:
            case WalletSigner(wallet=wallet):
                if wallet not in signers:
                    return fail(ErrorCode.MISSING_SIGNATURE, source, actor=wallet.hex)
                if wallet != account.owner:
                    return fail(
                        ErrorCode.UNAUTHORIZED_TRANSFER, source,
                        "wallet is not the account owner", account=account.address.hex,
                    )
                return Ok(None)
            case DerivedSigner():
                if authority.program_id != invoker:
                    return fail(
                        ErrorCode.UNAUTHORIZED_TRANSFER, source,
                        "derived signer used outside its program", account=account.address.hex,
                    )
                match authority.address():
                    case Err(msg):
                        return fail(
                            ErrorCode.UNAUTHORIZED_TRANSFER, source, msg,
                            account=account.address.hex,
                        )
                    case Ok(derived):
                        if derived != account.owner:
                            return fail(
                                ErrorCode.UNAUTHORIZED_TRANSFER, source,
                                "derived signer does not own the account",
                                account=account.address.hex,
                            )
                        return Ok(None)

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    def mint_to(
        self,
        mint: Address,
        destination: Address,
        quantity: int,
        authority: TransferAuthority,
        signers: frozenset[Address],
        invoker: Address,
    ) -> Ok[None] | Err[RentFlowError]:
        """Create quantity new units of mint in destination."""
        src = f"{_SRC}.mint_to"
        match self.get_asset(mint):
            case Err() as e:
                return e
            case Ok(asset):
                pass
        account = self._accounts.get(destination)
        if account is None:
            return fail(ErrorCode.UNKNOWN_CUSTODY_ACCOUNT, src, account=destination.hex)
        if account.asset != mint:
            return fail(ErrorCode.ASSET_MISMATCH, src, account=destination.hex)
        if quantity <= 0:
            return fail(ErrorCode.INVALID_AMOUNT, src, field="quantity", actual_value=str(quantity))
        match authority:
            case WalletSigner(wallet=wallet) if wallet in signers and wallet == asset.mint_authority:
                pass
            case DerivedSigner() if authority.program_id == invoker and (
                authority.address() == Ok(asset.mint_authority)
            ):
                pass
            case _:
                return fail(
                    ErrorCode.UNAUTHORIZED_TRANSFER, src,
                    "authority is not the mint authority", account=mint.hex,
                )
        new_supply = self._supply[mint] + quantity
        if new_supply > U64_MAX or (
            asset.max_supply is not None and new_supply > asset.max_supply
        ):
            return fail(
                ErrorCode.MATH_OVERFLOW, src,
                f"supply {new_supply} exceeds cap", operation="mint",
            )
        self._supply[mint] = new_supply
        self._balances[destination] += quantity
        return Ok(None)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def _validate_move(
        self, move: Move, signers: frozenset[Address], invoker: Address,
    ) -> Ok[None] | Err[RentFlowError]:
        src = f"{_SRC}.execute"
        if move.quantity <= 0:
            return fail(
                ErrorCode.INVALID_AMOUNT, src, field="quantity", actual_value=str(move.quantity),
            )
        source = self._accounts.get(move.source)
        if source is None:
            return fail(ErrorCode.UNKNOWN_CUSTODY_ACCOUNT, src, account=move.source.hex)
        destination = self._accounts.get(move.destination)
        if destination is None:
            return fail(ErrorCode.UNKNOWN_CUSTODY_ACCOUNT, src, account=move.destination.hex)
        if source.asset != move.asset or destination.asset != move.asset:
            return fail(ErrorCode.ASSET_MISMATCH, src, account=move.source.hex)
        return self._authorize(source, move.authority, signers, invoker, src)

    def execute(
        self,
        tx: Transaction,
        signers: frozenset[Address],
        invoker: Address,
    ) -> Ok[ExecuteResult] | Err[RentFlowError]:
        """Execute a transaction atomically.

        1. Idempotency: an already-applied tx_id is Ok(ALREADY_APPLIED)
        2. Validate every move (accounts, asset, authority)
        3. Apply moves in order, saving old balances
        4. Any negative balance reverts ALL moves (InsufficientFunds)
        5. Record transaction
        """
        if tx.tx_id in self._applied_tx_ids:
            return Ok(ExecuteResult.ALREADY_APPLIED)

        for move in tx.moves:
            match self._validate_move(move, signers, invoker):
                case Err() as e:
                    return e
                case Ok():
                    pass

        old_balances: dict[Address, int] = {}
        for move in tx.moves:
            for key in (move.source, move.destination):
                if key not in old_balances:
                    old_balances[key] = self._balances[key]
            self._balances[move.source] -= move.quantity
            self._balances[move.destination] += move.quantity
            if self._balances[move.source] < 0:
                for key, val in old_balances.items():
                    self._balances[key] = val
                return fail(
                    ErrorCode.INSUFFICIENT_FUNDS, f"{_SRC}.execute",
                    f"tx {tx.tx_id}: needs {move.quantity}",
                    account=move.source.hex,
                )

        self._transactions.append(tx)
        self._applied_tx_ids.add(tx.tx_id)
        return Ok(ExecuteResult.APPLIED)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def balance(self, address: Address) -> int:
        return self._balances.get(address, 0)

    def balance_of(self, owner: Address, asset: Address) -> int:
        """Balance of the canonical custody account for (owner, asset)."""
        return self.balance(custody_address(owner, asset))

    def total_supply(self, mint: Address) -> int:
        return self._supply.get(mint, 0)

    def circulating(self, mint: Address) -> int:
        """Sum of balances across all accounts holding mint."""
        return sum(
            qty for addr, qty in self._balances.items()
            if addr in self._accounts and self._accounts[addr].asset == mint
        )

    def transaction_count(self) -> int:
        return len(self._transactions)

    def asset_kind(self, mint: Address) -> AssetKind | None:
        asset = self._assets.get(mint)
        return asset.kind if asset is not None else None

    def clone(self) -> CustodyLedger:
        """Deep copy, used to snapshot and restore around a request."""
        new = CustodyLedger()
        new._assets = dict(self._assets)
        new._accounts = dict(self._accounts)
        new._balances = defaultdict(int, self._balances)
        new._supply = defaultdict(int, self._supply)
        new._transactions = list(self._transactions)
        new._applied_tx_ids = set(self._applied_tx_ids)
        return new

    def restore(self, snapshot: CustodyLedger) -> None:
        """Replace all state with a snapshot taken by clone()."""
        self._assets = dict(snapshot._assets)
        self._accounts = dict(snapshot._accounts)
        self._balances = defaultdict(int, snapshot._balances)
        self._supply = defaultdict(int, snapshot._supply)
        self._transactions = list(snapshot._transactions)
        self._applied_tx_ids = set(snapshot._applied_tx_ids)

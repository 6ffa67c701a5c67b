"""
Append-only ledger over a git commit history.

The commit history is the only storage. Opening a ledger walks the graph
once; accounts and balances are folds over the resulting transaction
sequence and are recomputed on every call. Appending creates one new
commit on top of head and does not refresh this object: reopen to see it.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterable, Optional

from .account import Account, AccountType
from .config import RepoConfig, load_repo_config
from .errors import RepoError, ValidationError
from .graph import DEFAULT_IDENTITY, CommitGraph, GitCommitGraph, Identity
from .reader import LedgerEntry, read_entries
from .transaction import I32_MAX, I32_MIN, Transaction, encode_transaction

logger = logging.getLogger(__name__)


def fold_balances(transactions: Iterable[Transaction]) -> dict[Account, int]:
    """Left fold: each transaction debits `from` and credits `to`."""
    balances: dict[Account, int] = {}
    for t in transactions:
        balances[t.from_account] = balances.get(t.from_account, 0) - t.amount
        balances[t.to_account] = balances.get(t.to_account, 0) + t.amount
    return balances


class Ledger:
    """A gitcash ledger and all its transactions."""

    def __init__(
        self,
        graph: CommitGraph,
        config: RepoConfig,
        entries: Iterable[LedgerEntry],
        identity: Identity = DEFAULT_IDENTITY,
    ):
        self.graph = graph
        self.config = config
        self.identity = identity
        self._entries = tuple(entries)

    @classmethod
    def open(cls, repo_path: Path, identity: Identity = DEFAULT_IDENTITY) -> "Ledger":
        """Open the ledger repository at `repo_path` and load all transactions."""
        repo_path = Path(repo_path)
        logger.debug("Loading repository at %s", repo_path)
        graph = GitCommitGraph.open(repo_path)
        config = load_repo_config(repo_path)
        return cls.from_graph(graph, config, identity=identity)

    @classmethod
    def from_graph(
        cls,
        graph: CommitGraph,
        config: RepoConfig,
        identity: Identity = DEFAULT_IDENTITY,
    ) -> "Ledger":
        return cls(graph, config, read_entries(graph), identity=identity)

    # --- Reads ---

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return self._entries

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(e.transaction for e in self._entries)

    def accounts(self, account_type: Optional[AccountType] = None) -> set[Account]:
        """All accounts named by any transaction, optionally of one type."""
        accounts = {a for t in self.transactions for a in (t.from_account, t.to_account)}
        if account_type is not None:
            accounts = {a for a in accounts if a.account_type is account_type}
        return accounts

    def account_names(self, account_type: AccountType) -> list[str]:
        return sorted(a.name for a in self.accounts(account_type))

    def users(self) -> list[str]:
        return self.account_names(AccountType.USER)

    def balances(self) -> dict[Account, int]:
        return fold_balances(self.transactions)

    def balance(self, account: Account) -> int:
        return self.balances().get(account, 0)

    def convert_amount(self, display_amount: float) -> int:
        """Turn a decimal display amount into minor units (half away from zero)."""
        value = Decimal(str(display_amount))
        if not value.is_finite():
            raise ValidationError(f"Amount {display_amount} is not a finite number")
        scaled = value * self.config.currency.divisor
        amount = int(scaled.to_integral_value(rounding=ROUND_HALF_UP))
        if not I32_MIN <= amount <= I32_MAX:
            raise ValidationError(f"Amount {display_amount} is out of range")
        return amount

    # --- Writes ---

    def create_transaction(self, transaction: Transaction) -> str:
        """
        Record `transaction` as a new commit on top of head.

        Returns the new commit id. The tree of head is carried over unchanged.
        Raises ConflictError if head moves before the ref update.
        """
        if (
            transaction.from_account.account_type is AccountType.POINT_OF_SALE
            and transaction.amount != 0
        ):
            raise ValidationError(
                f"Point of sale {transaction.from_account.name} cannot send money"
            )

        message = encode_transaction(transaction, self.config)

        head = self.graph.resolve_head()
        if head is None:
            raise RepoError("Repository has no commits; cannot append a transaction")
        tree = self.graph.read_commit(head).tree

        commit_id = self.graph.create_commit(tree, (head,), message, self.identity)
        self.graph.update_head(commit_id, head)
        logger.info("Created transaction commit %s", commit_id)
        return commit_id

    def create_user(self, name: str, via: Account) -> str:
        """Register a new user with a zero-amount transaction from `via`."""
        if name in self.users():
            raise ValidationError(f"Username already exists: {name}")
        return self.create_transaction(
            Transaction(from_account=via, to_account=Account.user(name), amount=0)
        )

"""
gitcash - an append-only ledger stored in git commit history.

Every transaction is a TOML record inside a commit message. Balances are
always recomputed from the history; nothing else is persisted.
"""

__version__ = "0.1.0"

from .account import Account, AccountType, parse_account, validate_name
from .config import ClientConfig, Currency, RepoConfig, load_client_config, load_repo_config
from .errors import (
    ConflictError,
    GitCashError,
    ParseError,
    RepoError,
    TransactionParseError,
    ValidationError,
)
from .graph import Commit, CommitGraph, GitCommitGraph, Identity, MemoryCommitGraph
from .ledger import Ledger
from .reader import LedgerEntry, read_entries, read_transactions
from .transaction import Transaction, TransactionMeta, decode_transaction, encode_transaction

__all__ = [
    "__version__",
    "Account",
    "AccountType",
    "parse_account",
    "validate_name",
    "ClientConfig",
    "Currency",
    "RepoConfig",
    "load_client_config",
    "load_repo_config",
    "ConflictError",
    "GitCashError",
    "ParseError",
    "RepoError",
    "TransactionParseError",
    "ValidationError",
    "Commit",
    "CommitGraph",
    "GitCommitGraph",
    "Identity",
    "MemoryCommitGraph",
    "Ledger",
    "LedgerEntry",
    "read_entries",
    "read_transactions",
    "Transaction",
    "TransactionMeta",
    "decode_transaction",
    "encode_transaction",
]

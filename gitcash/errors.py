"""
Error types for the gitcash ledger engine.

All failures surface as subclasses of GitCashError so callers (the CLI,
embedders) can catch one base type. Loading a ledger fails as a whole:
a single malformed transaction commit aborts the load.
"""

from __future__ import annotations


class GitCashError(Exception):
    """Base class for all gitcash errors."""


class RepoError(GitCashError):
    """Repository storage or repository config cannot be opened, read or written."""


class ConflictError(RepoError):
    """Head moved between reading it and advancing it; reload and retry."""


class ParseError(GitCashError):
    """An account string could not be parsed."""


class TransactionParseError(ParseError):
    """A transaction commit carries an invalid payload."""


class ValidationError(GitCashError):
    """A value violates a model invariant (account name, amount, ...)."""

"""Reconstruct the ordered transaction log from a commit graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import TransactionParseError
from .graph import CommitGraph
from .transaction import Transaction, decode_transaction, is_transaction_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    """A transaction together with the commit that carries it."""

    commit_id: str
    transaction: Transaction


def read_entries(graph: CommitGraph) -> list[LedgerEntry]:
    """
    Walk the graph oldest-first and decode every transaction commit.

    Commits without the transaction marker are not ledger data and are
    skipped. A marked commit that fails to decode aborts the whole load.
    """
    entries: list[LedgerEntry] = []
    skipped = 0
    for commit_id in graph.walk_topological():
        commit = graph.read_commit(commit_id)
        if not is_transaction_message(commit.message):
            skipped += 1
            continue
        logger.debug("Processing commit %s", commit_id)
        try:
            transaction = decode_transaction(commit.message)
        except TransactionParseError as e:
            raise TransactionParseError(f"Commit {commit_id}: {e}") from e
        entries.append(LedgerEntry(commit_id=commit_id, transaction=transaction))

    logger.debug("Loaded %d transactions (%d other commits)", len(entries), skipped)
    return entries


def read_transactions(graph: CommitGraph) -> list[Transaction]:
    return [entry.transaction for entry in read_entries(graph)]

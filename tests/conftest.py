"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from gitcash.account import Account
from gitcash.config import Currency, RepoConfig
from gitcash.graph import MemoryCommitGraph
from gitcash.transaction import Transaction, encode_transaction

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")

REPO_CONFIG_TOML = """\
name = "Test Ledger"

[currency]
code = "CHF"
divisor = 100
"""


def run_git(repo: Path, *args: str, input: str | None = None) -> str:
    env = dict(os.environ)
    env.update(GIT_ENV)
    result = subprocess.run(
        ["git", "-C", str(repo), "-c", "commit.gpgsign=false", *args],
        input=input,
        capture_output=True,
        text=True,
        env=env,
        check=True,
    )
    return result.stdout


def git_commit_message(repo: Path, message: str) -> str:
    """Create an empty commit with exactly `message`; return its id."""
    run_git(repo, "commit", "--allow-empty", "--cleanup=verbatim", "-q", "-F", "-", input=message)
    return run_git(repo, "rev-parse", "HEAD").strip()


def git_write_raw_commit(repo: Path, message: bytes, *, headers: bytes = b"") -> str:
    """Write a commit object byte for byte on top of HEAD and advance HEAD to it."""
    head = run_git(repo, "rev-parse", "HEAD").strip()
    tree = run_git(repo, "rev-parse", "HEAD^{tree}").strip()
    raw = (
        f"tree {tree}\n"
        f"parent {head}\n"
        "author Test <test@example.com> 0 +0000\n"
        "committer Test <test@example.com> 0 +0000\n"
    ).encode("ascii")
    raw += headers + b"\n" + message
    result = subprocess.run(
        ["git", "-C", str(repo), "hash-object", "-t", "commit", "-w", "--stdin"],
        input=raw,
        capture_output=True,
        check=True,
    )
    commit_id = result.stdout.decode("ascii").strip()
    run_git(repo, "update-ref", "HEAD", commit_id)
    return commit_id


def tx(src: str, dst: str, amount: int, **kwargs) -> Transaction:
    return Transaction(
        from_account=Account.parse(src),
        to_account=Account.parse(dst),
        amount=amount,
        **kwargs,
    )


SEED_TRANSACTIONS = [
    ("source:cash", "user:alice", 1000),
    ("source:cash", "user:bob", 500),
    ("user:alice", "pos:shop1", 300),
]


@pytest.fixture
def repo_config() -> RepoConfig:
    return RepoConfig(name="Test Ledger", currency=Currency(code="CHF", divisor=100))


@pytest.fixture
def empty_graph() -> MemoryCommitGraph:
    """In-memory graph with a single non-ledger root commit."""
    graph = MemoryCommitGraph()
    graph.commit("Initial commit")
    return graph


@pytest.fixture
def seeded_graph(empty_graph: MemoryCommitGraph, repo_config: RepoConfig) -> MemoryCommitGraph:
    """In-memory graph holding the three seed transactions."""
    for src, dst, amount in SEED_TRANSACTIONS:
        empty_graph.commit(encode_transaction(tx(src, dst, amount), repo_config))
    return empty_graph


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A git ledger repository with config and one non-ledger commit."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    repo = tmp_path / "ledger"
    repo.mkdir()
    run_git(repo, "init", "-q")
    (repo / "gitcash.toml").write_text(REPO_CONFIG_TOML, encoding="utf-8")
    run_git(repo, "add", "gitcash.toml")
    run_git(repo, "commit", "-q", "-m", "Initial commit")
    return repo


@pytest.fixture
def seeded_git_repo(git_repo: Path, repo_config: RepoConfig) -> Path:
    for src, dst, amount in SEED_TRANSACTIONS:
        git_commit_message(git_repo, encode_transaction(tx(src, dst, amount), repo_config))
    return git_repo

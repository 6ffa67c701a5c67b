"""
Commit graph storage substrate.

The ledger needs only five operations from version control:

- resolve_head      - current head commit id (None for an empty repo)
- read_commit       - message, parents and tree of one commit
- walk_topological  - all commits reachable from head, ancestors first
- create_commit     - write a new commit object
- update_head       - advance head, compare-and-swap on the old value

GitCommitGraph drives the git executable. MemoryCommitGraph keeps
everything in a dict and is what the tests run against.
"""

from __future__ import annotations

import hashlib
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .errors import ConflictError, RepoError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Author/committer identity used for ledger commits."""

    name: str
    email: str


DEFAULT_IDENTITY = Identity(name="gitcash", email="gitcash@localhost")


@dataclass(frozen=True)
class Commit:
    id: str
    tree: str
    parents: tuple[str, ...]
    message: str


class CommitGraph(Protocol):
    """Protocol for the commit graph backing a ledger."""

    def resolve_head(self) -> str | None:
        ...

    def read_commit(self, commit_id: str) -> Commit:
        ...

    def walk_topological(self) -> list[str]:
        """
        Commit ids reachable from head, ancestors before descendants.

        Order among unrelated commits must be deterministic.
        """
        ...

    def create_commit(
        self,
        tree: str,
        parents: tuple[str, ...],
        message: str,
        identity: Identity,
    ) -> str:
        ...

    def update_head(self, new_id: str, expected_old: str | None) -> None:
        """
        Point head at `new_id` if it still points at `expected_old`.

        Raises ConflictError when head has moved.
        """
        ...


# -----------------------------------------------------------------------------
# git executable backend
# -----------------------------------------------------------------------------


def parse_raw_commit(commit_id: str, raw: bytes) -> Commit:
    """
    Parse a raw commit object (`git cat-file commit` output) into a Commit.

    Messages that are not valid UTF-8 come back as "" so the reader treats
    the commit as non-ledger data.
    """
    header, sep, body = raw.partition(b"\n\n")
    tree = ""
    parents: list[str] = []
    for line in header.decode("utf-8", errors="replace").split("\n"):
        key, _, value = line.partition(" ")
        if key == "tree":
            tree = value
        elif key == "parent":
            parents.append(value)
    if not tree:
        raise RepoError(f"Commit {commit_id} has no tree")

    message = ""
    if sep:
        try:
            message = body.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Commit %s has a non-UTF-8 message", commit_id)
    return Commit(id=commit_id, tree=tree, parents=tuple(parents), message=message)


def parse_batch_output(data: bytes) -> dict[str, Commit]:
    """Parse `git cat-file --batch` output holding commit objects."""
    commits: dict[str, Commit] = {}
    pos = 0
    while pos < len(data):
        end = data.index(b"\n", pos)
        fields = data[pos:end].decode("ascii", errors="replace").split()
        pos = end + 1
        if len(fields) != 3:
            raise RepoError(f"Cannot read object: {' '.join(fields)}")
        object_id, kind, size = fields[0], fields[1], int(fields[2])
        if kind != "commit":
            raise RepoError(f"Object {object_id} is a {kind}, not a commit")
        commits[object_id] = parse_raw_commit(object_id, data[pos : pos + size])
        # contents are followed by a single LF
        pos += size + 1
    return commits


class GitCommitGraph:
    """Commit graph of an on-disk git repository."""

    def __init__(self, repo_path: Path, git: str = "git"):
        self.repo_path = repo_path
        self.git = git
        # commits are immutable, so anything read once can be kept
        self._commits: dict[str, Commit] = {}

    @classmethod
    def open(cls, repo_path: Path, git: str = "git") -> "GitCommitGraph":
        """Open the repository at `repo_path`; RepoError if it is not one."""
        repo_path = Path(repo_path)
        if not repo_path.is_dir():
            raise RepoError(f"Failed to open repo: {repo_path} is not a directory")
        graph = cls(repo_path.resolve(), git=git)
        graph._run("rev-parse", "--git-dir")
        return graph

    def _exec(
        self,
        *args: str,
        input: bytes | None = None,
        env: dict[str, str] | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[bytes]:
        cmd = [self.git, "-C", str(self.repo_path), *args]
        logger.debug("git %s", " ".join(args))
        try:
            return subprocess.run(
                cmd,
                input=input,
                capture_output=True,
                env=env,
                check=check,
            )
        except FileNotFoundError as e:
            raise RepoError(f"git executable not found: {self.git}") from e
        except subprocess.CalledProcessError as e:
            detail = e.stderr.decode("utf-8", errors="replace").strip() or f"exit code {e.returncode}"
            raise RepoError(f"git {args[0]} failed in {self.repo_path}: {detail}") from e

    def _run(
        self,
        *args: str,
        input: str | None = None,
        env: dict[str, str] | None = None,
    ) -> str:
        raw_input = input.encode("utf-8") if input is not None else None
        result = self._exec(*args, input=raw_input, env=env)
        return result.stdout.decode("utf-8", errors="replace")

    def _ref_exists(self, ref: str) -> bool:
        """True if `ref` is stored as a loose ref or in packed-refs."""
        loose = Path(self._run("rev-parse", "--git-path", ref).strip())
        if not loose.is_absolute():
            loose = self.repo_path / loose
        if loose.exists():
            return True
        packed = Path(self._run("rev-parse", "--git-path", "packed-refs").strip())
        if not packed.is_absolute():
            packed = self.repo_path / packed
        if not packed.is_file():
            return False
        for line in packed.read_text(encoding="utf-8", errors="replace").split("\n"):
            if line.endswith(f" {ref}"):
                return True
        return False

    def resolve_head(self) -> str | None:
        """
        Current head commit id, or None for an unborn branch.

        A head that points at a missing or non-commit object, or a branch
        ref with unreadable contents, raises RepoError.
        """
        result = self._exec("rev-parse", "-q", "--verify", "HEAD", check=False)
        if result.returncode == 0:
            head = result.stdout.decode("ascii", errors="replace").strip()
            kind = self._exec("cat-file", "-t", head, check=False)
            if kind.returncode != 0 or kind.stdout.strip() != b"commit":
                raise RepoError(f"HEAD points at {head}, which is not a readable commit")
            return head

        symbolic = self._exec("symbolic-ref", "-q", "HEAD", check=False)
        if symbolic.returncode != 0:
            raise RepoError("HEAD cannot be resolved")
        ref = symbolic.stdout.decode("utf-8", errors="replace").strip()
        if self._ref_exists(ref):
            raise RepoError(f"HEAD ref {ref} is corrupt")
        return None

    def read_commit(self, commit_id: str) -> Commit:
        commit = self._commits.get(commit_id)
        if commit is None:
            raw = self._exec("cat-file", "commit", commit_id).stdout
            commit = parse_raw_commit(commit_id, raw)
            self._commits[commit_id] = commit
        return commit

    def walk_topological(self) -> list[str]:
        if self.resolve_head() is None:
            return []
        out = self._run("rev-list", "--topo-order", "--reverse", "HEAD")
        commit_ids = [line for line in out.split("\n") if line]
        self._load_commits([c for c in commit_ids if c not in self._commits])
        return commit_ids

    def _load_commits(self, commit_ids: list[str]) -> None:
        """Read many commits with one `cat-file --batch` process."""
        if not commit_ids:
            return
        request = "".join(f"{c}\n" for c in commit_ids).encode("ascii")
        out = self._exec("cat-file", "--batch", input=request).stdout
        self._commits.update(parse_batch_output(out))

    def create_commit(
        self,
        tree: str,
        parents: tuple[str, ...],
        message: str,
        identity: Identity,
    ) -> str:
        env = dict(os.environ)
        env.update(
            {
                "GIT_AUTHOR_NAME": identity.name,
                "GIT_AUTHOR_EMAIL": identity.email,
                "GIT_COMMITTER_NAME": identity.name,
                "GIT_COMMITTER_EMAIL": identity.email,
            }
        )
        args = ["commit-tree", tree]
        for parent in parents:
            args.extend(["-p", parent])
        return self._run(*args, input=message, env=env).strip()

    def update_head(self, new_id: str, expected_old: str | None) -> None:
        # update-ref checks the old value under the ref lock; "" means must not exist
        old = expected_old if expected_old is not None else ""
        try:
            self._run("update-ref", "-m", "gitcash: append transaction", "HEAD", new_id, old)
        except RepoError:
            if self.resolve_head() != expected_old:
                raise ConflictError(
                    f"HEAD moved while appending (expected {expected_old}); reload and retry"
                )
            raise


# -----------------------------------------------------------------------------
# In-memory backend
# -----------------------------------------------------------------------------


EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


class MemoryCommitGraph:
    """Commit graph held in memory. Commit ids are SHA-1 of their content."""

    def __init__(self) -> None:
        self.commits: dict[str, Commit] = {}
        self.head: str | None = None

    def resolve_head(self) -> str | None:
        return self.head

    def read_commit(self, commit_id: str) -> Commit:
        try:
            return self.commits[commit_id]
        except KeyError:
            raise RepoError(f"Unknown commit: {commit_id}") from None

    def walk_topological(self) -> list[str]:
        if self.head is None:
            return []
        order: list[str] = []
        seen: set[str] = set()
        # Iterative post-order DFS: a commit is emitted after all its parents.
        stack: list[tuple[str, bool]] = [(self.head, False)]
        while stack:
            commit_id, expanded = stack.pop()
            if expanded:
                order.append(commit_id)
                continue
            if commit_id in seen:
                continue
            seen.add(commit_id)
            stack.append((commit_id, True))
            for parent in reversed(self.read_commit(commit_id).parents):
                if parent not in seen:
                    stack.append((parent, False))
        return order

    def create_commit(
        self,
        tree: str,
        parents: tuple[str, ...],
        message: str,
        identity: Identity,
    ) -> str:
        for parent in parents:
            self.read_commit(parent)
        hasher = hashlib.sha1()
        hasher.update(f"tree {tree}\n".encode("utf-8"))
        for parent in parents:
            hasher.update(f"parent {parent}\n".encode("utf-8"))
        hasher.update(f"author {identity.name} <{identity.email}>\n".encode("utf-8"))
        hasher.update(f"seq {len(self.commits)}\n\n".encode("utf-8"))
        hasher.update(message.encode("utf-8"))
        commit_id = hasher.hexdigest()
        self.commits[commit_id] = Commit(
            id=commit_id, tree=tree, parents=tuple(parents), message=message
        )
        return commit_id

    def update_head(self, new_id: str, expected_old: str | None) -> None:
        self.read_commit(new_id)
        if self.head != expected_old:
            raise ConflictError(
                f"HEAD moved while appending (expected {expected_old}); reload and retry"
            )
        self.head = new_id

    def commit(
        self,
        message: str,
        *,
        parents: tuple[str, ...] | None = None,
        tree: str = EMPTY_TREE,
        identity: Identity = DEFAULT_IDENTITY,
    ) -> str:
        """Create a commit on top of head (or `parents`) and advance head to it."""
        if parents is None:
            parents = (self.head,) if self.head else ()
        commit_id = self.create_commit(tree, parents, message, identity)
        self.head = commit_id
        return commit_id

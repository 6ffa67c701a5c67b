"""
Repository and client configuration.

Two TOML files are involved:

- gitcash.toml at the ledger root (RepoConfig): ledger name and currency.
- a client config per till (ClientConfig): which repository to write to,
  which point-of-sale account the till books against, and the commit
  identity it writes with.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any

from .account import Account, AccountType
from .errors import ParseError, RepoError, ValidationError
from .graph import Identity

REPO_CONFIG_FILENAME = "gitcash.toml"


@dataclass(frozen=True)
class Currency:
    code: str
    divisor: int


@dataclass(frozen=True)
class RepoConfig:
    """Ledger-wide settings, loaded once per ledger open."""

    name: str
    currency: Currency

    def format_amount(self, amount: int) -> str:
        """Render a minor-unit amount as a 2-decimal display string."""
        value = Decimal(amount) / Decimal(self.currency.divisor)
        return f"{value:.2f}"

    def format_money(self, amount: int) -> str:
        return f"{self.format_amount(amount)} {self.currency.code}"


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RepoError(f"Could not read config from {path}: {e}") from e
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise RepoError(f"Could not parse config at {path}: {e}") from e


def _required_str(data: dict[str, Any], key: str, path: Path) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise RepoError(f"{path}: '{key}' is required and must be a non-empty string")
    return value.strip()


def parse_repo_config(data: dict[str, Any], path: Path) -> RepoConfig:
    name = _required_str(data, "name", path)

    currency = data.get("currency")
    if not isinstance(currency, dict):
        raise RepoError(f"{path}: [currency] table is required")
    code = _required_str(currency, "code", path)

    divisor = currency.get("divisor")
    if isinstance(divisor, bool) or not isinstance(divisor, int) or divisor <= 0:
        raise RepoError(f"{path}: 'currency.divisor' must be a positive integer")

    return RepoConfig(name=name, currency=Currency(code=code, divisor=divisor))


def load_repo_config(path: Path) -> RepoConfig:
    """Load the repository config.

    `path` may be the ledger root or the config file itself.
    """
    if path.is_dir():
        path = path / REPO_CONFIG_FILENAME
    return parse_repo_config(_read_toml(path), path)


@dataclass(frozen=True)
class ClientConfig:
    """Settings for one till writing to a ledger."""

    repo_path: Path
    account: Account
    git_name: str
    git_email: str

    @property
    def identity(self) -> Identity:
        return Identity(name=self.git_name, email=self.git_email)


def load_client_config(path: Path) -> ClientConfig:
    """Load a client config; the configured account must be a point of sale."""
    data = _read_toml(path)

    raw_repo = _required_str(data, "repo_path", path)
    repo_path = Path(raw_repo).expanduser()
    if not repo_path.is_absolute():
        repo_path = (path.parent / repo_path).resolve()

    try:
        account = Account.parse(_required_str(data, "account", path))
    except ParseError as e:
        raise RepoError(f"{path}: invalid 'account': {e}") from e
    if account.account_type is not AccountType.POINT_OF_SALE:
        raise ValidationError(
            f"Account type must be {AccountType.POINT_OF_SALE.label}, "
            f"not {account.account_type.label}"
        )

    return ClientConfig(
        repo_path=repo_path,
        account=account,
        git_name=_required_str(data, "git_name", path),
        git_email=_required_str(data, "git_email", path),
    )

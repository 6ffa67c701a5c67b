"""Tests for repository and client config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitcash.account import Account
from gitcash.config import (
    REPO_CONFIG_FILENAME,
    Currency,
    RepoConfig,
    load_client_config,
    load_repo_config,
)
from gitcash.errors import RepoError, ValidationError
from gitcash.graph import Identity

from conftest import REPO_CONFIG_TOML


def test_load_repo_config_from_root(tmp_path: Path) -> None:
    (tmp_path / REPO_CONFIG_FILENAME).write_text(REPO_CONFIG_TOML, encoding="utf-8")
    config = load_repo_config(tmp_path)
    assert config == RepoConfig(name="Test Ledger", currency=Currency(code="CHF", divisor=100))


def test_load_repo_config_from_file(tmp_path: Path) -> None:
    path = tmp_path / "other.toml"
    path.write_text(REPO_CONFIG_TOML, encoding="utf-8")
    assert load_repo_config(path).currency.code == "CHF"


def test_missing_repo_config(tmp_path: Path) -> None:
    with pytest.raises(RepoError, match="Could not read"):
        load_repo_config(tmp_path)


@pytest.mark.parametrize(
    "content",
    [
        "name = ",  # invalid TOML
        '[currency]\ncode = "CHF"\ndivisor = 100\n',  # no name
        'name = "x"\n',  # no currency
        'name = "x"\n[currency]\ndivisor = 100\n',  # no code
        'name = "x"\n[currency]\ncode = "CHF"\n',  # no divisor
        'name = "x"\n[currency]\ncode = "CHF"\ndivisor = 0\n',
        'name = "x"\n[currency]\ncode = "CHF"\ndivisor = -5\n',
        'name = "x"\n[currency]\ncode = "CHF"\ndivisor = "100"\n',
        'name = "x"\n[currency]\ncode = "CHF"\ndivisor = true\n',
    ],
)
def test_invalid_repo_config(tmp_path: Path, content: str) -> None:
    (tmp_path / REPO_CONFIG_FILENAME).write_text(content, encoding="utf-8")
    with pytest.raises(RepoError):
        load_repo_config(tmp_path)


def test_format_amount() -> None:
    config = RepoConfig(name="x", currency=Currency(code="EUR", divisor=100))
    assert config.format_amount(1234) == "12.34"
    assert config.format_amount(-1500) == "-15.00"
    assert config.format_money(5) == "0.05 EUR"


def _write_client(tmp_path: Path, account: str = "pos:kiosk", repo: str = "ledger") -> Path:
    path = tmp_path / "till.toml"
    path.write_text(
        f'repo_path = "{repo}"\n'
        f'account = "{account}"\n'
        'git_name = "Kiosk"\n'
        'git_email = "kiosk@example.com"\n',
        encoding="utf-8",
    )
    return path


def test_load_client_config(tmp_path: Path) -> None:
    client = load_client_config(_write_client(tmp_path))
    assert client.repo_path == (tmp_path / "ledger").resolve()
    assert client.account == Account.point_of_sale("kiosk")
    assert client.identity == Identity(name="Kiosk", email="kiosk@example.com")


def test_client_account_must_be_point_of_sale(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="PointOfSale"):
        load_client_config(_write_client(tmp_path, account="user:alice"))


def test_client_account_must_parse(tmp_path: Path) -> None:
    with pytest.raises(RepoError):
        load_client_config(_write_client(tmp_path, account="kiosk"))


def test_client_config_missing_keys(tmp_path: Path) -> None:
    path = tmp_path / "till.toml"
    path.write_text('repo_path = "ledger"\n', encoding="utf-8")
    with pytest.raises(RepoError):
        load_client_config(path)

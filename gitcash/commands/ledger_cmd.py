"""Ledger CLI commands."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..account import Account
from ..config import ClientConfig
from ..errors import GitCashError
from ..graph import DEFAULT_IDENTITY, Identity
from ..ledger import Ledger
from ..transaction import Transaction, TransactionMeta
from ..validators import validate_known_username, validate_new_username


def _open(repo_path: Path, identity: Identity = DEFAULT_IDENTITY) -> Ledger:
    return Ledger.open(repo_path, identity=identity)


def _fail(e: GitCashError) -> int:
    Console(stderr=True).print(f"{type(e).__name__}: {escape(str(e))}", style="bold red")
    return 1


def run_accounts(repo_path: Path) -> int:
    console = Console()
    try:
        ledger = _open(repo_path)
    except GitCashError as e:
        return _fail(e)

    table = Table(title=f"Accounts ({ledger.config.name})")
    table.add_column("account", style="cyan", no_wrap=True)
    table.add_column("type", style="magenta")
    for account in sorted(ledger.accounts()):
        table.add_row(account.name, account.account_type.label)

    console.print(table)
    return 0


def run_balances(repo_path: Path, *, account_type: str | None = None) -> int:
    console = Console()
    try:
        ledger = _open(repo_path)
    except GitCashError as e:
        return _fail(e)

    balances = ledger.balances()
    accounts = sorted(balances)
    if account_type:
        accounts = [a for a in accounts if a.account_type.tag == account_type]

    code = ledger.config.currency.code
    table = Table(title=f"Balances ({ledger.config.name})")
    table.add_column("account", style="cyan", no_wrap=True)
    table.add_column("type", style="magenta")
    table.add_column(f"balance ({code})", justify="right")
    for account in accounts:
        amount = balances[account]
        table.add_row(
            account.name,
            account.account_type.label,
            ledger.config.format_amount(amount),
            style="red" if amount < 0 else None,
        )

    console.print(table)
    return 0


def run_history(repo_path: Path, *, limit: int | None = None) -> int:
    console = Console()
    try:
        ledger = _open(repo_path)
    except GitCashError as e:
        return _fail(e)

    entries = list(ledger.entries)
    if limit is not None:
        entries = entries[-limit:] if limit > 0 else []

    table = Table(title=f"Transactions ({ledger.config.name})")
    table.add_column("commit", style="dim", no_wrap=True)
    table.add_column("from", style="cyan")
    table.add_column("to", style="cyan")
    table.add_column(f"amount ({ledger.config.currency.code})", justify="right")
    table.add_column("description")
    for entry in entries:
        t = entry.transaction
        table.add_row(
            entry.commit_id[:10],
            str(t.from_account),
            str(t.to_account),
            ledger.config.format_amount(t.amount),
            escape(t.description or ""),
        )

    console.print(table)
    return 0


def run_create_user(client: ClientConfig, name: str) -> int:
    console = Console()
    try:
        ledger = _open(client.repo_path, client.identity)
        name = validate_new_username(name, ledger.users())
        commit_id = ledger.create_user(name, via=client.account)
    except GitCashError as e:
        return _fail(e)

    console.print(f"Created user [bold]{name}[/bold] ({commit_id[:10]})")
    return 0


def run_deposit(client: ClientConfig, user: str, amount: float, *, source: str = "cash") -> int:
    console = Console()
    try:
        ledger = _open(client.repo_path, client.identity)
        validate_known_username(user, ledger.users())
        transaction = Transaction(
            from_account=Account.source(source),
            to_account=Account.user(user),
            amount=ledger.convert_amount(amount),
        )
        commit_id = ledger.create_transaction(transaction)
    except GitCashError as e:
        return _fail(e)

    console.print(
        f"Deposited {ledger.config.format_money(transaction.amount)} "
        f"for [bold]{user}[/bold] ({commit_id[:10]})"
    )
    return 0


def run_pay(
    client: ClientConfig,
    user: str,
    amount: float,
    *,
    description: str | None = None,
    item_class: str | None = None,
    ean: int | None = None,
) -> int:
    console = Console()
    try:
        ledger = _open(client.repo_path, client.identity)
        validate_known_username(user, ledger.users())
        meta = None
        if item_class is not None or ean is not None:
            meta = TransactionMeta(class_=item_class, ean=ean)
        transaction = Transaction(
            from_account=Account.user(user),
            to_account=client.account,
            amount=ledger.convert_amount(amount),
            description=description,
            meta=meta,
        )
        commit_id = ledger.create_transaction(transaction)
    except GitCashError as e:
        return _fail(e)

    balance = ledger.balance(Account.user(user)) - transaction.amount
    console.print(
        f"[bold]{user}[/bold] paid {ledger.config.format_money(transaction.amount)} "
        f"to {client.account.name} ({commit_id[:10]})"
    )
    console.print(f"  new balance: {ledger.config.format_money(balance)}", style="dim")
    return 0


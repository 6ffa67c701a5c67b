"""CLI entrypoint for gitcash."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import REPO_CONFIG_FILENAME, ClientConfig, load_client_config
from .errors import GitCashError


def _auto_detect_repo(start: Path) -> Path | None:
    """Find a ledger root (a directory holding gitcash.toml) by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / REPO_CONFIG_FILENAME).is_file():
            return p
    return None


def _setup_logging(debug: bool) -> None:
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


@click.group()
@click.version_option(__version__, prog_name="gitcash")
@click.option(
    "--repo-path",
    "-r",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the ledger repository (defaults to the client config, then auto-detect)",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    envvar="GITCASH_CONFIG",
    help="Client config (repo_path, account, git_name, git_email); required for writes",
)
@click.option("--debug", is_flag=True, help="Log commit processing to stderr")
@click.pass_context
def cli(ctx: click.Context, repo_path: Path | None, config_path: Path | None, debug: bool) -> None:
    """gitcash - an append-only ledger stored in git history.

    Read accounts and balances, and record deposits and payments.
    """
    _setup_logging(debug)
    ctx.ensure_object(dict)

    client: ClientConfig | None = None
    if config_path is not None:
        try:
            client = load_client_config(config_path)
        except GitCashError as e:
            raise click.ClickException(str(e)) from e

    if repo_path is None and client is not None:
        repo_path = client.repo_path
    if repo_path is None:
        repo_path = _auto_detect_repo(Path.cwd())

    ctx.obj["client"] = client
    ctx.obj["repo_path"] = repo_path


def _repo_path(ctx: click.Context) -> Path:
    repo_path = ctx.obj.get("repo_path")
    if repo_path is None:
        raise click.ClickException(
            "Ledger not found. Pass --repo-path /path/to/ledger or run from inside it."
        )
    return repo_path


def _client(ctx: click.Context) -> ClientConfig:
    client = ctx.obj.get("client")
    if client is None:
        raise click.ClickException("This command writes to the ledger and needs --config.")
    return client


@cli.command("accounts")
@click.pass_context
def accounts(ctx: click.Context) -> None:
    """List all accounts that appear in the ledger."""
    from .commands.ledger_cmd import run_accounts

    sys.exit(run_accounts(_repo_path(ctx)))


@cli.command("balances")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(["user", "pos", "source"]),
    default=None,
    help="Only show accounts of this type",
)
@click.pass_context
def balances(ctx: click.Context, account_type: str | None) -> None:
    """Show the balance of every account."""
    from .commands.ledger_cmd import run_balances

    sys.exit(run_balances(_repo_path(ctx), account_type=account_type))


@cli.command("history")
@click.option("--limit", type=click.IntRange(min=0), default=None, help="Only show the most recent N transactions")
@click.pass_context
def history(ctx: click.Context, limit: int | None) -> None:
    """List transactions oldest first."""
    from .commands.ledger_cmd import run_history

    sys.exit(run_history(_repo_path(ctx), limit=limit))


@cli.command("create-user")
@click.argument("name")
@click.pass_context
def create_user(ctx: click.Context, name: str) -> None:
    """Register a new user account.

    Examples:

        gitcash -c till.toml create-user alice
    """
    from .commands.ledger_cmd import run_create_user

    sys.exit(run_create_user(_client(ctx), name))


@cli.command("deposit")
@click.argument("user")
@click.argument("amount", type=float)
@click.option("--source", default="cash", show_default=True, help="Source account name")
@click.pass_context
def deposit(ctx: click.Context, user: str, amount: float, source: str) -> None:
    """Deposit AMOUNT (in display units) into USER's account."""
    from .commands.ledger_cmd import run_deposit

    sys.exit(run_deposit(_client(ctx), user, amount, source=source))


@cli.command("pay")
@click.argument("user")
@click.argument("amount", type=float)
@click.option("--description", "-d", default=None, help="Free-text description")
@click.option("--class", "item_class", default=None, help="Product class tag")
@click.option("--ean", type=click.IntRange(min=0, max=2**64 - 1), default=None, help="Product EAN")
@click.pass_context
def pay(
    ctx: click.Context,
    user: str,
    amount: float,
    description: str | None,
    item_class: str | None,
    ean: int | None,
) -> None:
    """USER pays AMOUNT (in display units) to this till's point of sale.

    Examples:

        gitcash -c till.toml pay alice 2.50 -d "Club Mate" --ean 4029764001807
    """
    from .commands.ledger_cmd import run_pay

    sys.exit(
        run_pay(
            _client(ctx),
            user,
            amount,
            description=description,
            item_class=item_class,
            ean=ean,
        )
    )


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()

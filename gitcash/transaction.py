"""
Transactions and their embedding in commit messages.

A ledger commit message looks like:

    Transaction: User alice pays 3.00 CHF to PointOfSale kiosk

    ---
    from = "user:alice"
    to = "pos:kiosk"
    amount = 300
    description = "Coffee"

    [meta]
    class = "drink"
    ean = 7610000000000
    ---

The first line is a human summary and is never parsed back. Only the TOML
record between the two `---` lines is authoritative.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import tomli_w

from .account import Account, AccountType
from .errors import ParseError, TransactionParseError, ValidationError

if TYPE_CHECKING:
    from .config import RepoConfig

MARKER = "Transaction: "
DELIMITER = "---"

I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
U64_MAX = 2**64 - 1


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_amount(amount: Any) -> None:
    """Amounts are signed 32-bit integers in the currency's minor unit."""
    if not _is_int(amount):
        raise ValidationError(f"Amount must be an integer, not {type(amount).__name__}")
    if not I32_MIN <= amount <= I32_MAX:
        raise ValidationError(f"Amount {amount} does not fit a signed 32-bit integer")


@dataclass(frozen=True)
class TransactionMeta:
    """Optional point-of-sale tagging for a line item."""

    class_: str | None = None
    ean: int | None = None

    def __post_init__(self) -> None:
        if self.class_ is not None and not isinstance(self.class_, str):
            raise ValidationError("meta.class must be a string")
        if self.ean is not None and (not _is_int(self.ean) or not 0 <= self.ean <= U64_MAX):
            raise ValidationError(f"meta.ean must be an unsigned 64-bit integer, got {self.ean!r}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.class_ is not None:
            data["class"] = self.class_
        if self.ean is not None:
            data["ean"] = self.ean
        return data


@dataclass(frozen=True)
class Transaction:
    """A single movement of value from one account to another."""

    from_account: Account
    to_account: Account
    amount: int
    description: str | None = None
    meta: TransactionMeta | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.from_account, Account) or not isinstance(self.to_account, Account):
            raise ValidationError("Transaction endpoints must be Account values")
        validate_amount(self.amount)
        if self.description is not None and not isinstance(self.description, str):
            raise ValidationError("Description must be a string")

    @property
    def is_account_creation(self) -> bool:
        """A zero-amount transaction to a user only registers that user."""
        return self.amount == 0 and self.to_account.account_type is AccountType.USER

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "from": self.from_account.encode(),
            "to": self.to_account.encode(),
            "amount": self.amount,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.meta is not None:
            data["meta"] = self.meta.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Build from a decoded payload; any problem is a TransactionParseError."""
        for key in ("from", "to", "amount"):
            if key not in data:
                raise TransactionParseError(f"Transaction is missing required key '{key}'")

        from_account = _decode_account(data["from"], "from")
        to_account = _decode_account(data["to"], "to")

        amount = data["amount"]
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise TransactionParseError("'description' must be a string")

        meta = None
        raw_meta = data.get("meta")
        if raw_meta is not None:
            if not isinstance(raw_meta, dict):
                raise TransactionParseError("'meta' must be a table")
            meta_class = raw_meta.get("class")
            ean = raw_meta.get("ean")
            try:
                meta = TransactionMeta(class_=meta_class, ean=ean)
            except ValidationError as e:
                raise TransactionParseError(str(e)) from e

        try:
            return cls(
                from_account=from_account,
                to_account=to_account,
                amount=amount,
                description=description,
                meta=meta,
            )
        except ValidationError as e:
            raise TransactionParseError(str(e)) from e


def _decode_account(value: Any, key: str) -> Account:
    if not isinstance(value, str):
        raise TransactionParseError(f"'{key}' must be an account string")
    try:
        return Account.parse(value)
    except ParseError as e:
        raise TransactionParseError(f"Invalid '{key}' account: {e}") from e


# -----------------------------------------------------------------------------
# Commit message codec
# -----------------------------------------------------------------------------


def is_transaction_message(message: str | None) -> bool:
    return bool(message) and message.startswith(MARKER)


def extract_payload(message: str) -> str:
    """Return the lines between the first two `---` delimiter lines.

    Lines end at LF or CRLF only; other Unicode line breaks can appear
    unescaped inside TOML strings.
    """
    lines: list[str] = []
    in_payload = False
    for line in message.split("\n"):
        line = line.removesuffix("\r")
        if line == DELIMITER:
            if in_payload:
                return "\n".join(lines)
            in_payload = True
        elif in_payload:
            lines.append(line)
    if in_payload:
        raise TransactionParseError("Transaction data is missing its closing '---' line")
    raise TransactionParseError("Transaction data is missing its opening '---' line")


def decode_transaction(message: str) -> Transaction:
    """Extract the transaction embedded in a commit message."""
    payload = extract_payload(message)
    try:
        data = tomllib.loads(payload)
    except tomllib.TOMLDecodeError as e:
        raise TransactionParseError(f"Invalid TOML transaction data: {e}") from e
    return Transaction.from_dict(data)


def summary_line(transaction: Transaction, config: "RepoConfig") -> str:
    if transaction.is_account_creation:
        return f"Create user {transaction.to_account.name}"
    src, dst = transaction.from_account, transaction.to_account
    return (
        f"{src.account_type.label} {src.name} pays "
        f"{config.format_money(transaction.amount)} "
        f"to {dst.account_type.label} {dst.name}"
    )


def encode_transaction(transaction: Transaction, config: "RepoConfig") -> str:
    """Render the full commit message for a transaction."""
    payload = tomli_w.dumps(transaction.to_dict()).rstrip("\n")
    return (
        f"{MARKER}{summary_line(transaction, config)}\n"
        f"\n"
        f"{DELIMITER}\n"
        f"{payload}\n"
        f"{DELIMITER}"
    )

"""
Account model and its string codec.

Accounts are never stored on their own. An account exists only because
some transaction names it, using the canonical form "<tag>:<name>":

- user:alice   - a person who can pay and be paid
- pos:kiosk    - a point of sale, only receives money
- source:cash  - an external deposit point (goes negative)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ParseError, ValidationError


class AccountType(str, Enum):
    """Closed set of account kinds, valued by their wire tag."""

    USER = "user"
    POINT_OF_SALE = "pos"
    SOURCE = "source"

    @property
    def tag(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Human-readable name used in commit summaries."""
        return _LABELS[self]

    @classmethod
    def from_tag(cls, tag: str) -> "AccountType":
        for account_type in cls:
            if account_type.value == tag:
                return account_type
        raise ParseError(f"Invalid account type: {tag!r}")


_LABELS = {
    AccountType.USER: "User",
    AccountType.POINT_OF_SALE: "PointOfSale",
    AccountType.SOURCE: "Source",
}


def _is_ascii_alnum(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def validate_name(name: str) -> None:
    """Raise ValidationError unless `name` is non-empty ASCII alphanumeric."""
    if not isinstance(name, str) or not name:
        raise ValidationError("Account name may not be empty")
    bad = sorted({ch for ch in name if not _is_ascii_alnum(ch)})
    if bad:
        raise ValidationError(
            f"Account name {name!r} contains invalid characters: {''.join(bad)!r}"
        )


@dataclass(frozen=True, order=True)
class Account:
    """A ledger account, identified by (type, name)."""

    account_type: AccountType
    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.account_type, AccountType):
            raise ValidationError(f"Invalid account type: {self.account_type!r}")
        validate_name(self.name)

    @classmethod
    def user(cls, name: str) -> "Account":
        return cls(AccountType.USER, name)

    @classmethod
    def point_of_sale(cls, name: str) -> "Account":
        return cls(AccountType.POINT_OF_SALE, name)

    @classmethod
    def source(cls, name: str) -> "Account":
        return cls(AccountType.SOURCE, name)

    @classmethod
    def parse(cls, value: str) -> "Account":
        """Parse "<tag>:<name>".

        Only two fields are accepted; a second colon lands in the name and
        fails name validation.
        """
        if not isinstance(value, str):
            raise ParseError(f"Account must be a string, not {type(value).__name__}")
        tag, sep, name = value.partition(":")
        if not sep:
            raise ParseError(f"Account does not contain ':': {value!r}")
        account_type = AccountType.from_tag(tag)
        try:
            return cls(account_type, name)
        except ValidationError as e:
            raise ParseError(f"Invalid account {value!r}: {e}") from e

    def encode(self) -> str:
        return f"{self.account_type.tag}:{self.name}"

    def __str__(self) -> str:
        return self.encode()


def parse_account(value: str) -> Account:
    """Module-level alias for Account.parse."""
    return Account.parse(value)

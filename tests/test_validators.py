from __future__ import annotations

import pytest

from gitcash.errors import ValidationError
from gitcash.validators import validate_known_username, validate_new_username


def test_known_username() -> None:
    assert validate_known_username("alice", ["alice", "bob"]) == "alice"
    with pytest.raises(ValidationError, match="Not a known username"):
        validate_known_username("carol", ["alice", "bob"])


def test_new_username_is_trimmed() -> None:
    assert validate_new_username("  carol ", ["alice"]) == "carol"


@pytest.mark.parametrize(
    "name,message",
    [
        ("", "empty"),
        ("   ", "empty"),
        ("car ol", "space"),
        ("car:ol", "colon"),
        ("car-ol", "invalid characters"),
        ("alice", "already exists"),
    ],
)
def test_new_username_rejects(name: str, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        validate_new_username(name, ["alice"])

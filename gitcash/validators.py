"""Username checks for interactive entry points."""

from __future__ import annotations

from typing import Iterable

from .account import validate_name
from .errors import ValidationError


def validate_known_username(name: str, usernames: Iterable[str]) -> str:
    if name not in set(usernames):
        raise ValidationError(f"Not a known username: {name}")
    return name


def validate_new_username(name: str, usernames: Iterable[str]) -> str:
    """Check a username for a new account; returns the trimmed name."""
    name = name.strip()
    if not name:
        raise ValidationError("Username may not be empty")
    if " " in name:
        raise ValidationError("Username may not contain a space")
    if ":" in name:
        raise ValidationError("Username may not contain a colon")
    validate_name(name)
    if name in set(usernames):
        raise ValidationError(f"Username already exists: {name}")
    return name

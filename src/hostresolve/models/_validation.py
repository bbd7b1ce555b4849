"""Shared validation helpers for frozen dataclass models.

Private module, not part of the public API. Used by ``__post_init__``
methods in sibling model modules so invalid instances never escape the
constructor.
"""

from __future__ import annotations

from typing import Any


_PORT_MIN = 1
_PORT_MAX = 65_535


def validate_timestamp(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_hostname(value: Any, name: str) -> None:
    """Raise if *value* is not a non-empty ``str`` free of null bytes and whitespace."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if not value:
        raise ValueError(f"{name} must not be empty")
    if "\x00" in value:
        raise ValueError(f"{name} contains null bytes")
    if any(c.isspace() for c in value):
        raise ValueError(f"{name} must not contain whitespace: {value!r}")


def validate_port(value: Any, name: str) -> None:
    """Raise if *value* is not an ``int`` TCP port."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not _PORT_MIN <= value <= _PORT_MAX:
        raise ValueError(f"{name} must be in [{_PORT_MIN}, {_PORT_MAX}], got {value}")

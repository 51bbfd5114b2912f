from __future__ import annotations

import os
from typing import Any

RESERVED_NAMES = frozenset({".", ".."})
FORBIDDEN_CHARS = frozenset({"/", "\x00"} | ({os.sep, os.altsep} - {None}))


def validate_key(key: Any, *, hidden_prefix: str) -> str:
    """Check that ``key`` can be used verbatim as a file name in a flat directory."""
    if not isinstance(key, str):
        raise ValueError(f"Storage keys must be strings, got {type(key).__name__}")
    if not key or key in RESERVED_NAMES:
        raise ValueError(f"Invalid storage key {key!r}")
    if any(char in key for char in FORBIDDEN_CHARS):
        raise ValueError(f"Storage key {key!r} contains a path separator")
    if hidden_prefix and key.startswith(hidden_prefix):
        raise ValueError(
            f"Storage key {key!r} starts with the hidden prefix {hidden_prefix!r} "
            "and would be skipped on restore"
        )
    return key


def is_hidden(name: str, hidden_prefix: str) -> bool:
    return bool(hidden_prefix) and name.startswith(hidden_prefix)

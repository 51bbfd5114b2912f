from __future__ import annotations

from pathlib import Path


class StashdirError(Exception):
    """Base exception for stashdir errors."""


class _PathError(StashdirError):
    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")


class StorageOSError(_PathError):
    """Raised when a file cannot be opened or created."""


class StorageIOError(_PathError):
    """Raised when reading from or writing to an open file fails."""


class StoreError(_PathError):
    """Raised when a value fails to serialize itself into its file."""


class RestoreError(_PathError):
    """Raised when a file's contents cannot be turned back into a value."""


class EntryNotFoundError(StashdirError):
    """Raised when an operation references a key the storage does not hold."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"{key}: Not Found")

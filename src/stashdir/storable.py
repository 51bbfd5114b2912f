from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO, TypeVar

S = TypeVar("S", bound="Storable")


class StorableStoreError(Exception):
    """Raised by :meth:`Storable.store` when a value cannot be serialized."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class StorableRestoreError(Exception):
    """Raised by :meth:`Storable.restore` when input cannot be decoded."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class Storable(ABC):
    """Capability for values that read and write themselves as bytes.

    Implementations pick their own encoding. The only requirement is the
    round-trip law: whatever :meth:`store` writes, :meth:`restore` must turn
    back into an equal value, and malformed input must raise
    :class:`StorableRestoreError` rather than anything else.
    """

    @classmethod
    @abstractmethod
    def restore(cls: type[S], source: BinaryIO) -> S:
        """Build an instance from ``source``, positioned at the start of the data."""

    @abstractmethod
    def store(self, sink: BinaryIO) -> None:
        """Serialize the receiver into ``sink``."""

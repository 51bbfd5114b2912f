"""
Keyed collections persisted as one file per entry in a flat directory.

The public API centers around :class:`DirStorage`, an in-memory mapping that
can be restored from and stored to a directory, and :class:`Storable`, the
contract every stored value type implements to read and write itself.
"""

from .exceptions import (
    EntryNotFoundError,
    RestoreError,
    StashdirError,
    StorageIOError,
    StorageOSError,
    StoreError,
)
from .models import JsonModel, MarkdownModel, StorableModel, YamlModel
from .storable import Storable, StorableRestoreError, StorableStoreError
from .storage import DirStorage
from .values import StorableBytes, StorableInt, StorableStr, StorableUInt32

__all__ = (
    "DirStorage",
    "EntryNotFoundError",
    "JsonModel",
    "MarkdownModel",
    "RestoreError",
    "StashdirError",
    "Storable",
    "StorableBytes",
    "StorableInt",
    "StorableModel",
    "StorableRestoreError",
    "StorableStoreError",
    "StorableStr",
    "StorableUInt32",
    "StorageIOError",
    "StorageOSError",
    "StoreError",
    "YamlModel",
)

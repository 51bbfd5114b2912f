from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator, Mapping, MutableMapping, Optional, TypeVar

from .exceptions import (
    EntryNotFoundError,
    RestoreError,
    StorageIOError,
    StorageOSError,
    StoreError,
)
from .storable import Storable, StorableRestoreError, StorableStoreError
from .utils import is_hidden, validate_key

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Storable)

HIDDEN_PREFIX = "."


class DirStorage(MutableMapping[str, T]):
    """In-memory mapping of keys to values, persisted as one file per key.

    Parameters
    ----------
    kind:
        :class:`~stashdir.storable.Storable` subclass every value belongs to.
        Files are turned back into values with ``kind.restore``.
    entries:
        Optional initial mapping of key to value.
    hidden_prefix:
        File names starting with this marker are ignored by :meth:`restore`
        and cannot be used as keys. Pass ``""`` to disable the filter.
    atomic:
        When ``True``, :meth:`store_single` writes to a hidden temporary file
        and renames it over the target, so an interrupted write never leaves
        a truncated entry behind. Can be overridden per call.

    The directory is the index: every non-hidden regular file directly inside
    it is one entry, named after its key. Nothing on disk changes until
    :meth:`store` or :meth:`store_single` is called, and :meth:`restore`
    always re-reads the directory.
    """

    def __init__(
        self,
        kind: type[T],
        entries: Mapping[str, T] | None = None,
        *,
        hidden_prefix: str = HIDDEN_PREFIX,
        atomic: bool = False,
    ) -> None:
        if not (isinstance(kind, type) and issubclass(kind, Storable)):
            raise TypeError(f"{kind!r} does not implement the Storable interface")
        self.kind = kind
        self.hidden_prefix = hidden_prefix
        self.atomic = atomic
        self._entries: dict[str, T] = {}
        for key, value in (entries or {}).items():
            self.insert(key, value)

    @classmethod
    def default(cls, kind: type[T], **options) -> "DirStorage[T]":
        return cls(kind, **options)

    # Disk synchronization ----------------------------------------------
    @classmethod
    def restore(
        cls,
        kind: type[T],
        path: Path | str,
        *,
        hidden_prefix: str = HIDDEN_PREFIX,
        atomic: bool = False,
    ) -> "DirStorage[T]":
        """Load every file in ``path`` into a new storage.

        A missing directory yields an empty storage. Sub-directories and hidden
        files are skipped. The first file that cannot be opened, read or
        decoded aborts the whole call; no partial storage is returned.
        """
        storage = cls(kind, hidden_prefix=hidden_prefix, atomic=atomic)
        root = Path(path).expanduser()
        if not root.is_dir():
            logger.debug("No directory at %s, restoring empty storage", root)
            return storage

        try:
            entries = sorted(root.iterdir())
        except OSError as exc:
            raise StorageOSError(root, f"could not list directory: {_reason(exc)}") from exc

        for entry in entries:
            if is_hidden(entry.name, hidden_prefix):
                logger.debug("Skipping hidden file %s", entry)
                continue
            if entry.is_dir():
                logger.debug("Skipping sub-directory %s", entry)
                continue
            storage._entries[entry.name] = storage._load(entry)

        logger.debug("Restored %d entries from %s", len(storage), root)
        return storage

    def store(self, dir_path: Path | str, *, atomic: bool | None = None) -> None:
        """Write every entry into ``dir_path``, stopping at the first failure.

        Files written before the failure are left in place.
        """
        for key in sorted(self._entries):
            self.store_single(dir_path, key, atomic=atomic)
        logger.debug("Stored %d entries to %s", len(self), dir_path)

    def store_single(
        self,
        dir_path: Path | str,
        key: str,
        *,
        atomic: bool | None = None,
    ) -> Path:
        """Write the entry for ``key`` to ``dir_path/key`` and return that path."""
        try:
            value = self._entries[key]
        except KeyError:
            raise EntryNotFoundError(key) from None

        target = Path(dir_path).expanduser() / key
        use_atomic = self.atomic if atomic is None else atomic
        if use_atomic:
            self._write_atomic(target, value)
        else:
            self._write(target, value)
        logger.debug("Stored entry %r to %s", key, target)
        return target

    # Map accessors -----------------------------------------------------
    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        return self._entries.get(key, default)

    def get_mut(self, key: str) -> Optional[T]:
        """Return the stored object itself so it can be changed in place."""
        return self._entries.get(key)

    def contains_key(self, key: str) -> bool:
        return key in self._entries

    def insert(self, key: str, value: T) -> Optional[T]:
        """Insert or replace ``key`` and return the value it previously held."""
        validate_key(key, hidden_prefix=self.hidden_prefix)
        if not isinstance(value, self.kind):
            raise TypeError(
                f"Expected a {self.kind.__name__} value for key {key!r}, "
                f"got {type(value).__name__}"
            )
        previous = self._entries.get(key)
        self._entries[key] = value
        return previous

    def remove(self, key: str) -> Optional[T]:
        """Drop ``key`` from memory. Its file, if any, is left on disk."""
        return self._entries.pop(key, None)

    def __getitem__(self, key: str) -> T:
        return self._entries[key]

    def __setitem__(self, key: str, value: T) -> None:
        self.insert(key, value)

    def __delitem__(self, key: str) -> None:
        del self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirStorage):
            return NotImplemented
        return self.kind is other.kind and self._entries == other._entries

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.__name__}, {self._entries!r})"

    # Internal helpers --------------------------------------------------
    def _load(self, path: Path) -> T:
        try:
            fh = path.open("rb")
        except OSError as exc:
            raise StorageOSError(path, f"could not open file: {_reason(exc)}") from exc
        try:
            with fh:
                return self.kind.restore(fh)
        except StorableRestoreError as exc:
            raise RestoreError(path, exc.message) from exc
        except OSError as exc:
            raise StorageIOError(path, _reason(exc)) from exc

    def _write(self, target: Path, value: T) -> None:
        try:
            fh = target.open("wb")
        except OSError as exc:
            raise StorageOSError(
                target, f"could not open/create file: {_reason(exc)}"
            ) from exc
        _dump(target, value, fh)

    def _write_atomic(self, target: Path, value: T) -> None:
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f"{self.hidden_prefix or HIDDEN_PREFIX}{target.name}.",
                suffix=".tmp",
                dir=target.parent,
            )
        except OSError as exc:
            raise StorageOSError(
                target, f"could not create temporary file: {_reason(exc)}"
            ) from exc

        tmp = Path(tmp_name)
        try:
            # mkstemp creates 0600 files; keep the mode a plain open would give
            try:
                os.fchmod(fd, _file_mode(target))
            except OSError as exc:
                os.close(fd)
                raise StorageOSError(
                    target, f"could not set file mode: {_reason(exc)}"
                ) from exc
            _dump(target, value, os.fdopen(fd, "wb"))
            try:
                os.replace(tmp, target)
            except OSError as exc:
                raise StorageOSError(target, f"could not replace file: {_reason(exc)}") from exc
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise


def _dump(target: Path, value: Storable, fh: BinaryIO) -> None:
    # Closing flushes the buffer, so write errors may only surface on exit.
    try:
        with fh:
            value.store(fh)
    except StorableStoreError as exc:
        raise StoreError(target, exc.message) from exc
    except OSError as exc:
        raise StorageIOError(target, _reason(exc)) from exc


def _file_mode(target: Path) -> int:
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _reason(exc: OSError) -> str:
    return exc.strerror or str(exc)

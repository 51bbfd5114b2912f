from __future__ import annotations

from typing import BinaryIO

from .storable import Storable, StorableRestoreError, StorableStoreError


class StorableInt(int, Storable):
    """Integer stored as decimal ASCII text followed by a newline."""

    @classmethod
    def restore(cls, source: BinaryIO) -> "StorableInt":
        raw = source.read()
        try:
            return cls(raw.decode("ascii").strip())
        except (UnicodeDecodeError, ValueError) as exc:
            raise StorableRestoreError(f"invalid integer payload {raw[:32]!r}: {exc}") from exc

    def store(self, sink: BinaryIO) -> None:
        sink.write(f"{int(self)}\n".encode("ascii"))


class StorableUInt32(StorableInt):
    """:class:`StorableInt` restricted to the unsigned 32-bit range."""

    MAX = 2**32 - 1

    def __new__(cls, value=0):
        instance = super().__new__(cls, value)
        if not 0 <= instance <= cls.MAX:
            raise ValueError(f"{int(instance)} is outside the unsigned 32-bit range")
        return instance


class StorableStr(str, Storable):
    """Text stored as UTF-8, byte for byte."""

    @classmethod
    def restore(cls, source: BinaryIO) -> "StorableStr":
        try:
            return cls(source.read().decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise StorableRestoreError(f"payload is not valid UTF-8: {exc}") from exc

    def store(self, sink: BinaryIO) -> None:
        try:
            sink.write(str(self).encode("utf-8"))
        except UnicodeEncodeError as exc:
            raise StorableStoreError(f"text cannot be encoded as UTF-8: {exc}") from exc


class StorableBytes(bytes, Storable):
    """Opaque bytes written as-is."""

    @classmethod
    def restore(cls, source: BinaryIO) -> "StorableBytes":
        return cls(source.read())

    def store(self, sink: BinaryIO) -> None:
        sink.write(bytes(self))

from __future__ import annotations

from io import BytesIO

import pytest

from stashdir import StorableBytes, StorableInt, StorableStr, StorableUInt32
from stashdir.storable import StorableRestoreError, StorableStoreError


def stored_bytes(value) -> bytes:
    sink = BytesIO()
    value.store(sink)
    return sink.getvalue()


def test_int_is_written_as_decimal_text() -> None:
    assert stored_bytes(StorableInt(-42)) == b"-42\n"
    assert StorableInt.restore(BytesIO(b"-42\n")) == -42


def test_int_restore_tolerates_surrounding_whitespace() -> None:
    assert StorableInt.restore(BytesIO(b"  7 \r\n")) == 7


@pytest.mark.parametrize("payload", [b"", b"seven\n", b"1.5\n", b"\xff\xfe"])
def test_int_restore_rejects_malformed_payload(payload: bytes) -> None:
    with pytest.raises(StorableRestoreError):
        StorableInt.restore(BytesIO(payload))


def test_uint32_range() -> None:
    assert StorableUInt32.restore(BytesIO(b"4294967295\n")) == StorableUInt32.MAX
    with pytest.raises(ValueError):
        StorableUInt32(-1)
    with pytest.raises(StorableRestoreError):
        StorableUInt32.restore(BytesIO(b"4294967296\n"))


def test_str_roundtrip_preserves_exact_text() -> None:
    value = StorableStr("café\nsecond line\n")
    restored = StorableStr.restore(BytesIO(stored_bytes(value)))
    assert restored == value
    assert isinstance(restored, StorableStr)


def test_str_rejects_invalid_utf8() -> None:
    with pytest.raises(StorableRestoreError):
        StorableStr.restore(BytesIO(b"\xff"))


def test_str_refuses_unencodable_text() -> None:
    with pytest.raises(StorableStoreError):
        stored_bytes(StorableStr("\ud800"))


def test_bytes_are_written_verbatim() -> None:
    payload = bytes(range(256))
    assert stored_bytes(StorableBytes(payload)) == payload
    assert StorableBytes.restore(BytesIO(payload)) == payload

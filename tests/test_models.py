from __future__ import annotations

from datetime import date
from io import BytesIO
from pathlib import Path
from shutil import copytree

import orjson
import pytest
import yaml

from stashdir import DirStorage, JsonModel, MarkdownModel, StorableModel, YamlModel
from stashdir.exceptions import RestoreError
from stashdir.storable import StorableRestoreError, StorableStoreError

FIXTURES = Path(__file__).parent / "fixtures"


def copy_fixture(name: str, destination: Path) -> Path:
    source = FIXTURES / name
    target = destination / name
    copytree(source, target)
    return target


class Note(MarkdownModel):
    title: str
    tags: list[str] = []
    pinned: bool = False
    content: str


class Release(JsonModel):
    version: str
    date: date
    notes: list[str] = []


class Setting(YamlModel):
    name: str
    value: int
    since: date | None = None


class Attachment(JsonModel):
    name: str
    payload: object = None


def test_markdown_fixture_restores_notes(tmp_path: Path) -> None:
    root = copy_fixture("notes", tmp_path)

    notes = DirStorage.restore(Note, root)

    assert sorted(notes) == ["groceries", "ideas"]
    groceries = notes.get("groceries")
    assert groceries is not None
    assert groceries.title == "Groceries"
    assert groceries.tags == ["home"]
    assert groceries.pinned is True
    assert groceries.content == "Milk, eggs and bread.\n"


def test_markdown_store_keeps_fixture_layout(tmp_path: Path) -> None:
    root = copy_fixture("notes", tmp_path)
    original = (root / "groceries").read_text()

    DirStorage.restore(Note, root).store(root)

    assert (root / "groceries").read_text() == original


def test_markdown_roundtrip_multiline_body(tmp_path: Path) -> None:
    note = Note(title="Plan", tags=["work"], content="First line\n\n---\n\nAfter a rule")
    storage = DirStorage(Note, {"plan": note})

    storage.store(tmp_path)
    text = (tmp_path / "plan").read_text()
    assert text.startswith("---\ntitle: Plan\n")
    assert text.endswith("---\n\nFirst line\n\n---\n\nAfter a rule")

    assert DirStorage.restore(Note, tmp_path).get("plan") == note


def test_markdown_without_frontmatter_fails_validation() -> None:
    with pytest.raises(StorableRestoreError):
        Note.restore(BytesIO(b"just a body\n"))


@pytest.mark.parametrize(
    "content",
    ["line one\n", "trailing spaces   ", "\nleading break\n\n", ""],
)
def test_markdown_body_survives_roundtrip_verbatim(tmp_path: Path, content: str) -> None:
    note = Note(title="t", content=content)
    storage = DirStorage(Note, {"note": note})

    storage.store(tmp_path)

    restored = DirStorage.restore(Note, tmp_path).get("note")
    assert restored is not None
    assert restored.content == content
    assert restored == note


def test_storable_model_base_cannot_be_instantiated() -> None:
    with pytest.raises(TypeError):
        StorableModel()


def test_json_roundtrip_preserves_dates(tmp_path: Path) -> None:
    release = Release(version="1.2.0", date=date(2025, 11, 9), notes=["fixes"])
    storage = DirStorage(Release, {"v1.2.0": release})

    path = storage.store_single(tmp_path, "v1.2.0")

    raw = orjson.loads(path.read_bytes())
    assert raw["date"] == "2025-11-09"
    assert path.read_bytes().endswith(b"\n")

    loaded = DirStorage.restore(Release, tmp_path).get("v1.2.0")
    assert loaded == release
    assert isinstance(loaded.date, date)


@pytest.mark.parametrize(
    "payload",
    [b"{not json", b"[1, 2, 3]", b'{"version": "1.0"}'],
)
def test_json_restore_rejects_bad_payload(payload: bytes) -> None:
    with pytest.raises(StorableRestoreError):
        Release.restore(BytesIO(payload))


def test_json_store_rejects_unserializable_values() -> None:
    attachment = Attachment(name="blob", payload={1, 2})
    with pytest.raises(StorableStoreError):
        attachment.store(BytesIO())


def test_yaml_roundtrip(tmp_path: Path) -> None:
    setting = Setting(name="retries", value=3, since=date(2024, 1, 1))
    storage = DirStorage(Setting, {"retries": setting})

    storage.store(tmp_path)

    data = yaml.safe_load((tmp_path / "retries").read_text())
    assert data == {"name": "retries", "value": 3, "since": date(2024, 1, 1)}
    assert DirStorage.restore(Setting, tmp_path) == storage


def test_yaml_restore_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / "broken").write_text("- just\n- a list\n")

    with pytest.raises(RestoreError) as excinfo:
        DirStorage.restore(Setting, tmp_path)

    assert excinfo.value.path == tmp_path / "broken"
    assert "did not produce a mapping" in excinfo.value.message


def test_yaml_restore_rejects_invalid_yaml() -> None:
    with pytest.raises(StorableRestoreError):
        Setting.restore(BytesIO(b"name: [unclosed\n"))

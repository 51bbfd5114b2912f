from __future__ import annotations

from abc import abstractmethod
from typing import Any, BinaryIO, ClassVar, Mapping

import orjson
import yaml
from pydantic import BaseModel

from .storable import Storable, StorableRestoreError, StorableStoreError


class StorableModel(BaseModel, Storable):
    """Pydantic model that persists itself as a dictionary payload.

    Subclasses choose the file format by implementing :meth:`encode_payload`
    and :meth:`decode_payload`; validation on restore always goes through
    ``model_validate``.
    """

    @classmethod
    @abstractmethod
    def encode_payload(cls, data: Mapping[str, Any]) -> bytes:
        """Render a ``model_dump`` dictionary as file contents."""

    @classmethod
    @abstractmethod
    def decode_payload(cls, raw: bytes) -> dict[str, Any]:
        """Parse file contents into a dictionary for ``model_validate``."""

    @classmethod
    def restore(cls, source: BinaryIO) -> "StorableModel":
        try:
            data = cls.decode_payload(source.read())
            return cls.model_validate(data)
        except (ValueError, yaml.YAMLError) as exc:
            raise StorableRestoreError(
                f"could not restore {cls.__name__}: {exc}"
            ) from exc

    def store(self, sink: BinaryIO) -> None:
        try:
            payload = self.encode_payload(self.model_dump())
        except (TypeError, ValueError, yaml.YAMLError) as exc:
            raise StorableStoreError(
                f"could not serialize {type(self).__name__}: {exc}"
            ) from exc
        sink.write(payload)


class JsonModel(StorableModel):
    @classmethod
    def encode_payload(cls, data: Mapping[str, Any]) -> bytes:
        return orjson.dumps(data, option=orjson.OPT_INDENT_2) + b"\n"

    @classmethod
    def decode_payload(cls, raw: bytes) -> dict[str, Any]:
        payload = orjson.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("JSON payload did not produce a mapping")
        return payload


class YamlModel(StorableModel):
    @classmethod
    def encode_payload(cls, data: Mapping[str, Any]) -> bytes:
        text = yaml.safe_dump(dict(data), allow_unicode=True, sort_keys=False)
        return text.encode("utf-8")

    @classmethod
    def decode_payload(cls, raw: bytes) -> dict[str, Any]:
        payload = yaml.safe_load(raw.decode("utf-8")) or {}
        if not isinstance(payload, dict):
            raise ValueError("YAML payload did not produce a mapping")
        return payload


class MarkdownModel(StorableModel):
    """Model stored as YAML frontmatter followed by a free-form body.

    The body is kept in the field named by ``body_field``; every other field
    goes into the frontmatter block.
    """

    body_field: ClassVar[str] = "content"

    @classmethod
    def encode_payload(cls, data: Mapping[str, Any]) -> bytes:
        payload = dict(data)
        body = payload.pop(cls.body_field, "") or ""
        frontmatter = yaml.safe_dump(payload, allow_unicode=True, sort_keys=False).strip()
        rendered = f"---\n{frontmatter}\n---\n\n{body}"
        return rendered.encode("utf-8")

    @classmethod
    def decode_payload(cls, raw: bytes) -> dict[str, Any]:
        meta, body = _split_frontmatter(raw.decode("utf-8"))
        data = dict(meta)
        data[cls.body_field] = body
        return data


def _split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    if not text.startswith("---"):
        return {}, text

    rest = text.split("\n", 1)[1] if "\n" in text else ""
    if "\n---" not in rest:
        return {}, text

    frontmatter_raw, body = rest.split("\n---", 1)
    # Drop the line break closing the fence and the blank separator line
    if body.startswith("\n"):
        body = body[1:]
    if body.startswith("\n"):
        body = body[1:]
    meta = yaml.safe_load(frontmatter_raw) or {}
    if not isinstance(meta, dict):
        raise ValueError("Frontmatter must parse to a mapping")
    return meta, body

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Codec that maps a pydantic record model onto the fenced metadata format."""

from __future__ import annotations

import json
import logging
import types
from collections.abc import Callable
from typing import Any, Generic, Literal, Protocol, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel

from reqtrace.codecs import frontmatter

logger = logging.getLogger(__name__)

FieldShape = Literal["text", "int", "bool", "list", "json"]

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class Codec(Protocol[T]):
    """Pure text conversion for one record kind. No I/O, no state."""

    def serialize(self, record: T) -> str: ...

    def deserialize(self, text: str) -> T | None: ...


def _strip_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def field_shape(annotation: Any) -> FieldShape:
    """Classify a model field annotation into the on-disk encoding it uses."""
    annotation = _strip_optional(annotation)
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        return "json"
    if origin is list:
        (item,) = get_args(annotation)
        if item is str or get_origin(item) is Literal:
            return "list"
        return "json"
    if annotation is bool:
        return "bool"
    if annotation is int:
        return "int"
    if annotation is str or origin is Literal:
        return "text"
    return "json"


def _keep_attribute_entries(value: Any) -> Any:
    # Entries that lost their shape are dropped rather than failing the record.
    if not isinstance(value, list):
        return value
    return [
        entry for entry in value if isinstance(entry, dict) and "attributeId" in entry
    ]


_REPAIRS: dict[str, Callable[[Any], Any]] = {
    "custom_attributes": _keep_attribute_entries,
}


class ModelCodec(Generic[M]):
    """Serialize records of *model*; *body_field* is stored verbatim as the body.

    When the kind has no body field, *render_body* may produce a read-only
    summary that is written after the metadata and ignored when reading.
    """

    def __init__(
        self,
        model: type[M],
        *,
        body_field: str | None = None,
        render_body: Callable[[M], str] | None = None,
    ) -> None:
        if body_field is not None and body_field not in model.model_fields:
            raise ValueError(f"{model.__name__} has no field {body_field!r}")
        self.model = model
        self.body_field = body_field
        self._render_body = render_body
        self._fields: list[tuple[str, str, FieldShape]] = [
            (name, info.alias or name, field_shape(info.annotation))
            for name, info in model.model_fields.items()
            if name != body_field
        ]
        self._by_key = {key: (name, shape) for name, key, shape in self._fields}

    def serialize(self, record: M) -> str:
        dumped: dict[str, Any] | None = None
        lines: list[tuple[str, str]] = []
        for name, key, shape in self._fields:
            value = getattr(record, name)
            if value is None:
                continue
            if shape == "text":
                encoded = frontmatter.escape_text(value)
            elif shape == "int":
                encoded = str(value)
            elif shape == "bool":
                encoded = "true" if value else "false"
            elif shape == "list":
                encoded = frontmatter.join_list(list(value))
            else:
                if dumped is None:
                    dumped = record.model_dump(mode="json", by_alias=True)
                encoded = json.dumps(dumped[key], ensure_ascii=False)
            lines.append((key, encoded))

        if self.body_field is not None:
            body = getattr(record, self.body_field)
        elif self._render_body is not None:
            body = self._render_body(record)
        else:
            body = ""
        return frontmatter.render(lines, body)

    def deserialize(self, text: str) -> M | None:
        try:
            return self._decode(text)
        except (ValueError, TypeError) as exc:
            logger.debug("Could not decode %s: %s", self.model.__name__, exc)
            return None

    def _decode(self, text: str) -> M | None:
        parsed = frontmatter.parse(text)
        if parsed is None:
            return None
        metadata, body = parsed

        data: dict[str, Any] = {}
        for key, raw in metadata.items():
            if key not in self._by_key:
                continue
            name, shape = self._by_key[key]
            if shape == "text":
                value: Any = frontmatter.unescape_text(raw)
            elif shape == "int":
                value = int(raw.strip())
            elif shape == "bool":
                flag = raw.strip()
                if flag not in ("true", "false"):
                    raise ValueError(f"{key}: expected true/false, got {flag!r}")
                value = flag == "true"
            elif shape == "list":
                value = frontmatter.split_list(raw)
            else:
                value = json.loads(raw)
            repair = _REPAIRS.get(name)
            data[name] = repair(value) if repair is not None else value

        if self.body_field is not None:
            data[self.body_field] = body
        return self.model.model_validate(data)

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

import time
from typing import Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)
from pydantic.alias_generators import to_camel

# Closed sum of values a custom attribute may hold. Strict members keep
# ``True`` from being read as ``1`` and ``"1"`` from being read as a number.
AttributeValue = StrictBool | StrictInt | StrictFloat | StrictStr | None


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def next_revision(revision: str) -> str:
    """Return the next revision tag, keeping the zero padding: ``"01" -> "02"``."""
    try:
        value = int(revision)
    except ValueError:
        return "01"
    return str(value + 1).zfill(max(len(revision), 2))


class StorageModel(BaseModel):
    """Base for everything persisted by a codec: camelCase on disk, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class CustomAttributeValue(StorageModel):
    attribute_id: str
    value: AttributeValue = None


class ArtifactRecord(StorageModel):
    """Fields shared by every record kind."""

    id: str
    last_modified: int
    revision: str = "01"
    is_deleted: bool = False
    deleted_at: int | None = None
    custom_attributes: list[CustomAttributeValue] = []

    @field_validator("custom_attributes")
    @classmethod
    def _one_value_per_attribute(
        cls, values: list[CustomAttributeValue]
    ) -> list[CustomAttributeValue]:
        # Last write wins; the entry keeps the position of its first occurrence.
        merged: dict[str, CustomAttributeValue] = {}
        for entry in values:
            merged[entry.attribute_id] = entry
        return list(merged.values())

    def get_custom_attribute(self, attribute_id: str) -> AttributeValue:
        for entry in self.custom_attributes:
            if entry.attribute_id == attribute_id:
                return entry.value
        return None

    def with_custom_attribute(self, attribute_id: str, value: AttributeValue) -> Self:
        """Return a copy with *attribute_id* set to *value*."""
        entries = [*self.custom_attributes, CustomAttributeValue(attribute_id=attribute_id, value=value)]
        return self.merged(custom_attributes=entries)

    def merged(self, **changes: Any) -> Self:
        """Return a re-validated copy with *changes* applied on top of this record."""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

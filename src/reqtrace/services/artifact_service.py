# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Create/read/update/delete for one artifact kind.

Each mutation assigns bookkeeping fields (identifier, timestamps, trash markers)
and commits with a descriptive message when history is enabled.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from reqtrace.errors import RecordValidationError
from reqtrace.repositories.record_store import RecordStore
from reqtrace.schemas.base import ArtifactRecord, AttributeValue, now_ms
from reqtrace.services.id_allocator import IdAllocator

logger = logging.getLogger(__name__)

# Assigned by the service, never by callers.
_MANAGED_FIELDS = frozenset({"id", "last_modified", "is_deleted", "deleted_at", "date_created"})

T = TypeVar("T", bound=ArtifactRecord)


class ArtifactService(Generic[T]):
    def __init__(
        self,
        model: type[T],
        store: RecordStore[T],
        allocator: IdAllocator,
    ) -> None:
        self.model = model
        self.store = store
        self._allocator = allocator

    @property
    def kind_key(self) -> str:
        return self.store.kind.key

    def _describe(self, record: T) -> str:
        title = getattr(record, "title", None) or getattr(record, "name", None)
        return f"{record.id}: {title}" if title else record.id

    def _build(self, data: dict[str, Any]) -> T:
        try:
            return self.model.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0] if exc.errors() else {}
            loc = first.get("loc") or ()
            raise RecordValidationError(
                f"Invalid {self.kind_key} record: {exc}",
                kind=self.kind_key,
                field=str(loc[0]) if loc else None,
            ) from exc

    async def validate(self, record: T) -> None:
        """Hook for business rules checked before a record is saved."""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_all(self, include_deleted: bool = False) -> list[T]:
        return await self.store.load_all(include_deleted=include_deleted)

    async def get_by_id(self, record_id: str) -> T | None:
        return await self.store.load(record_id)

    async def deleted(self) -> list[T]:
        """Soft-deleted records (the trash view)."""
        records = await self.store.load_all(include_deleted=True)
        return [record for record in records if record.is_deleted]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, **fields: Any) -> T:
        for name in _MANAGED_FIELDS & fields.keys():
            logger.debug("Ignoring managed field %s on create", name)
            del fields[name]
        now = now_ms()
        data: dict[str, Any] = {**fields, "id": "", "last_modified": now}
        if "date_created" in self.model.model_fields:
            data["date_created"] = now
        draft = self._build(data)
        await self.validate(draft)

        record = draft.model_copy(update={"id": await self._allocator.next_id(self.kind_key)})
        await self.store.save(record, f"Create {self._describe(record)}")
        return record

    async def update(self, record_id: str, **changes: Any) -> T | None:
        """Apply *changes*; returns None when the record does not exist."""
        current = await self.store.load(record_id)
        if current is None:
            return None
        for name in _MANAGED_FIELDS & changes.keys():
            del changes[name]
        data = current.model_dump()
        data.update(changes)
        data["last_modified"] = now_ms()
        record = self._build(data)
        await self.validate(record)
        await self.store.save(record, f"Update {self._describe(record)}")
        return record

    async def set_custom_attribute(
        self, record_id: str, attribute_id: str, value: AttributeValue
    ) -> T | None:
        current = await self.store.load(record_id)
        if current is None:
            return None
        entries = [e.model_dump() for e in current.custom_attributes]
        entries.append({"attribute_id": attribute_id, "value": value})
        return await self.update(record_id, custom_attributes=entries)

    async def soft_delete(self, record_id: str) -> T | None:
        return await self.store.soft_delete(record_id, f"Delete {record_id}")

    async def restore(self, record_id: str) -> T | None:
        return await self.store.restore(record_id, f"Restore {record_id}")

    async def hard_delete(self, record_id: str) -> None:
        await self.store.delete(record_id, f"Permanently delete {record_id}")

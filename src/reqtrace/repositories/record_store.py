# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

from pydantic import BaseModel

from reqtrace.codecs import ModelCodec, get_codec
from reqtrace.errors import MalformedContentError, SubstrateError
from reqtrace.kinds import RECORD_SUFFIX, get_kind
from reqtrace.schemas.base import ArtifactRecord, now_ms
from reqtrace.services.history import RevisionHistory
from reqtrace.services.substrate import Substrate

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class RecordStore(Generic[T]):
    """Persist one record kind as ``<folder>/<id>.md`` units.

    Saving is last-writer-wins.  The store applies no business rules; callers
    validate before they save.
    """

    def __init__(
        self,
        substrate: Substrate,
        kind_key: str,
        *,
        history: RevisionHistory | None = None,
        codec: ModelCodec[T] | None = None,
    ) -> None:
        self.kind = get_kind(kind_key)
        self.codec: ModelCodec[T] = codec or get_codec(kind_key)
        self._substrate = substrate
        self._history = history

    @contextmanager
    def _annotate(self, operation: str, record_id: str | None = None) -> Iterator[None]:
        try:
            yield
        except SubstrateError as exc:
            target = f"{self.kind.key}/{record_id}" if record_id else self.kind.key
            exc.add_note(f"while {operation} {target}")
            raise

    async def _read_unit(self, record_id: str) -> str | None:
        """Text of one unit, or None when it is missing or not readable as text."""
        path = self.kind.record_path(record_id)
        try:
            with self._annotate("loading", record_id):
                return await self._substrate.read_file(path)
        except MalformedContentError as exc:
            logger.warning("Skipping unreadable record %s: %s", path, exc)
            return None

    async def _commit(self, record_id: str, message: str | None) -> None:
        if message is None or self._history is None or not self._history.enabled:
            return
        await self._history.commit(self.kind.record_path(record_id), message)

    async def initialize(self) -> None:
        with self._annotate("initializing"):
            await self._substrate.ensure_directory(self.kind.folder)

    async def save(self, record: T, message: str | None = None) -> T:
        record_id: str = getattr(record, "id")
        text = self.codec.serialize(record)
        with self._annotate("saving", record_id):
            await self._substrate.write_file(self.kind.record_path(record_id), text)
            await self._commit(record_id, message)
        logger.info("Saved %s", record_id)
        return record

    async def load(self, record_id: str) -> T | None:
        text = await self._read_unit(record_id)
        if text is None:
            logger.debug("No readable %s record %s", self.kind.key, record_id)
            return None
        record = self.codec.deserialize(text)
        if record is None:
            logger.warning("Could not decode %s", self.kind.record_path(record_id))
        return record

    async def load_all(self, include_deleted: bool = False) -> list[T]:
        records: list[T] = []
        with self._annotate("listing"):
            names = await self._substrate.list_files(self.kind.folder)
        for name in names:
            if not name.endswith(RECORD_SUFFIX):
                continue
            path = f"{self.kind.folder}/{name}"
            text = await self._read_unit(name[: -len(RECORD_SUFFIX)])
            if text is None:
                # Removed between listing and reading, or not text.
                continue
            record = self.codec.deserialize(text)
            if record is None:
                logger.warning("Skipping undecodable record %s", path)
                continue
            if not include_deleted and getattr(record, "is_deleted", False):
                continue
            records.append(record)
        return records

    async def exists(self, record_id: str) -> bool:
        try:
            with self._annotate("checking", record_id):
                return await self._substrate.read_file(self.kind.record_path(record_id)) is not None
        except MalformedContentError:
            return True

    async def soft_delete(self, record_id: str, message: str | None = None) -> T | None:
        """Mark a record deleted. A missing record is left alone."""
        record = await self.load(record_id)
        if record is None:
            return None
        if not isinstance(record, ArtifactRecord):
            raise TypeError(f"{self.kind.key} records cannot be soft-deleted")
        now = now_ms()
        record = record.merged(is_deleted=True, deleted_at=now, last_modified=now)
        return await self.save(record, message)

    async def restore(self, record_id: str, message: str | None = None) -> T | None:
        """Clear the soft-delete markers of a record."""
        record = await self.load(record_id)
        if record is None:
            return None
        if not isinstance(record, ArtifactRecord):
            raise TypeError(f"{self.kind.key} records cannot be restored")
        record = record.merged(is_deleted=False, deleted_at=None, last_modified=now_ms())
        return await self.save(record, message)

    async def delete(self, record_id: str, message: str | None = None) -> None:
        """Remove a record permanently. Raises ``PathNotFoundError`` if absent."""
        with self._annotate("deleting", record_id):
            await self._substrate.delete_file(self.kind.record_path(record_id))
            await self._commit(record_id, message)
        logger.info("Deleted %s", record_id)

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Per-kind sequential identifier allocation.

Each kind keeps its last issued number in ``counters/<folder>.md`` as plain
text.  Every read-increment-persist runs under that kind's ``asyncio.Lock``, so
concurrent callers in one process never receive the same identifier.
"""

from __future__ import annotations

import asyncio
import logging

from reqtrace.errors import AllocationError, MalformedContentError, SubstrateError
from reqtrace.kinds import RECORD_SUFFIX, ArtifactKind, get_kind
from reqtrace.services.history import RevisionHistory
from reqtrace.services.substrate import Substrate

logger = logging.getLogger(__name__)


class IdAllocator:
    """Issue ``PREFIX-nnn`` identifiers that are never reused.

    The persisted counter is the authority.  When it is missing or unreadable,
    or when the next candidate already exists on disk, the allocator rescans
    the kind's folder and continues after the highest identifier it finds.
    """

    def __init__(
        self,
        substrate: Substrate,
        *,
        padding: int = 3,
        history: RevisionHistory | None = None,
        commit_counters: bool = False,
    ) -> None:
        self._substrate = substrate
        self._padding = padding
        self._history = history
        self._commit_counters = commit_counters
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, kind: ArtifactKind) -> asyncio.Lock:
        lock = self._locks.get(kind.key)
        if lock is None:
            lock = self._locks[kind.key] = asyncio.Lock()
        return lock

    # ------------------------------------------------------------------
    # Counter persistence
    # ------------------------------------------------------------------

    async def _read_counter(self, kind: ArtifactKind) -> int | None:
        try:
            text = await self._substrate.read_file(kind.counter_path)
        except MalformedContentError:
            logger.warning("Counter %s is not text", kind.counter_path)
            return None
        if text is None:
            return None
        try:
            value = int(text.strip())
        except ValueError:
            logger.warning("Counter %s is unreadable: %r", kind.counter_path, text[:40])
            return None
        return max(value, 0)

    async def _write_counter(self, kind: ArtifactKind, value: int) -> None:
        try:
            await self._substrate.write_file(kind.counter_path, str(value))
            if self._commit_counters and self._history is not None:
                await self._history.commit(kind.counter_path, f"Update {kind.key} counter")
        except SubstrateError as exc:
            raise AllocationError(
                f"Could not persist {kind.key} counter: {exc}", kind.key
            ) from exc

    async def _existing_sequences(self, kind: ArtifactKind) -> set[int]:
        sequences: set[int] = set()
        for name in await self._substrate.list_files(kind.folder):
            if not name.endswith(RECORD_SUFFIX):
                continue
            sequence = kind.parse_sequence(name[: -len(RECORD_SUFFIX)])
            if sequence is not None:
                sequences.add(sequence)
        return sequences

    async def _reserve(self, kind: ArtifactKind, count: int) -> int:
        """Advance the counter by *count* and return the first reserved number."""
        counter = await self._read_counter(kind)
        existing = await self._existing_sequences(kind)
        start = (counter or 0) + 1
        collides = any(seq in existing for seq in range(start, start + count))
        if counter is None or collides:
            observed = max(existing, default=0)
            if collides:
                logger.warning(
                    "Counter for %s is behind (at %d, found %d); continuing from %d",
                    kind.key,
                    counter or 0,
                    observed,
                    observed,
                )
            start = max(counter or 0, observed) + 1
        await self._write_counter(kind, start + count - 1)
        return start

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def next_id(self, kind_key: str) -> str:
        kind = get_kind(kind_key)
        async with self._lock(kind):
            sequence = await self._reserve(kind, 1)
        record_id = kind.format_id(sequence, self._padding)
        logger.debug("Allocated %s", record_id)
        return record_id

    async def next_ids(self, kind_key: str, count: int) -> list[str]:
        """Allocate *count* contiguous identifiers in one step."""
        if count <= 0:
            return []
        kind = get_kind(kind_key)
        async with self._lock(kind):
            start = await self._reserve(kind, count)
        return [kind.format_id(seq, self._padding) for seq in range(start, start + count)]

    async def current(self, kind_key: str) -> int:
        """Return the last issued number for a kind (0 when none)."""
        return await self._read_counter(get_kind(kind_key)) or 0

    async def recalculate(self, kind_key: str) -> int:
        """Reset the counter to the highest identifier present in the folder."""
        kind = get_kind(kind_key)
        async with self._lock(kind):
            observed = max(await self._existing_sequences(kind), default=0)
            await self._write_counter(kind, observed)
        logger.info("Recalculated %s counter: %d", kind.key, observed)
        return observed

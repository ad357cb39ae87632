# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Append-only revision history over the substrate's commit log."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from reqtrace.codecs import get_codec
from reqtrace.errors import MalformedContentError
from reqtrace.kinds import get_kind
from reqtrace.services.substrate import AuthorInfo, CommitInfo, Substrate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Revision:
    """One history entry for a path. ``reference`` is opaque to callers."""

    reference: str
    message: str
    author: AuthorInfo
    timestamp: datetime

    @classmethod
    def from_commit(cls, commit: CommitInfo) -> Revision:
        return cls(
            reference=commit.sha,
            message=commit.message,
            author=commit.author,
            timestamp=commit.timestamp,
        )


class RevisionHistory:
    """Commit and browse past states of stored records.

    When *enabled* is false, ``RecordStore`` skips ``commit``; browsing
    still works against whatever history exists.
    """

    def __init__(
        self,
        substrate: Substrate,
        author: AuthorInfo,
        *,
        enabled: bool = True,
    ) -> None:
        self._substrate = substrate
        self.author = author
        self.enabled = enabled

    async def commit(self, path: str, message: str) -> Revision:
        sha = await self._substrate.commit_file(path, message, self.author)
        commits = await self._substrate.log(path)
        for commit in commits:
            if commit.sha == sha:
                return Revision.from_commit(commit)
        # The backend did not report the commit yet; describe it locally.
        logger.debug("Commit %s not yet visible in log of %s", sha, path)
        return Revision(
            reference=sha,
            message=message,
            author=self.author,
            timestamp=datetime.now(timezone.utc),
        )

    async def history(self, path: str) -> list[Revision]:
        """Revisions of *path*, newest first. Empty when never committed."""
        return [Revision.from_commit(c) for c in await self._substrate.log(path)]

    async def history_for(self, kind_key: str, record_id: str) -> list[Revision]:
        return await self.history(get_kind(kind_key).record_path(record_id))

    async def read_at(self, path: str, reference: str) -> str | None:
        return await self._substrate.read_file_at(path, reference)

    async def snapshot(self, kind_key: str, record_id: str, reference: str) -> Any | None:
        """Decode *record_id* as it was at *reference*, or None."""
        path = get_kind(kind_key).record_path(record_id)
        try:
            text = await self.read_at(path, reference)
        except MalformedContentError:
            logger.warning("%s at %s is not text", path, reference)
            return None
        if text is None:
            return None
        return get_codec(kind_key).deserialize(text)

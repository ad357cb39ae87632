# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Dict-backed ``Substrate``.

Every call yields to the event loop once before touching state, so concurrent
callers interleave the way they would against real I/O.
"""

from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone

from reqtrace.errors import PathNotFoundError
from reqtrace.services.substrate import AuthorInfo, CommitInfo


@dataclass(frozen=True, slots=True)
class _Entry:
    commit: CommitInfo
    path: str
    content: str | None


class InMemorySubstrate:
    def __init__(self) -> None:
        self._files: dict[str, str] = {}
        self._directories: set[str] = set()
        self._commits: list[_Entry] = []

    @staticmethod
    def _normalize(path: str) -> str:
        return path.strip("/")

    # ------------------------------------------------------------------
    # Content operations
    # ------------------------------------------------------------------

    async def read_file(self, path: str) -> str | None:
        await asyncio.sleep(0)
        return self._files.get(self._normalize(path))

    async def write_file(self, path: str, content: str) -> None:
        await asyncio.sleep(0)
        path = self._normalize(path)
        folder, _, _ = path.rpartition("/")
        if folder:
            self._directories.add(folder)
        self._files[path] = content

    async def delete_file(self, path: str) -> None:
        await asyncio.sleep(0)
        path = self._normalize(path)
        if path not in self._files:
            raise PathNotFoundError(f"Not found: {path}", path=path)
        del self._files[path]

    async def list_files(self, folder: str) -> list[str]:
        await asyncio.sleep(0)
        prefix = self._normalize(folder) + "/"
        return sorted(
            path[len(prefix):]
            for path in self._files
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        )

    async def ensure_directory(self, folder: str) -> None:
        await asyncio.sleep(0)
        self._directories.add(self._normalize(folder))

    def has_directory(self, folder: str) -> bool:
        return self._normalize(folder) in self._directories

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def commit_file(self, path: str, message: str, author: AuthorInfo) -> str:
        await asyncio.sleep(0)
        path = self._normalize(path)
        content = self._files.get(path)
        seed = f"{len(self._commits)}\0{path}\0{message}\0{content}"
        sha = hashlib.sha1(seed.encode()).hexdigest()
        commit = CommitInfo(
            sha=sha,
            message=message,
            author=author,
            timestamp=datetime.now(timezone.utc),
        )
        self._commits.append(_Entry(commit=commit, path=path, content=content))
        return sha

    async def log(self, path: str) -> list[CommitInfo]:
        await asyncio.sleep(0)
        path = self._normalize(path)
        return [entry.commit for entry in reversed(self._commits) if entry.path == path]

    async def read_file_at(self, path: str, ref: str) -> str | None:
        await asyncio.sleep(0)
        path = self._normalize(path)
        # Walk forward to *ref* and report the latest committed state of *path*.
        content: str | None = None
        for entry in self._commits:
            if entry.path == path:
                content = entry.content
            if entry.commit.sha == ref:
                return content
        return None

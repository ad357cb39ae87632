# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Storage substrate protocol.

Every component above this module sees storage only through ``Substrate``:
read/write/list/delete a path plus commit and log for version history. The
backend (a local git working tree, a Forgejo repository, memory) is chosen by
``reqtrace.workspace``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuthorInfo:
    """Commit author identity."""

    name: str
    email: str


@dataclass(frozen=True, slots=True)
class CommitInfo:
    sha: str
    message: str
    author: AuthorInfo
    timestamp: datetime


# ---------------------------------------------------------------------------
# Protocol (abstract interface)
# ---------------------------------------------------------------------------


class Substrate(Protocol):
    """Key-value-with-history storage.

    Paths are ``/``-separated and relative to the workspace root.  Each call is
    atomic on its own; nothing spans calls.
    """

    # --- Content operations ---

    async def read_file(self, path: str) -> str | None:
        """Return a file's text, or None if it does not exist.

        Raises ``MalformedContentError`` when the stored bytes are not UTF-8.
        """
        ...

    async def write_file(self, path: str, content: str) -> None:
        """Create or replace a file, creating parent folders as needed."""
        ...

    async def delete_file(self, path: str) -> None:
        """Remove a file. Raises ``PathNotFoundError`` if it does not exist."""
        ...

    async def list_files(self, folder: str) -> list[str]:
        """Return the file names (not paths) directly inside *folder*."""
        ...

    async def ensure_directory(self, folder: str) -> None:
        """Create *folder* if missing. Idempotent."""
        ...

    # --- History ---

    async def commit_file(self, path: str, message: str, author: AuthorInfo) -> str:
        """Record the current state of *path* (or its deletion). Returns the commit SHA."""
        ...

    async def log(self, path: str) -> list[CommitInfo]:
        """List commits touching *path*, newest first."""
        ...

    async def read_file_at(self, path: str, ref: str) -> str | None:
        """Return *path* as of commit *ref*, or None if it did not exist there."""
        ...

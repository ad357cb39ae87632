# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Local ``Substrate``: a working tree on disk with history kept by the ``git`` CLI.

File operations run in worker threads; git runs as a subprocess.  Commits are
serialised by one lock because git's index is shared by the whole repository.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path

from reqtrace.errors import MalformedContentError, PathNotFoundError, SubstrateError
from reqtrace.services.substrate import AuthorInfo, CommitInfo

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%an", "%ae", "%at", "%B"]) + _RECORD_SEP

_REF_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._/~^-]{0,254}$")


class GitCommandError(SubstrateError):
    """Raised when a git subprocess exits non-zero."""

    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        super().__init__(f"git {' '.join(args)} failed ({returncode}): {stderr.strip()[:500]}")
        self.returncode = returncode
        self.stderr = stderr


class LocalGitSubstrate:
    """``Substrate`` implementation over a directory that is also a git repository.

    Parameters
    ----------
    root:
        Workspace directory.  Created (and ``git init``-ed) by ``initialize``.
    git_binary:
        Name or path of the git executable.
    """

    def __init__(self, root: Path | str, git_binary: str = "git") -> None:
        self._root = Path(root).resolve()
        self._git = git_binary
        self._commit_lock = asyncio.Lock()

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve(self, path: str) -> Path:
        """Map a workspace-relative path to disk, refusing anything outside the root."""
        target = (self._root / path.strip("/")).resolve()
        if target != self._root and self._root not in target.parents:
            raise SubstrateError(f"Path escapes workspace: {path!r}", path=path)
        return target

    @staticmethod
    def _validate_ref(ref: str) -> str:
        if not _REF_RE.match(ref) or ".." in ref or ref.endswith(".lock"):
            raise SubstrateError(f"Invalid git ref: {ref!r}")
        return ref

    async def _run_git(
        self,
        *args: str,
        author: AuthorInfo | None = None,
        check: bool = True,
    ) -> tuple[int, str, str]:
        env = dict(os.environ)
        if author is not None:
            env.update(
                GIT_AUTHOR_NAME=author.name,
                GIT_AUTHOR_EMAIL=author.email,
                GIT_COMMITTER_NAME=author.name,
                GIT_COMMITTER_EMAIL=author.email,
            )
        try:
            proc = await asyncio.create_subprocess_exec(
                self._git,
                *args,
                cwd=self._root,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise SubstrateError(f"Cannot run {self._git}: {exc}") from exc
        out, err = await proc.communicate()
        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")
        returncode = proc.returncode if proc.returncode is not None else -1
        if check and returncode != 0:
            raise GitCommandError(list(args), returncode, stderr)
        return returncode, stdout, stderr

    async def _has_head(self) -> bool:
        code, _, _ = await self._run_git("rev-parse", "--verify", "--quiet", "HEAD", check=False)
        return code == 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create the workspace directory and its git repository if missing."""
        await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)
        if not (self._root / ".git").exists():
            await self._run_git("init", "--quiet")
            logger.info("Initialised git repository at %s", self._root)

    # ------------------------------------------------------------------
    # Content operations
    # ------------------------------------------------------------------

    async def read_file(self, path: str) -> str | None:
        target = self._resolve(path)

        def _read() -> str | None:
            try:
                with target.open(encoding="utf-8", newline="") as fh:
                    return fh.read()
            except FileNotFoundError:
                return None
            except UnicodeDecodeError as exc:
                raise MalformedContentError(f"{path} is not UTF-8 text: {exc}", path=path) from exc

        try:
            return await asyncio.to_thread(_read)
        except OSError as exc:
            raise SubstrateError(f"Cannot read {path}: {exc}", path=path) from exc

    async def write_file(self, path: str, content: str) -> None:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps the text byte-for-byte on every platform.
            with target.open("w", encoding="utf-8", newline="") as fh:
                fh.write(content)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise SubstrateError(f"Cannot write {path}: {exc}", path=path) from exc

    async def delete_file(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError as exc:
            raise PathNotFoundError(f"Not found: {path}", path=path) from exc
        except OSError as exc:
            raise SubstrateError(f"Cannot delete {path}: {exc}", path=path) from exc

    async def list_files(self, folder: str) -> list[str]:
        target = self._resolve(folder)

        def _list() -> list[str]:
            if not target.is_dir():
                return []
            return sorted(entry.name for entry in target.iterdir() if entry.is_file())

        try:
            return await asyncio.to_thread(_list)
        except OSError as exc:
            raise SubstrateError(f"Cannot list {folder}: {exc}", path=folder) from exc

    async def ensure_directory(self, folder: str) -> None:
        target = self._resolve(folder)
        try:
            await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise SubstrateError(f"Cannot create {folder}: {exc}", path=folder) from exc

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def commit_file(self, path: str, message: str, author: AuthorInfo) -> str:
        """Stage *path* (or its removal) and commit it alone."""
        target = self._resolve(path)
        rel = target.relative_to(self._root).as_posix()
        async with self._commit_lock:
            if await asyncio.to_thread(target.exists):
                await self._run_git("add", "--", rel)
            else:
                await self._run_git("rm", "--cached", "--quiet", "--ignore-unmatch", "--", rel)
            await self._run_git(
                "-c", "commit.gpgsign=false",
                "commit", "--quiet", "--allow-empty", "--no-verify", "-m", message,
                author=author,
            )
            _, out, _ = await self._run_git("rev-parse", "HEAD")
        sha = out.strip()
        logger.info("Committed %s (sha=%s): %s", rel, sha[:12], message)
        return sha

    async def log(self, path: str) -> list[CommitInfo]:
        rel = self._resolve(path).relative_to(self._root).as_posix()
        if not await self._has_head():
            return []
        _, out, _ = await self._run_git("log", f"--format={_LOG_FORMAT}", "--", rel)
        commits: list[CommitInfo] = []
        for raw in out.split(_RECORD_SEP):
            raw = raw.strip("\n")
            if not raw:
                continue
            sha, name, email, epoch, message = raw.split(_FIELD_SEP, 4)
            commits.append(
                CommitInfo(
                    sha=sha,
                    message=message.strip(),
                    author=AuthorInfo(name=name, email=email),
                    timestamp=datetime.fromtimestamp(int(epoch), tz=timezone.utc),
                )
            )
        return commits

    async def read_file_at(self, path: str, ref: str) -> str | None:
        rel = self._resolve(path).relative_to(self._root).as_posix()
        ref = self._validate_ref(ref)
        code, out, _ = await self._run_git("show", f"{ref}:{rel}", check=False)
        if code != 0:
            return None
        return out

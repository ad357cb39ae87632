# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Forgejo ``Substrate`` adapter.

This is the ONLY module that talks to Forgejo. One repository branch holds the
whole workspace; files are read and written through the contents API and
history comes from the commits API.

The contents API turns every write into a commit, so writes are staged in
memory and pushed by ``commit_file`` with the caller's message.  Staged paths
are visible to reads immediately.  ``flush`` pushes anything still staged and
``close`` flushes before shutting the HTTP client down.
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

import httpx

from reqtrace.config import get_settings
from reqtrace.errors import (
    MalformedContentError,
    PathNotFoundError,
    SubstrateError,
    SubstrateUnavailableError,
)
from reqtrace.services.substrate import AuthorInfo, CommitInfo

logger = logging.getLogger(__name__)

_PAGE_LIMIT = 50

# Marker for a staged deletion.
_DELETED = None


def _parse_datetime(value: str | None) -> datetime:
    """Parse an ISO-8601 datetime string returned by Forgejo."""
    if not value:
        return datetime.min.replace(tzinfo=timezone.utc)
    # Forgejo returns e.g. "2026-01-15T12:30:00+00:00" or a trailing "Z"
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _parse_commit(raw: dict) -> CommitInfo:
    """Convert a Forgejo commit JSON object to ``CommitInfo``."""
    commit_data = raw.get("commit", raw)
    author_data = commit_data.get("author", {})
    return CommitInfo(
        sha=raw.get("sha", commit_data.get("id", "")),
        message=commit_data.get("message", "").strip(),
        author=AuthorInfo(
            name=author_data.get("name", ""),
            email=author_data.get("email", ""),
        ),
        timestamp=_parse_datetime(author_data.get("date")),
    )


class ForgejoSubstrate:
    """``Substrate`` implementation backed by the Forgejo REST API.

    Parameters
    ----------
    forgejo_url:
        Base URL of the Forgejo instance (e.g. ``http://forgejo:3000``).
        Falls back to ``settings.forgejo_url``.
    token:
        API token.  Falls back to ``settings.forgejo_token`` and then to the
        contents of the token file.
    owner, repo, branch:
        Repository coordinates.  Fall back to the matching settings.
    token_file:
        File holding the token when none is given.  Falls back to
        ``settings.forgejo_token_file``.
    transport:
        Optional httpx transport, used by tests to stub the server.
    """

    def __init__(
        self,
        forgejo_url: str | None = None,
        token: str | None = None,
        *,
        owner: str | None = None,
        repo: str | None = None,
        branch: str | None = None,
        token_file: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (forgejo_url or settings.forgejo_url).rstrip("/")
        self._token = token or settings.forgejo_token
        token_file = token_file or settings.forgejo_token_file
        if not self._token and token_file:
            token_path = Path(token_file)
            if token_path.is_file():
                self._token = token_path.read_text().strip()
                logger.info("Loaded Forgejo token from %s", token_path)
        self._owner = owner or settings.forgejo_owner
        self._repo = repo or settings.forgejo_repo
        self._branch = branch or settings.forgejo_branch

        # path -> staged text, or _DELETED for a staged removal
        self._staged: dict[str, str | None] = {}

        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api/v1",
            headers={
                "Authorization": f"token {self._token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(30.0, connect=10.0),
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
            ),
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize(path: str) -> str:
        return path.strip("/")

    def _contents_path(self, path: str) -> str:
        base = f"/repos/{self._owner}/{self._repo}/contents"
        return f"{base}/{quote(path, safe='/')}" if path else base

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | list | None = None,
        params: dict | None = None,
    ) -> httpx.Response:
        """Send a request and translate HTTP errors to substrate exceptions."""
        try:
            resp = await self._client.request(method, path, json=json, params=params)
        except httpx.ConnectError as exc:
            raise SubstrateUnavailableError(
                f"Cannot connect to Forgejo at {self._base_url}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise SubstrateUnavailableError(
                f"Forgejo request timed out: {method} {path}"
            ) from exc

        if resp.status_code == 404:
            raise PathNotFoundError(f"Not found: {method} {path}", path=path)
        if resp.status_code == 503:
            raise SubstrateUnavailableError("Forgejo returned 503 Service Unavailable")
        if resp.status_code >= 400:
            detail = resp.text[:500] if resp.text else str(resp.status_code)
            raise SubstrateError(
                f"Forgejo API error {resp.status_code} on {method} {path}: {detail}",
                path=path,
            )
        return resp

    async def _paginate_all(self, path: str, *, params: dict | None = None) -> list[dict]:
        """Fetch every page from a paginated Forgejo endpoint."""
        results: list[dict] = []
        page = 1
        while True:
            query = dict(params or {})
            query["page"] = page
            query["limit"] = _PAGE_LIMIT
            resp = await self._request("GET", path, params=query)
            batch = resp.json()
            results.extend(batch)
            if len(batch) < _PAGE_LIMIT:
                break
            page += 1
        return results

    async def _get_remote(self, path: str, ref: str) -> dict | None:
        """Return the contents-API entry for a file at *ref*, or None."""
        try:
            resp = await self._request(
                "GET", self._contents_path(path), params={"ref": ref}
            )
        except PathNotFoundError:
            return None
        data = resp.json()
        # A directory answers with a list of entries.
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            return None
        return data

    @staticmethod
    def _decode(path: str, entry: dict) -> str:
        try:
            return base64.b64decode(entry.get("content") or "").decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise MalformedContentError(f"{path} is not UTF-8 text: {exc}", path=path) from exc

    async def _push(self, path: str, message: str, author: AuthorInfo) -> str:
        """Send the staged change for *path* as one commit and return its SHA."""
        content = self._staged[path]
        existing = await self._get_remote(path, self._branch)
        payload: dict = {
            "message": message,
            "branch": self._branch,
            "author": {"name": author.name, "email": author.email},
            "committer": {"name": author.name, "email": author.email},
        }
        if content is _DELETED:
            if existing is None:
                # Written and removed again before any push.
                del self._staged[path]
                return ""
            payload["sha"] = existing["sha"]
            method = "DELETE"
        else:
            payload["content"] = base64.b64encode(content.encode("utf-8")).decode()
            if existing is not None:
                payload["sha"] = existing["sha"]
            method = "PUT" if existing is not None else "POST"

        resp = await self._request(method, self._contents_path(path), json=payload)
        del self._staged[path]
        sha: str = resp.json().get("commit", {}).get("sha", "")
        logger.info(
            "Committed %s to %s/%s@%s (sha=%s)",
            path,
            self._owner,
            self._repo,
            self._branch,
            sha[:12] if sha else "?",
        )
        return sha

    # ------------------------------------------------------------------
    # Content operations
    # ------------------------------------------------------------------

    async def read_file(self, path: str) -> str | None:
        path = self._normalize(path)
        if path in self._staged:
            return self._staged[path]
        entry = await self._get_remote(path, self._branch)
        return self._decode(path, entry) if entry is not None else None

    async def write_file(self, path: str, content: str) -> None:
        self._staged[self._normalize(path)] = content

    async def delete_file(self, path: str) -> None:
        path = self._normalize(path)
        if path in self._staged:
            if self._staged[path] is _DELETED:
                raise PathNotFoundError(f"Not found: {path}", path=path)
        elif await self._get_remote(path, self._branch) is None:
            raise PathNotFoundError(f"Not found: {path}", path=path)
        self._staged[path] = _DELETED

    async def list_files(self, folder: str) -> list[str]:
        folder = self._normalize(folder)
        try:
            resp = await self._request(
                "GET", self._contents_path(folder), params={"ref": self._branch}
            )
            items = resp.json()
        except PathNotFoundError:
            items = []
        # A single object means *folder* is a file, not a directory.
        if isinstance(items, dict):
            items = []
        names = {item["name"] for item in items if item.get("type", "file") == "file"}

        prefix = f"{folder}/" if folder else ""
        for path, content in self._staged.items():
            if not path.startswith(prefix) or "/" in path[len(prefix):]:
                continue
            name = path[len(prefix):]
            if content is _DELETED:
                names.discard(name)
            else:
                names.add(name)
        return sorted(names)

    async def ensure_directory(self, folder: str) -> None:
        # Git stores no empty directories; folders appear with their first file.
        logger.debug("ensure_directory(%s) is implicit on Forgejo", folder)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def commit_file(self, path: str, message: str, author: AuthorInfo) -> str:
        path = self._normalize(path)
        if path in self._staged:
            return await self._push(path, message, author)
        # Nothing staged: the path is already at its committed state.
        commits = await self.log(path)
        return commits[0].sha if commits else ""

    async def flush(self, author: AuthorInfo | None = None) -> list[str]:
        """Push every staged change with a generic message."""
        settings = get_settings()
        author = author or AuthorInfo(name=settings.author_name, email=settings.author_email)
        shas: list[str] = []
        for path in list(self._staged):
            verb = "Delete" if self._staged[path] is _DELETED else "Update"
            shas.append(await self._push(path, f"{verb} {path}", author))
        return shas

    async def log(self, path: str) -> list[CommitInfo]:
        path = self._normalize(path)
        try:
            raw_list = await self._paginate_all(
                f"/repos/{self._owner}/{self._repo}/commits",
                params={"sha": self._branch, "path": path},
            )
        except PathNotFoundError:
            return []
        return [_parse_commit(c) for c in raw_list]

    async def read_file_at(self, path: str, ref: str) -> str | None:
        path = self._normalize(path)
        entry = await self._get_remote(path, ref)
        return self._decode(path, entry) if entry is not None else None

    async def close(self) -> None:
        """Push staged changes and close the underlying HTTP client.

        Should be called during application shutdown.
        """
        try:
            if self._staged:
                await self.flush()
        finally:
            await self._client.aclose()

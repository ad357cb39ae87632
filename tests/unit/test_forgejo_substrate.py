# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

import base64
import hashlib
import json
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest

from reqtrace.codecs import get_codec
from reqtrace.errors import (
    MalformedContentError,
    PathNotFoundError,
    SubstrateError,
    SubstrateUnavailableError,
)
from reqtrace.repositories.record_store import RecordStore
from reqtrace.schemas import Requirement
from reqtrace.services.forgejo_substrate import ForgejoSubstrate
from reqtrace.workspace import Workspace
from tests.conftest import TEST_AUTHOR, make_requirement

CONTENTS = "/api/v1/repos/reqtrace/workspace/contents"
COMMITS = "/api/v1/repos/reqtrace/workspace/commits"


def _blob_sha(content: str) -> str:
    return hashlib.sha1(content.encode()).hexdigest()


class FakeForgejo:
    """Just enough of the contents and commits API for one repository."""

    def __init__(self) -> None:
        self.files: dict[str, str] = {}
        # (sha, path, content or None, message, author)
        self.commits: list[tuple[str, str, str | None, str, dict]] = []
        self.requests: list[httpx.Request] = []

    def seed(self, path: str, content: str, message: str = "seed") -> str:
        self.files[path] = content
        return self._record(path, content, message, {"name": "Seeder", "email": "seed@x"})

    def _record(self, path: str, content: str | None, message: str, author: dict) -> str:
        sha = hashlib.sha1(f"{len(self.commits)}:{path}:{message}".encode()).hexdigest()
        self.commits.append((sha, path, content, message, author))
        return sha

    def _files_at(self, ref: str) -> dict[str, str] | None:
        if ref == "main":
            return self.files
        state: dict[str, str] = {}
        for sha, path, content, _, _ in self.commits:
            if content is None:
                state.pop(path, None)
            else:
                state[path] = content
            if sha == ref:
                return state
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url_path = request.url.path
        if url_path.startswith(CONTENTS):
            path = url_path[len(CONTENTS):].strip("/")
            if request.method == "GET":
                return self._get_contents(path, request.url.params.get("ref", "main"))
            return self._change_contents(request, path)
        if url_path == COMMITS and request.method == "GET":
            return self._list_commits(request)
        return httpx.Response(404, json={"message": "not found"})

    def _get_contents(self, path: str, ref: str) -> httpx.Response:
        files = self._files_at(ref)
        if files is None:
            return httpx.Response(404, json={"message": "ref not found"})
        if path in files:
            content = files[path]
            return httpx.Response(
                200,
                json={
                    "type": "file",
                    "name": path.rsplit("/", 1)[-1],
                    "path": path,
                    "sha": _blob_sha(content),
                    "content": base64.b64encode(content.encode()).decode(),
                },
            )
        prefix = f"{path}/" if path else ""
        entries = {}
        for file_path in files:
            if file_path.startswith(prefix):
                name, _, rest = file_path[len(prefix):].partition("/")
                entries[name] = "dir" if rest else "file"
        if not entries:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json=[{"name": n, "type": t} for n, t in sorted(entries.items())])

    def _change_contents(self, request: httpx.Request, path: str) -> httpx.Response:
        payload = json.loads(request.content)
        exists = path in self.files
        if request.method == "POST" and exists:
            return httpx.Response(422, json={"message": "file exists"})
        if request.method in ("PUT", "DELETE"):
            if not exists:
                return httpx.Response(404, json={"message": "not found"})
            if payload.get("sha") != _blob_sha(self.files[path]):
                return httpx.Response(409, json={"message": "sha mismatch"})
        if request.method == "DELETE":
            del self.files[path]
            content = None
        else:
            content = base64.b64decode(payload["content"]).decode()
            self.files[path] = content
        sha = self._record(path, content, payload["message"], payload["author"])
        return httpx.Response(201 if request.method == "POST" else 200, json={"commit": {"sha": sha}})

    def _list_commits(self, request: httpx.Request) -> httpx.Response:
        path = request.url.params["path"]
        page = int(request.url.params.get("page", "1"))
        limit = int(request.url.params.get("limit", "50"))
        matching = [c for c in reversed(self.commits) if c[1] == path]
        window = matching[(page - 1) * limit : page * limit]
        return httpx.Response(
            200,
            json=[
                {
                    "sha": sha,
                    "commit": {
                        "message": message + "\n",
                        "author": {**author, "date": "2026-01-15T12:30:00Z"},
                    },
                }
                for sha, _, _, message, author in window
            ],
        )

    def methods(self) -> list[str]:
        return [r.method for r in self.requests if r.method != "GET"]


@pytest.fixture
def forgejo() -> FakeForgejo:
    return FakeForgejo()


@pytest.fixture
async def substrate(forgejo: FakeForgejo) -> AsyncIterator[ForgejoSubstrate]:
    sub = ForgejoSubstrate(
        "http://forgejo.test",
        "secret-token",
        owner="reqtrace",
        repo="workspace",
        branch="main",
        transport=httpx.MockTransport(forgejo.handler),
    )
    yield sub
    await sub.close()


class TestReads:
    async def test_read_existing(self, forgejo: FakeForgejo, substrate: ForgejoSubstrate) -> None:
        forgejo.seed("requirements/REQ-001.md", "hello")
        assert await substrate.read_file("requirements/REQ-001.md") == "hello"
        assert forgejo.requests[0].headers["Authorization"] == "token secret-token"

    async def test_read_missing(self, substrate: ForgejoSubstrate) -> None:
        assert await substrate.read_file("requirements/REQ-404.md") is None

    async def test_read_directory_is_none(
        self, forgejo: FakeForgejo, substrate: ForgejoSubstrate
    ) -> None:
        forgejo.seed("requirements/REQ-001.md", "hello")
        assert await substrate.read_file("requirements") is None

    async def test_list_files(self, forgejo: FakeForgejo, substrate: ForgejoSubstrate) -> None:
        forgejo.seed("requirements/REQ-002.md", "b")
        forgejo.seed("requirements/REQ-001.md", "a")
        forgejo.seed("requirements/archive/REQ-000.md", "z")
        assert await substrate.list_files("requirements") == ["REQ-001.md", "REQ-002.md"]
        assert await substrate.list_files("risks") == []


class TestStagedWrites:
    async def test_write_is_visible_before_commit(
        self, forgejo: FakeForgejo, substrate: ForgejoSubstrate
    ) -> None:
        await substrate.write_file("requirements/REQ-001.md", "draft")
        assert await substrate.read_file("requirements/REQ-001.md") == "draft"
        assert await substrate.list_files("requirements") == ["REQ-001.md"]
        assert forgejo.methods() == []

    async def test_commit_creates_then_updates(
        self, forgejo: FakeForgejo, substrate: ForgejoSubstrate
    ) -> None:
        await substrate.write_file("requirements/REQ-001.md", "v1")
        first = await substrate.commit_file("requirements/REQ-001.md", "Create REQ-001", TEST_AUTHOR)
        await substrate.write_file("requirements/REQ-001.md", "v2")
        second = await substrate.commit_file("requirements/REQ-001.md", "Update REQ-001", TEST_AUTHOR)

        assert first and second and first != second
        assert forgejo.methods() == ["POST", "PUT"]
        assert forgejo.files["requirements/REQ-001.md"] == "v2"
        payload = json.loads(forgejo.requests[-1].content)
        assert payload["author"] == {"name": TEST_AUTHOR.name, "email": TEST_AUTHOR.email}
        assert payload["branch"] == "main"

    async def test_commit_of_deletion(
        self, forgejo: FakeForgejo, substrate: ForgejoSubstrate
    ) -> None:
        forgejo.seed("requirements/REQ-001.md", "x")
        await substrate.delete_file("requirements/REQ-001.md")
        assert await substrate.read_file("requirements/REQ-001.md") is None
        assert await substrate.list_files("requirements") == []
        await substrate.commit_file("requirements/REQ-001.md", "Delete", TEST_AUTHOR)
        assert forgejo.methods() == ["DELETE"]
        assert "requirements/REQ-001.md" not in forgejo.files

    async def test_delete_missing(self, substrate: ForgejoSubstrate) -> None:
        with pytest.raises(PathNotFoundError):
            await substrate.delete_file("requirements/REQ-404.md")

    async def test_write_then_delete_never_reaches_server(
        self, forgejo: FakeForgejo, substrate: ForgejoSubstrate
    ) -> None:
        await substrate.write_file("a/1.md", "x")
        await substrate.delete_file("a/1.md")
        assert await substrate.commit_file("a/1.md", "noop", TEST_AUTHOR) == ""
        assert forgejo.methods() == []

    async def test_close_flushes_staged_writes(self, forgejo: FakeForgejo) -> None:
        sub = ForgejoSubstrate(
            "http://forgejo.test",
            "t",
            owner="reqtrace",
            repo="workspace",
            branch="main",
            transport=httpx.MockTransport(forgejo.handler),
        )
        await sub.write_file("counters/requirements.md", "3")
        await sub.close()
        assert forgejo.files["counters/requirements.md"] == "3"
        assert forgejo.commits[-1][3] == "Update counters/requirements.md"


class TestHistory:
    async def test_log_newest_first(self, forgejo: FakeForgejo, substrate: ForgejoSubstrate) -> None:
        forgejo.seed("a.md", "1", "first")
        forgejo.seed("b.md", "1", "other")
        forgejo.seed("a.md", "2", "second")
        log = await substrate.log("a.md")
        assert [c.message for c in log] == ["second", "first"]
        assert log[0].author.name == "Seeder"
        assert log[0].timestamp.year == 2026
        assert log[0].timestamp.tzinfo is not None

    async def test_log_paginates(self, forgejo: FakeForgejo, substrate: ForgejoSubstrate) -> None:
        for n in range(120):
            forgejo.seed("a.md", str(n), f"v{n}")
        log = await substrate.log("a.md")
        assert len(log) == 120
        assert log[0].message == "v119"

    async def test_read_file_at(self, forgejo: FakeForgejo, substrate: ForgejoSubstrate) -> None:
        first = forgejo.seed("a.md", "one")
        forgejo.seed("a.md", "two")
        assert await substrate.read_file_at("a.md", first) == "one"
        assert await substrate.read_file_at("b.md", first) is None


def _stub_substrate(handler: Callable[[httpx.Request], httpx.Response]) -> ForgejoSubstrate:
    return ForgejoSubstrate(
        "http://forgejo.test",
        "t",
        owner="reqtrace",
        repo="workspace",
        branch="main",
        transport=httpx.MockTransport(handler),
    )


class TestErrorMapping:
    async def test_503_is_unavailable(self) -> None:
        sub = _stub_substrate(lambda request: httpx.Response(503))
        with pytest.raises(SubstrateUnavailableError):
            await sub.read_file("a.md")

    async def test_server_error(self) -> None:
        sub = _stub_substrate(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(SubstrateError) as exc_info:
            await sub.list_files("requirements")
        assert "boom" in str(exc_info.value)

    async def test_connect_error_is_unavailable(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        sub = _stub_substrate(refuse)
        with pytest.raises(SubstrateUnavailableError):
            await sub.read_file("a.md")

    async def test_non_utf8_unit_is_skipped_by_store(self) -> None:
        good = get_codec("requirements").serialize(Requirement(**make_requirement()))
        bodies = {
            "requirements/REQ-001.md": good.encode(),
            "requirements/REQ-002.md": b"---\nid: REQ-002\xff\xfe\n---\n\n",
        }

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path[len(CONTENTS):].strip("/")
            if path == "requirements":
                return httpx.Response(
                    200, json=[{"name": p.rsplit("/", 1)[-1], "type": "file"} for p in bodies]
                )
            if path in bodies:
                content = base64.b64encode(bodies[path]).decode()
                return httpx.Response(200, json={"type": "file", "sha": "x", "content": content})
            return httpx.Response(404)

        sub = _stub_substrate(handler)
        with pytest.raises(MalformedContentError):
            await sub.read_file("requirements/REQ-002.md")

        store: RecordStore = RecordStore(sub, "requirements")
        assert [r.id for r in await store.load_all()] == ["REQ-001"]
        assert await store.load("REQ-002") is None
        assert await store.exists("REQ-002")


class TestConfiguration:
    async def test_token_file_fallback(self, tmp_path: Path, forgejo: FakeForgejo) -> None:
        token_file = tmp_path / "token"
        token_file.write_text("from-file\n")
        sub = ForgejoSubstrate(
            "http://forgejo.test",
            owner="reqtrace",
            repo="workspace",
            branch="main",
            token_file=str(token_file),
            transport=httpx.MockTransport(forgejo.handler),
        )
        await sub.read_file("a.md")
        await sub.close()
        assert forgejo.requests[0].headers["Authorization"] == "token from-file"


class TestWorkspaceOverForgejo:
    async def test_create_and_browse(self, forgejo: FakeForgejo, substrate: ForgejoSubstrate) -> None:
        workspace = Workspace(substrate, author=TEST_AUTHOR)
        req = await workspace.requirements.create(title="Audit", description="Body text")
        await workspace.requirements.update(req.id, title="Audited")

        assert req.id == "REQ-001"
        stored = forgejo.files["requirements/REQ-001.md"]
        assert "title: Audited" in stored
        revisions = await workspace.history.history_for("requirements", req.id)
        assert [r.message for r in revisions] == [
            "Update REQ-001: Audited",
            "Create REQ-001: Audit",
        ]
        past = await workspace.history.snapshot("requirements", req.id, revisions[1].reference)
        assert past is not None and past.title == "Audit"

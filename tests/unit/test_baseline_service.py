# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

import pytest

from reqtrace.errors import PathNotFoundError, RecordValidationError
from reqtrace.schemas import Requirement
from reqtrace.workspace import Workspace


async def _project_with_members(workspace: Workspace) -> tuple[str, str, str]:
    req = await workspace.requirements.create(title="Audit logins")
    tc = await workspace.test_cases.create(title="Login writes audit entry")
    project = await workspace.projects.create_project("Door controller")
    await workspace.projects.add_artifact(project.id, req.id)
    await workspace.projects.add_artifact(project.id, tc.id)
    return project.id, req.id, tc.id


class TestCreateBaseline:
    async def test_pins_current_revisions(self, workspace: Workspace) -> None:
        project_id, req_id, tc_id = await _project_with_members(workspace)
        baseline = await workspace.baselines.create_baseline(project_id, "Release 1")

        assert baseline.id == "BL-001"
        assert baseline.version == "01"
        assert set(baseline.artifacts) == {req_id, tc_id}
        (latest,) = await workspace.history.history_for("requirements", req_id)
        assert baseline.artifacts[req_id].reference == latest.reference
        assert baseline.artifacts[req_id].artifact_type == "requirement"
        assert baseline.added_artifacts == sorted([req_id, tc_id])
        assert baseline.removed_artifacts == []
        assert await workspace.baselines.get_baseline(baseline.id) == baseline

    async def test_versions_and_membership_changes(self, workspace: Workspace) -> None:
        project_id, req_id, tc_id = await _project_with_members(workspace)
        await workspace.baselines.create_baseline(project_id, "Release 1")
        risk = await workspace.risks.create(title="Log overflow")
        await workspace.projects.add_artifact(project_id, risk.id)
        await workspace.projects.remove_artifact(project_id, tc_id)

        second = await workspace.baselines.create_baseline(project_id, "Release 2")
        assert second.version == "02"
        assert second.added_artifacts == [risk.id]
        assert second.removed_artifacts == [tc_id]

    async def test_member_without_history_is_left_out(self, workspace: Workspace) -> None:
        project = await workspace.projects.create_project("Door controller")
        await workspace.projects.add_artifact(project.id, "REQ-404")
        baseline = await workspace.baselines.create_baseline(project.id, "Empty")
        assert baseline.artifacts == {}

    async def test_unknown_project(self, workspace: Workspace) -> None:
        with pytest.raises(RecordValidationError) as exc_info:
            await workspace.baselines.create_baseline("PROJ-404", "Release 1")
        assert exc_info.value.field == "project_id"

    async def test_blank_name(self, workspace: Workspace) -> None:
        project = await workspace.projects.create_project("Door controller")
        with pytest.raises(RecordValidationError):
            await workspace.baselines.create_baseline(project.id, " ")

    async def test_is_committed(self, workspace: Workspace) -> None:
        project_id, _, _ = await _project_with_members(workspace)
        baseline = await workspace.baselines.create_baseline(project_id, "Release 1")
        (revision,) = await workspace.history.history_for("baselines", baseline.id)
        assert revision.message == f"Create baseline Release 1 (01) of {project_id}"


class TestBrowseBaselines:
    async def test_artifact_at_baseline(self, workspace: Workspace) -> None:
        project_id, req_id, _ = await _project_with_members(workspace)
        baseline = await workspace.baselines.create_baseline(project_id, "Release 1")
        await workspace.requirements.update(req_id, title="Audit every login")

        pinned = await workspace.baselines.artifact_at(baseline.id, req_id)
        assert isinstance(pinned, Requirement)
        assert pinned.title == "Audit logins"
        assert await workspace.baselines.artifact_at(baseline.id, "REQ-999") is None
        assert await workspace.baselines.artifact_at("BL-404", req_id) is None

    async def test_list_newest_first_per_project(self, workspace: Workspace) -> None:
        project_id, _, _ = await _project_with_members(workspace)
        other = await workspace.projects.create_project("Window controller")
        first = await workspace.baselines.create_baseline(project_id, "Release 1")
        await workspace.baselines.create_baseline(other.id, "Other")
        third = await workspace.baselines.create_baseline(project_id, "Release 2")

        assert [b.id for b in await workspace.baselines.baselines(project_id)] == [third.id, first.id]
        assert len(await workspace.baselines.baselines()) == 3

    async def test_delete(self, workspace: Workspace) -> None:
        project_id, _, _ = await _project_with_members(workspace)
        baseline = await workspace.baselines.create_baseline(project_id, "Release 1")
        await workspace.baselines.delete_baseline(baseline.id)
        assert await workspace.baselines.get_baseline(baseline.id) is None
        with pytest.raises(PathNotFoundError):
            await workspace.baselines.delete_baseline(baseline.id)

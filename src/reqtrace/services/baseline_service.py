# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Project baselines.

A baseline pins every member of a project to the newest history reference
its record had when the baseline was taken.  Any member can later be read
back exactly as it stood through ``RevisionHistory.snapshot``.
"""

from __future__ import annotations

import logging
from typing import Any

from reqtrace.errors import RecordValidationError
from reqtrace.kinds import kind_for_id
from reqtrace.repositories.record_store import RecordStore
from reqtrace.schemas.base import next_revision, now_ms
from reqtrace.schemas.baseline import Baseline, BaselineEntry
from reqtrace.services.history import RevisionHistory
from reqtrace.services.id_allocator import IdAllocator
from reqtrace.services.project_service import ProjectService

logger = logging.getLogger(__name__)

_KIND = "baselines"


class BaselineService:
    def __init__(
        self,
        store: RecordStore[Baseline],
        allocator: IdAllocator,
        *,
        projects: ProjectService,
        history: RevisionHistory,
    ) -> None:
        self.store = store
        self._allocator = allocator
        self._projects = projects
        self._history = history

    async def _pin(self, artifact_id: str) -> BaselineEntry | None:
        kind = kind_for_id(artifact_id)
        if kind is None:
            return None
        revisions = await self._history.history_for(kind.key, artifact_id)
        if not revisions:
            logger.debug("%s has no history; left out of the baseline", artifact_id)
            return None
        return BaselineEntry(reference=revisions[0].reference, artifact_type=kind.artifact_type)

    async def create_baseline(
        self, project_id: str, name: str, description: str = ""
    ) -> Baseline:
        """Freeze the current state of *project_id* under the next version tag."""
        if not name.strip():
            raise RecordValidationError("Baseline name must not be blank", kind=_KIND, field="name")
        project = await self._projects.get_by_id(project_id)
        if project is None:
            raise RecordValidationError(
                f"Unknown project: {project_id}", kind=_KIND, field="project_id"
            )

        artifacts: dict[str, BaselineEntry] = {}
        for artifact_id in project.member_ids():
            entry = await self._pin(artifact_id)
            if entry is not None:
                artifacts[artifact_id] = entry

        previous = await self.baselines(project_id)
        if previous:
            version = next_revision(previous[0].version)
            before = set(previous[0].artifacts)
        else:
            version = "01"
            before = set()

        baseline = Baseline(
            id=await self._allocator.next_id(_KIND),
            project_id=project_id,
            version=version,
            name=name,
            description=description,
            timestamp=now_ms(),
            artifacts=artifacts,
            added_artifacts=sorted(artifacts.keys() - before),
            removed_artifacts=sorted(before - artifacts.keys()),
        )
        await self.store.save(baseline, f"Create baseline {name} ({version}) of {project_id}")
        logger.info("Baseline %s pins %d artifacts of %s", baseline.id, len(artifacts), project_id)
        return baseline

    async def baselines(self, project_id: str | None = None) -> list[Baseline]:
        """Baselines, newest first, optionally for one project."""
        found = [
            baseline
            for baseline in await self.store.load_all()
            if project_id is None or baseline.project_id == project_id
        ]
        sequence = self.store.kind.parse_sequence
        return sorted(found, key=lambda b: (b.timestamp, sequence(b.id) or 0), reverse=True)

    async def get_baseline(self, baseline_id: str) -> Baseline | None:
        return await self.store.load(baseline_id)

    async def delete_baseline(self, baseline_id: str) -> None:
        await self.store.delete(baseline_id, f"Delete baseline {baseline_id}")

    async def artifact_at(self, baseline_id: str, artifact_id: str) -> Any | None:
        """Decode *artifact_id* as it was pinned by the baseline, or None."""
        baseline = await self.get_baseline(baseline_id)
        if baseline is None or artifact_id not in baseline.artifacts:
            return None
        kind = kind_for_id(artifact_id)
        if kind is None:
            return None
        return await self._history.snapshot(
            kind.key, artifact_id, baseline.artifacts[artifact_id].reference
        )

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Projects: named groupings of global artifacts and the scope of link visibility."""

from __future__ import annotations

import logging

from reqtrace.errors import RecordValidationError
from reqtrace.kinds import artifact_type_for_id
from reqtrace.schemas.project import MEMBER_FIELDS, Project
from reqtrace.services.artifact_service import ArtifactService

logger = logging.getLogger(__name__)


class ProjectService(ArtifactService[Project]):
    async def validate(self, record: Project) -> None:
        name = record.name.strip()
        if not name:
            raise RecordValidationError(
                "Project name must not be blank", kind=self.kind_key, field="name"
            )
        if await self.name_exists(name, exclude_id=record.id or None):
            raise RecordValidationError(
                f"A project named {name!r} already exists", kind=self.kind_key, field="name"
            )

    async def name_exists(self, name: str, exclude_id: str | None = None) -> bool:
        """Case-insensitive name check over projects that are not in the trash."""
        wanted = name.strip().casefold()
        return any(
            project.name.strip().casefold() == wanted
            for project in await self.get_all()
            if project.id != exclude_id
        )

    async def create_project(self, name: str, description: str = "") -> Project:
        return await self.create(name=name, description=description)

    async def copy_project(
        self, project_id: str, name: str, description: str | None = None
    ) -> Project | None:
        """Create a new project with the same members as *project_id*."""
        source = await self.get_by_id(project_id)
        if source is None:
            return None
        members = {field: list(getattr(source, field)) for field in MEMBER_FIELDS.values()}
        copy = await self.create(
            name=name,
            description=source.description if description is None else description,
            **members,
        )
        logger.info("Copied project %s to %s", project_id, copy.id)
        return copy

    def _member_field(self, artifact_id: str) -> str:
        field = MEMBER_FIELDS.get(artifact_type_for_id(artifact_id))
        if field is None:
            raise RecordValidationError(
                f"{artifact_id} cannot be a project member",
                kind=self.kind_key,
                field="artifact_id",
            )
        return field

    async def add_artifact(self, project_id: str, artifact_id: str) -> Project | None:
        field = self._member_field(artifact_id)
        project = await self.get_by_id(project_id)
        if project is None:
            return None
        members: list[str] = getattr(project, field)
        if artifact_id in members:
            return project
        return await self.update(project_id, **{field: [*members, artifact_id]})

    async def remove_artifact(self, project_id: str, artifact_id: str) -> Project | None:
        field = self._member_field(artifact_id)
        project = await self.get_by_id(project_id)
        if project is None:
            return None
        members: list[str] = getattr(project, field)
        if artifact_id not in members:
            return project
        return await self.update(
            project_id, **{field: [member for member in members if member != artifact_id]}
        )

    async def projects_containing(self, artifact_id: str) -> list[Project]:
        return [
            project for project in await self.get_all() if artifact_id in project.member_ids()
        ]

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Wiring: one substrate, one history, one allocator and a service per kind."""

from __future__ import annotations

import logging

from reqtrace.config import Settings, get_settings
from reqtrace.kinds import KINDS
from reqtrace.repositories.record_store import RecordStore
from reqtrace.schemas import (
    AttributeDefinition,
    Document,
    Information,
    Project,
    Requirement,
    Risk,
    TestCase,
    UseCase,
    Workflow,
)
from reqtrace.services.artifact_service import ArtifactService
from reqtrace.services.attribute_service import AttributeDefinitionService
from reqtrace.services.baseline_service import BaselineService
from reqtrace.services.forgejo_substrate import ForgejoSubstrate
from reqtrace.services.history import RevisionHistory
from reqtrace.services.id_allocator import IdAllocator
from reqtrace.services.link_service import LinkGraphService
from reqtrace.services.local_substrate import LocalGitSubstrate
from reqtrace.services.memory_substrate import InMemorySubstrate
from reqtrace.services.project_service import ProjectService
from reqtrace.services.substrate import AuthorInfo, Substrate
from reqtrace.services.workflow_service import WorkflowService

logger = logging.getLogger(__name__)


def build_substrate(settings: Settings) -> Substrate:
    if settings.backend == "memory":
        return InMemorySubstrate()
    if settings.backend == "forgejo":
        return ForgejoSubstrate(
            settings.forgejo_url,
            settings.forgejo_token or None,
            owner=settings.forgejo_owner,
            repo=settings.forgejo_repo,
            branch=settings.forgejo_branch,
            token_file=settings.forgejo_token_file or None,
        )
    return LocalGitSubstrate(settings.workspace_root, git_binary=settings.git_binary)


class Workspace:
    """Every service of one workspace, sharing a substrate and an allocator."""

    def __init__(
        self,
        substrate: Substrate,
        *,
        author: AuthorInfo | None = None,
        commit_on_write: bool = True,
        commit_counters: bool = False,
        id_padding: int = 3,
    ) -> None:
        self.substrate = substrate
        self.history = RevisionHistory(
            substrate,
            author or AuthorInfo(name="ReqTrace User", email="user@reqtrace.local"),
            enabled=commit_on_write,
        )
        self.allocator = IdAllocator(
            substrate,
            padding=id_padding,
            history=self.history,
            commit_counters=commit_counters,
        )

        def store(kind_key: str) -> RecordStore:
            return RecordStore(substrate, kind_key, history=self.history)

        self.requirements = ArtifactService(Requirement, store("requirements"), self.allocator)
        self.use_cases = ArtifactService(UseCase, store("usecases"), self.allocator)
        self.test_cases = ArtifactService(TestCase, store("testcases"), self.allocator)
        self.information = ArtifactService(Information, store("information"), self.allocator)
        self.risks = ArtifactService(Risk, store("risks"), self.allocator)
        self.documents = ArtifactService(Document, store("documents"), self.allocator)
        self.workflows = WorkflowService(Workflow, store("workflows"), self.allocator)
        self.attributes = AttributeDefinitionService(
            AttributeDefinition, store("custom-attributes"), self.allocator
        )
        self.links = LinkGraphService(store("links"), self.allocator)
        self.projects = ProjectService(Project, store("projects"), self.allocator)
        self.baselines = BaselineService(
            store("baselines"), self.allocator, projects=self.projects, history=self.history
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Workspace:
        settings = settings or get_settings()
        logger.info(
            "Opening %s workspace (commit_on_write=%s)", settings.backend, settings.commit_on_write
        )
        return cls(
            build_substrate(settings),
            author=AuthorInfo(name=settings.author_name, email=settings.author_email),
            commit_on_write=settings.commit_on_write,
            commit_counters=settings.commit_counters,
            id_padding=settings.id_padding,
        )

    def stores(self) -> list[RecordStore]:
        return [
            self.requirements.store,
            self.use_cases.store,
            self.test_cases.store,
            self.information.store,
            self.risks.store,
            self.documents.store,
            self.workflows.store,
            self.attributes.store,
            self.links.store,
            self.projects.store,
            self.baselines.store,
        ]

    async def initialize(self) -> None:
        """Prepare the backend and every kind's folder. Idempotent."""
        if isinstance(self.substrate, LocalGitSubstrate):
            await self.substrate.initialize()
        for record_store in self.stores():
            await record_store.initialize()

    async def recalculate_counters(self) -> dict[str, int]:
        """Realign every kind's counter with the identifiers on disk."""
        return {key: await self.allocator.recalculate(key) for key in KINDS}

    async def close(self) -> None:
        if isinstance(self.substrate, ForgejoSubstrate):
            await self.substrate.close()

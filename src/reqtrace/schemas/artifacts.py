# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

from typing import Literal

from reqtrace.schemas.base import ArtifactRecord, StorageModel

Priority = Literal["low", "medium", "high"]
DesignStatus = Literal["draft", "approved", "implemented", "verified"]
TestStatus = Literal["draft", "approved", "passed", "failed", "blocked"]
InformationType = Literal["note", "meeting", "decision", "other"]
RiskCategory = Literal["technical", "schedule", "resource", "external", "other"]
RiskStatus = Literal["identified", "analyzing", "mitigating", "resolved", "accepted"]
DocumentStatus = Literal["draft", "approved", "published"]


class Requirement(ArtifactRecord):
    title: str
    description: str = ""
    text: str = ""
    rationale: str = ""
    parent_ids: list[str] | None = None
    use_case_ids: list[str] | None = None
    status: DesignStatus = "draft"
    priority: Priority = "medium"
    author: str | None = None
    verification_method: str | None = None
    comments: str | None = None
    date_created: int
    approval_date: int | None = None


class UseCase(ArtifactRecord):
    title: str
    description: str = ""
    actor: str = ""
    preconditions: str = ""
    postconditions: str = ""
    main_flow: str = ""
    alternative_flows: str | None = None
    priority: Priority = "medium"
    status: DesignStatus = "draft"


class TestCase(ArtifactRecord):
    __test__ = False  # not a pytest class

    title: str
    description: str = ""
    requirement_ids: list[str] = []
    status: TestStatus = "draft"
    priority: Priority = "medium"
    author: str | None = None
    last_run: int | None = None
    date_created: int


class Information(ArtifactRecord):
    title: str
    content: str = ""
    type: InformationType = "note"
    date_created: int


class Risk(ArtifactRecord):
    title: str
    description: str = ""
    category: RiskCategory = "other"
    probability: Priority = "medium"
    impact: Priority = "medium"
    mitigation: str = ""
    contingency: str = ""
    status: RiskStatus = "identified"
    owner: str | None = None
    date_created: int


class DocumentEntry(StorageModel):
    """One item of a document outline: a heading, free text or an artifact reference."""

    type: Literal["heading", "artifact", "text"]
    value: str
    level: int | None = None


class Document(ArtifactRecord):
    title: str
    description: str = ""
    status: DocumentStatus = "draft"
    author: str | None = None
    project_id: str | None = None
    structure: list[DocumentEntry] = []
    date_created: int

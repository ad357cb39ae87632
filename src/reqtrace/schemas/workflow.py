# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

from typing import Literal

from reqtrace.schemas.base import ArtifactRecord

WorkflowStatus = Literal["pending", "approved", "rejected"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"approved", "rejected"})


class Workflow(ArtifactRecord):
    title: str
    description: str = ""
    created_by: str
    assigned_to: str
    status: WorkflowStatus = "pending"
    artifact_ids: list[str] = []
    approved_by: str | None = None
    approval_date: int | None = None
    approver_comment: str | None = None
    date_created: int

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Approval workflows: a pending request moves once to approved or rejected."""

from __future__ import annotations

import logging
from typing import Any

from reqtrace.errors import RecordValidationError, WorkflowStateError
from reqtrace.schemas.base import now_ms
from reqtrace.schemas.workflow import TERMINAL_STATUSES, Workflow, WorkflowStatus
from reqtrace.services.artifact_service import ArtifactService

logger = logging.getLogger(__name__)

# Written only by approve() and reject().
_DECISION_FIELDS = frozenset({"status", "approved_by", "approval_date", "approver_comment"})


class WorkflowService(ArtifactService[Workflow]):
    def _refuse_decision_fields(self, fields: dict[str, Any]) -> None:
        decided = _DECISION_FIELDS & fields.keys()
        if decided:
            raise RecordValidationError(
                "Workflow decisions go through approve() or reject()",
                kind=self.kind_key,
                field=sorted(decided)[0],
            )

    async def validate(self, record: Workflow) -> None:
        if not record.title.strip():
            raise RecordValidationError(
                "Workflow title must not be blank", kind=self.kind_key, field="title"
            )
        if not record.artifact_ids:
            raise RecordValidationError(
                "Workflow must reference at least one artifact",
                kind=self.kind_key,
                field="artifact_ids",
            )
        has_decision = record.approved_by is not None and record.approval_date is not None
        if record.status in TERMINAL_STATUSES and not has_decision:
            raise RecordValidationError(
                f"A {record.status} workflow needs an approver and approval date",
                kind=self.kind_key,
                field="approved_by",
            )
        if record.status == "pending" and (
            record.approved_by is not None or record.approval_date is not None
        ):
            raise RecordValidationError(
                "A pending workflow cannot carry a decision",
                kind=self.kind_key,
                field="approved_by",
            )

    async def create(self, **fields: Any) -> Workflow:
        """Create a pending workflow. Decision fields are refused."""
        if fields.get("status", "pending") == "pending":
            fields.pop("status", None)
        self._refuse_decision_fields(fields)
        return await super().create(**fields, status="pending")

    async def update(self, record_id: str, **changes: Any) -> Workflow | None:
        self._refuse_decision_fields(changes)
        return await super().update(record_id, **changes)

    async def create_workflow(
        self,
        title: str,
        *,
        created_by: str,
        assigned_to: str,
        artifact_ids: list[str],
        description: str = "",
    ) -> Workflow:
        return await self.create(
            title=title,
            description=description,
            created_by=created_by,
            assigned_to=assigned_to,
            artifact_ids=artifact_ids,
            status="pending",
        )

    async def _decide(
        self,
        workflow_id: str,
        status: WorkflowStatus,
        actor: str,
        comment: str | None,
        verb: str,
    ) -> Workflow | None:
        current = await self.store.load(workflow_id)
        if current is None:
            return None
        if not current.is_pending:
            raise WorkflowStateError(workflow_id, current.status)
        now = now_ms()
        record = current.merged(
            status=status,
            approved_by=actor,
            approval_date=now,
            approver_comment=comment,
            last_modified=now,
        )
        await self.store.save(record, f"{verb} workflow {workflow_id} by {actor}")
        logger.info("Workflow %s %s by %s", workflow_id, status, actor)
        return record

    async def approve(
        self, workflow_id: str, approved_by: str, comment: str | None = None
    ) -> Workflow | None:
        return await self._decide(workflow_id, "approved", approved_by, comment, "Approve")

    async def reject(
        self, workflow_id: str, rejected_by: str, reason: str | None = None
    ) -> Workflow | None:
        return await self._decide(workflow_id, "rejected", rejected_by, reason, "Reject")

    async def assigned_to(self, user: str) -> list[Workflow]:
        """Pending workflows waiting on *user*."""
        return [
            wf for wf in await self.get_all() if wf.assigned_to == user and wf.is_pending
        ]

    async def created_by(self, user: str) -> list[Workflow]:
        return [wf for wf in await self.get_all() if wf.created_by == user]

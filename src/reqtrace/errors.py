# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Exception hierarchy shared by every storage component."""

from __future__ import annotations


class ReqTraceError(Exception):
    """Base exception for the storage core."""


class SubstrateError(ReqTraceError):
    """Raised when the underlying file or version-control backend fails."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PathNotFoundError(SubstrateError):
    """Raised when a storage path does not exist."""


class SubstrateUnavailableError(SubstrateError):
    """Raised when a remote backend is unreachable."""


class MalformedContentError(SubstrateError):
    """Raised when a stored unit is not valid UTF-8 text."""


class UnknownKindError(ReqTraceError):
    """Raised for a record kind missing from the kind registry."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unknown record kind: {kind!r}")
        self.kind = kind


class AllocationError(ReqTraceError):
    """Raised when an identifier could not be allocated."""

    def __init__(self, message: str, kind: str) -> None:
        super().__init__(message)
        self.kind = kind


class RecordValidationError(ReqTraceError):
    """Raised by the validation layer before a record reaches a store."""

    def __init__(self, message: str, *, kind: str, field: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.field = field


class WorkflowStateError(ReqTraceError):
    """Raised for a workflow transition out of a non-pending state."""

    def __init__(self, workflow_id: str, status: str) -> None:
        super().__init__(f"Workflow {workflow_id} is {status}, not pending")
        self.workflow_id = workflow_id
        self.status = status

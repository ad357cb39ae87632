# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

from reqtrace.schemas.base import StorageModel


class BaselineEntry(StorageModel):
    """Where one artifact stood when the baseline was taken."""

    reference: str
    artifact_type: str


class Baseline(StorageModel):
    """A named, versioned freeze of a project's membership.

    Baselines are written once and never edited; deleting one removes the
    unit.
    """

    id: str
    project_id: str
    version: str
    name: str
    description: str = ""
    timestamp: int
    artifacts: dict[str, BaselineEntry] = {}
    added_artifacts: list[str] = []
    removed_artifacts: list[str] = []

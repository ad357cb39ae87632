# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

from reqtrace.schemas.base import ArtifactRecord

# Artifact type -> Project field holding that type's member ids.
MEMBER_FIELDS: dict[str, str] = {
    "requirement": "requirement_ids",
    "usecase": "use_case_ids",
    "testcase": "test_case_ids",
    "information": "information_ids",
    "risk": "risk_ids",
    "document": "document_ids",
}


class Project(ArtifactRecord):
    """A tenant that groups global artifacts by reference.

    Artifacts are not owned by a project; membership is a list of ids per
    artifact type, and link visibility uses the project id.
    """

    name: str
    description: str = ""
    requirement_ids: list[str] = []
    use_case_ids: list[str] = []
    test_case_ids: list[str] = []
    information_ids: list[str] = []
    risk_ids: list[str] = []
    document_ids: list[str] = []
    date_created: int

    def member_ids(self) -> list[str]:
        """Every member id, grouped by artifact type in registry order."""
        return [
            member_id
            for field in MEMBER_FIELDS.values()
            for member_id in getattr(self, field)
        ]

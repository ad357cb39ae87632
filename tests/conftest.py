# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

import itertools

import pytest

from reqtrace.config import get_settings
from reqtrace.services.memory_substrate import InMemorySubstrate
from reqtrace.services.substrate import AuthorInfo
from reqtrace.workspace import Workspace

TEST_AUTHOR = AuthorInfo(name="Test Author", email="test@reqtrace.local")

# Fixed epoch-millisecond timestamps keep serialized records reproducible.
_CLOCK = itertools.count(1_760_000_000_000, 1000)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.fixture
def substrate() -> InMemorySubstrate:
    return InMemorySubstrate()


@pytest.fixture
def workspace(substrate: InMemorySubstrate) -> Workspace:
    """A workspace over an in-memory substrate with history enabled."""
    return Workspace(substrate, author=TEST_AUTHOR)


# ---------------------------------------------------------------------------
# Factory helpers for creating record instances in tests
# ---------------------------------------------------------------------------


def make_requirement(
    *,
    record_id: str = "REQ-001",
    title: str = "Login must be audited",
    description: str = "Every login attempt is written to the audit log.",
    **overrides: object,
) -> dict[str, object]:
    """Return kwargs suitable for constructing a Requirement."""
    now = next(_CLOCK)
    return {
        "id": record_id,
        "title": title,
        "description": description,
        "text": "The system shall record each login attempt.",
        "rationale": "Security review finding",
        "status": "draft",
        "priority": "high",
        "date_created": now,
        "last_modified": now,
        **overrides,
    }


def make_use_case(
    *, record_id: str = "UC-001", title: str = "Operator logs in", **overrides: object
) -> dict[str, object]:
    """Return kwargs suitable for constructing a UseCase."""
    return {
        "id": record_id,
        "title": title,
        "description": "Operator authenticates at the console.",
        "actor": "Operator",
        "preconditions": "Account exists",
        "postconditions": "Session open",
        "main_flow": "1. Enter credentials\n2. Submit",
        "last_modified": next(_CLOCK),
        **overrides,
    }


def make_test_case(
    *, record_id: str = "TC-001", title: str = "Audit entry on login", **overrides: object
) -> dict[str, object]:
    """Return kwargs suitable for constructing a TestCase."""
    now = next(_CLOCK)
    return {
        "id": record_id,
        "title": title,
        "description": "Log in and inspect the audit log.",
        "requirement_ids": ["REQ-001"],
        "date_created": now,
        "last_modified": now,
        **overrides,
    }


def make_information(
    *, record_id: str = "INFO-001", title: str = "Kickoff notes", **overrides: object
) -> dict[str, object]:
    """Return kwargs suitable for constructing an Information record."""
    now = next(_CLOCK)
    return {
        "id": record_id,
        "title": title,
        "content": "Agreed scope:\n- audit\n- login",
        "type": "meeting",
        "date_created": now,
        "last_modified": now,
        **overrides,
    }


def make_risk(
    *, record_id: str = "RISK-001", title: str = "Audit log overflow", **overrides: object
) -> dict[str, object]:
    """Return kwargs suitable for constructing a Risk."""
    now = next(_CLOCK)
    return {
        "id": record_id,
        "title": title,
        "description": "The audit log may fill the disk.",
        "category": "technical",
        "probability": "low",
        "impact": "high",
        "mitigation": "Rotate logs",
        "contingency": "Purge old entries",
        "date_created": now,
        "last_modified": now,
        **overrides,
    }


def make_document(
    *, record_id: str = "DOC-001", title: str = "System design", **overrides: object
) -> dict[str, object]:
    """Return kwargs suitable for constructing a Document."""
    now = next(_CLOCK)
    return {
        "id": record_id,
        "title": title,
        "description": "Top-level system design.",
        "structure": [
            {"type": "heading", "value": "Security", "level": 1},
            {"type": "artifact", "value": "REQ-001"},
        ],
        "date_created": now,
        "last_modified": now,
        **overrides,
    }


def make_workflow(
    *,
    record_id: str = "WF-001",
    created_by: str = "alice",
    assigned_to: str = "bob",
    **overrides: object,
) -> dict[str, object]:
    """Return kwargs suitable for constructing a Workflow."""
    now = next(_CLOCK)
    return {
        "id": record_id,
        "title": "Approve login requirements",
        "description": "Please review.",
        "created_by": created_by,
        "assigned_to": assigned_to,
        "artifact_ids": ["REQ-001"],
        "date_created": now,
        "last_modified": now,
        **overrides,
    }


def make_attribute(
    *,
    record_id: str = "ATTR-001",
    name: str = "Safety Level",
    attribute_type: str = "dropdown",
    **overrides: object,
) -> dict[str, object]:
    """Return kwargs suitable for constructing an AttributeDefinition."""
    now = next(_CLOCK)
    fields: dict[str, object] = {
        "id": record_id,
        "name": name,
        "type": attribute_type,
        "applies_to": ["requirement"],
        "date_created": now,
        "last_modified": now,
    }
    if attribute_type == "dropdown":
        fields["options"] = ["ASIL-A", "ASIL-B"]
    fields.update(overrides)
    return fields


def make_link(
    *,
    record_id: str = "LINK-001",
    source_id: str = "REQ-001",
    target_id: str = "TC-001",
    link_type: str = "verified_by",
    **overrides: object,
) -> dict[str, object]:
    """Return kwargs suitable for constructing a Link."""
    now = next(_CLOCK)
    return {
        "id": record_id,
        "source_id": source_id,
        "target_id": target_id,
        "type": link_type,
        "date_created": now,
        "last_modified": now,
        **overrides,
    }


def make_project(
    *, record_id: str = "PROJ-001", name: str = "Door controller", **overrides: object
) -> dict[str, object]:
    """Return kwargs suitable for constructing a Project."""
    now = next(_CLOCK)
    return {
        "id": record_id,
        "name": name,
        "description": "Firmware for the door controller.",
        "requirement_ids": ["REQ-001", "REQ-002"],
        "test_case_ids": ["TC-001"],
        "date_created": now,
        "last_modified": now,
        **overrides,
    }


def make_baseline(
    *, record_id: str = "BL-001", project_id: str = "PROJ-001", **overrides: object
) -> dict[str, object]:
    """Return kwargs suitable for constructing a Baseline."""
    return {
        "id": record_id,
        "project_id": project_id,
        "version": "01",
        "name": "Release 1",
        "description": "Frozen for the safety review.",
        "timestamp": next(_CLOCK),
        "artifacts": {
            "REQ-001": {"reference": "a1b2c3", "artifact_type": "requirement"},
            "TC-001": {"reference": "d4e5f6", "artifact_type": "testcase"},
        },
        "added_artifacts": ["REQ-001", "TC-001"],
        **overrides,
    }

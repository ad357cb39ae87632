# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Registry of record kinds: storage folder, id prefix and artifact type.

Identifier prefix inference lives here and nowhere else.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from reqtrace.errors import UnknownKindError

RECORD_SUFFIX = ".md"
COUNTER_FOLDER = "counters"


@dataclass(frozen=True, slots=True)
class ArtifactKind:
    key: str
    prefix: str
    folder: str
    label: str
    artifact_type: str
    _id_pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_id_pattern", re.compile(rf"^{re.escape(self.prefix)}-(\d+)$")
        )

    def format_id(self, sequence: int, padding: int = 3) -> str:
        """Return ``PREFIX-nnn``; padding widens, never truncates."""
        return f"{self.prefix}-{sequence:0{padding}d}"

    def parse_sequence(self, record_id: str) -> int | None:
        """Return the numeric suffix of *record_id*, or None if it is not ours."""
        match = self._id_pattern.match(record_id)
        if match is None:
            return None
        return int(match.group(1))

    def record_path(self, record_id: str) -> str:
        return f"{self.folder}/{record_id}{RECORD_SUFFIX}"

    @property
    def counter_path(self) -> str:
        return f"{COUNTER_FOLDER}/{self.folder}{RECORD_SUFFIX}"


KINDS: dict[str, ArtifactKind] = {
    kind.key: kind
    for kind in (
        ArtifactKind("requirements", "REQ", "requirements", "Requirement", "requirement"),
        ArtifactKind("usecases", "UC", "usecases", "Use Case", "usecase"),
        ArtifactKind("testcases", "TC", "testcases", "Test Case", "testcase"),
        ArtifactKind("information", "INFO", "information", "Information", "information"),
        ArtifactKind("risks", "RISK", "risks", "Risk", "risk"),
        ArtifactKind("documents", "DOC", "documents", "Document", "document"),
        ArtifactKind("links", "LINK", "links", "Link", "link"),
        ArtifactKind("workflows", "WF", "workflows", "Workflow", "workflow"),
        ArtifactKind(
            "custom-attributes", "ATTR", "custom-attributes", "Custom Attribute", "attribute"
        ),
        ArtifactKind("projects", "PROJ", "projects", "Project", "project"),
        ArtifactKind("baselines", "BL", "baselines", "Baseline", "baseline"),
    )
}

# Longest prefix first so that a prefix never shadows a longer one.
_BY_PREFIX: list[ArtifactKind] = sorted(
    KINDS.values(), key=lambda k: len(k.prefix), reverse=True
)

UNKNOWN_ARTIFACT_TYPE = "unknown"


def get_kind(key: str) -> ArtifactKind:
    try:
        return KINDS[key]
    except KeyError:
        raise UnknownKindError(key) from None


def kind_for_id(record_id: str) -> ArtifactKind | None:
    """Return the kind whose prefix *record_id* carries, or None."""
    for kind in _BY_PREFIX:
        if record_id.startswith(f"{kind.prefix}-"):
            return kind
    return None


def artifact_type_for_id(record_id: str) -> str:
    """Infer the artifact type (``requirement``, ``usecase``...) from an id prefix."""
    kind = kind_for_id(record_id)
    return kind.artifact_type if kind is not None else UNKNOWN_ARTIFACT_TYPE

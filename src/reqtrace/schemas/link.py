# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Link edges and the relationship vocabulary.

An edge ``A --type--> B`` is stored once. ``B`` sees it through the inverse
vocabulary: a ``parent`` edge pointing at ``B`` reads as ``child`` from ``B``.
"""

from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict

from reqtrace.schemas.base import CustomAttributeValue, StorageModel

LinkType = Literal[
    # Hierarchical
    "parent",
    "child",
    # Derivation
    "derived_from",
    "derives_to",
    # Dependency
    "depends_on",
    "depended_on_by",
    # Refinement
    "refines",
    "refined_by",
    # Implementation
    "satisfies",
    "satisfied_by",
    # Verification
    "verifies",
    "verified_by",
    # Constraints
    "constrains",
    "constrained_by",
    # Preconditions
    "requires",
    "required_by",
    # Symmetric
    "conflicts_with",
    "duplicates",
    "related_to",
]

LINK_TYPES: tuple[str, ...] = get_args(LinkType)

LINK_INVERSE: dict[str, str] = {
    "parent": "child",
    "child": "parent",
    "derived_from": "derives_to",
    "derives_to": "derived_from",
    "depends_on": "depended_on_by",
    "depended_on_by": "depends_on",
    "refines": "refined_by",
    "refined_by": "refines",
    "satisfies": "satisfied_by",
    "satisfied_by": "satisfies",
    "verifies": "verified_by",
    "verified_by": "verifies",
    "constrains": "constrained_by",
    "constrained_by": "constrains",
    "requires": "required_by",
    "required_by": "requires",
    "conflicts_with": "conflicts_with",
    "duplicates": "duplicates",
    "related_to": "related_to",
}

LINK_TYPE_LABELS: dict[str, str] = {
    "parent": "Parent of",
    "child": "Child of",
    "derived_from": "Derived from",
    "derives_to": "Derives to",
    "depends_on": "Depends on",
    "depended_on_by": "Depended on by",
    "refines": "Refines",
    "refined_by": "Refined by",
    "satisfies": "Satisfies",
    "satisfied_by": "Satisfied by",
    "verifies": "Verifies",
    "verified_by": "Verified by",
    "constrains": "Constrains",
    "constrained_by": "Constrained by",
    "requires": "Requires",
    "required_by": "Required by",
    "conflicts_with": "Conflicts with",
    "duplicates": "Duplicates",
    "related_to": "Related to",
}


def inverse_type(link_type: str) -> str:
    """Return the label an edge of *link_type* carries from its target's side."""
    try:
        return LINK_INVERSE[link_type]
    except KeyError:
        raise ValueError(f"Unknown link type: {link_type!r}") from None


def is_symmetric(link_type: str) -> bool:
    return inverse_type(link_type) == link_type


class Link(StorageModel):
    id: str
    source_id: str
    target_id: str
    type: LinkType
    project_ids: list[str] = []
    date_created: int
    last_modified: int
    custom_attributes: list[CustomAttributeValue] = []

    @property
    def is_global(self) -> bool:
        return not self.project_ids

    def visible_to(self, project_id: str) -> bool:
        return self.is_global or project_id in self.project_ids


class IncomingLink(BaseModel):
    """An edge presented from its target's point of view."""

    model_config = ConfigDict(frozen=True)

    link_id: str
    source_id: str
    source_type: str
    link_type: LinkType

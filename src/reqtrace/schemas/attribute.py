# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

from typing import Literal

from reqtrace.schemas.base import ArtifactRecord, AttributeValue

AttributeType = Literal["text", "number", "date", "dropdown", "checkbox"]

ApplicableArtifactType = Literal[
    "requirement",
    "useCase",
    "testCase",
    "information",
    "risk",
    "link",
]


class AttributeDefinition(ArtifactRecord):
    """A user-defined field that artifacts may carry in ``custom_attributes``.

    The dropdown/options pairing is a business rule checked by
    ``reqtrace.services.attribute_service``; the model accepts any shape so
    that stored data is always loadable.
    """

    name: str
    type: AttributeType = "text"
    description: str | None = None
    required: bool = False
    default_value: AttributeValue = None
    options: list[str] | None = None
    applies_to: list[ApplicableArtifactType] = []
    date_created: int

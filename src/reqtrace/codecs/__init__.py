# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Per-kind codecs, keyed by the kind registry's keys."""

from __future__ import annotations

from typing import Any

from reqtrace.codecs.model_codec import Codec, ModelCodec, field_shape
from reqtrace.errors import UnknownKindError
from reqtrace.schemas import (
    AttributeDefinition,
    Baseline,
    Document,
    Information,
    Link,
    Project,
    Requirement,
    Risk,
    TestCase,
    UseCase,
    Workflow,
)


def render_link_summary(link: Link) -> str:
    scope = (
        f"**Scope:** {', '.join(link.project_ids)}"
        if link.project_ids
        else "**Scope:** Global (all projects)"
    )
    relation = link.type.replace("_", " ")
    return (
        f"# {link.id}\n\n"
        f"Links **{link.source_id}** to **{link.target_id}** ({relation})\n\n"
        f"{scope}\n"
    )


requirement_codec = ModelCodec(Requirement, body_field="description")
use_case_codec = ModelCodec(UseCase, body_field="description")
test_case_codec = ModelCodec(TestCase, body_field="description")
information_codec = ModelCodec(Information, body_field="content")
risk_codec = ModelCodec(Risk, body_field="description")
document_codec = ModelCodec(Document, body_field="description")
workflow_codec = ModelCodec(Workflow, body_field="description")
attribute_codec = ModelCodec(AttributeDefinition)
link_codec = ModelCodec(Link, render_body=render_link_summary)
project_codec = ModelCodec(Project, body_field="description")
baseline_codec = ModelCodec(Baseline, body_field="description")

CODECS: dict[str, ModelCodec[Any]] = {
    "requirements": requirement_codec,
    "usecases": use_case_codec,
    "testcases": test_case_codec,
    "information": information_codec,
    "risks": risk_codec,
    "documents": document_codec,
    "workflows": workflow_codec,
    "custom-attributes": attribute_codec,
    "links": link_codec,
    "projects": project_codec,
    "baselines": baseline_codec,
}


def get_codec(kind_key: str) -> ModelCodec[Any]:
    try:
        return CODECS[kind_key]
    except KeyError:
        raise UnknownKindError(kind_key) from None


__all__ = [
    "CODECS",
    "Codec",
    "ModelCodec",
    "field_shape",
    "get_codec",
    "render_link_summary",
]

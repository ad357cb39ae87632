# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from reqtrace.schemas.artifacts import (
    Document,
    DocumentEntry,
    Information,
    Requirement,
    Risk,
    TestCase,
    UseCase,
)
from reqtrace.schemas.attribute import AttributeDefinition
from reqtrace.schemas.base import ArtifactRecord, CustomAttributeValue, next_revision, now_ms
from reqtrace.schemas.baseline import Baseline, BaselineEntry
from reqtrace.schemas.link import IncomingLink, Link, inverse_type
from reqtrace.schemas.project import Project
from reqtrace.schemas.workflow import Workflow

__all__ = [
    "ArtifactRecord",
    "AttributeDefinition",
    "Baseline",
    "BaselineEntry",
    "CustomAttributeValue",
    "Document",
    "DocumentEntry",
    "IncomingLink",
    "Information",
    "Link",
    "Project",
    "Requirement",
    "Risk",
    "TestCase",
    "UseCase",
    "Workflow",
    "inverse_type",
    "next_revision",
    "now_ms",
]

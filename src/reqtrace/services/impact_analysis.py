# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Transitive impact over the link graph.

Downstream follows edges from source to target; upstream follows them
backwards.  The walk is breadth-first, so every artifact is reported once at
its shortest distance from the starting artifact.
"""

from __future__ import annotations

from collections import Counter, defaultdict, deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from reqtrace.kinds import artifact_type_for_id
from reqtrace.schemas.link import Link

ImpactDirection = Literal["upstream", "downstream", "both"]


@dataclass(frozen=True, slots=True)
class ImpactNode:
    artifact_id: str
    level: int
    direction: Literal["upstream", "downstream"]
    link_type: str
    parent_id: str


@dataclass(frozen=True, slots=True)
class ImpactSummary:
    total: int
    upstream: int
    downstream: int
    by_artifact_type: dict[str, int]
    max_depth: int


@dataclass(frozen=True, slots=True)
class ImpactChain:
    """Artifacts reached from *source_id*, in visiting order."""

    source_id: str
    nodes: list[ImpactNode] = field(default_factory=list)

    def affected_ids(self) -> list[str]:
        return [node.artifact_id for node in self.nodes]

    def nodes_at_level(self, level: int) -> list[ImpactNode]:
        return [node for node in self.nodes if node.level == level]

    def by_artifact_type(self) -> dict[str, list[ImpactNode]]:
        grouped: dict[str, list[ImpactNode]] = defaultdict(list)
        for node in self.nodes:
            grouped[artifact_type_for_id(node.artifact_id)].append(node)
        return dict(grouped)

    def summary(self) -> ImpactSummary:
        directions = Counter(node.direction for node in self.nodes)
        return ImpactSummary(
            total=len(self.nodes),
            upstream=directions["upstream"],
            downstream=directions["downstream"],
            by_artifact_type=dict(
                Counter(artifact_type_for_id(node.artifact_id) for node in self.nodes)
            ),
            max_depth=max((node.level for node in self.nodes), default=0),
        )


def impact_chain(
    source_id: str,
    links: Iterable[Link],
    direction: ImpactDirection = "both",
    max_depth: int = 0,
) -> ImpactChain:
    """Walk *links* from *source_id*. ``max_depth`` of 0 means unlimited."""
    downstream: dict[str, list[Link]] = defaultdict(list)
    upstream: dict[str, list[Link]] = defaultdict(list)
    for link in links:
        downstream[link.source_id].append(link)
        upstream[link.target_id].append(link)

    def neighbours(
        artifact_id: str, way: Literal["upstream", "downstream"]
    ) -> list[tuple[str, str]]:
        if way == "downstream":
            return [(link.target_id, link.type) for link in downstream[artifact_id]]
        return [(link.source_id, link.type) for link in upstream[artifact_id]]

    ways: list[Literal["upstream", "downstream"]] = []
    if direction in ("downstream", "both"):
        ways.append("downstream")
    if direction in ("upstream", "both"):
        ways.append("upstream")

    visited = {source_id}
    queue: deque[ImpactNode] = deque(
        ImpactNode(artifact_id, 1, way, link_type, source_id)
        for way in ways
        for artifact_id, link_type in neighbours(source_id, way)
    )
    nodes: list[ImpactNode] = []
    while queue:
        node = queue.popleft()
        if node.artifact_id in visited:
            continue
        if max_depth > 0 and node.level > max_depth:
            continue
        visited.add(node.artifact_id)
        nodes.append(node)
        for artifact_id, link_type in neighbours(node.artifact_id, node.direction):
            if artifact_id not in visited:
                queue.append(
                    ImpactNode(
                        artifact_id, node.level + 1, node.direction, link_type, node.artifact_id
                    )
                )
    return ImpactChain(source_id=source_id, nodes=nodes)

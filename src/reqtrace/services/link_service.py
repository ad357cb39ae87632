# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Traceability links between artifacts.

Each edge is stored once as a ``LINK-nnn`` record.  The target's view of an
edge is derived on read through the inverse relationship vocabulary, so the
two directions can never disagree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from reqtrace.errors import RecordValidationError
from reqtrace.kinds import artifact_type_for_id
from reqtrace.repositories.record_store import RecordStore
from reqtrace.schemas.base import now_ms
from reqtrace.schemas.link import LINK_TYPES, IncomingLink, Link, inverse_type
from reqtrace.services.id_allocator import IdAllocator
from reqtrace.services.impact_analysis import ImpactChain, ImpactDirection, impact_chain

logger = logging.getLogger(__name__)

_KIND = "links"


@dataclass(frozen=True, slots=True)
class ArtifactLinks:
    """Both directions of an artifact's edges."""

    outgoing: list[Link]
    incoming: list[IncomingLink]


def as_incoming(link: Link) -> IncomingLink:
    """Present *link* from its target's side."""
    return IncomingLink(
        link_id=link.id,
        source_id=link.source_id,
        source_type=artifact_type_for_id(link.source_id),
        link_type=inverse_type(link.type),
    )


class LinkGraphService:
    def __init__(self, store: RecordStore[Link], allocator: IdAllocator) -> None:
        self.store = store
        self._allocator = allocator

    @staticmethod
    def _check(source_id: str, target_id: str, link_type: str) -> None:
        if not source_id.strip():
            raise RecordValidationError("Link source must not be blank", kind=_KIND, field="source_id")
        if not target_id.strip():
            raise RecordValidationError("Link target must not be blank", kind=_KIND, field="target_id")
        if link_type not in LINK_TYPES:
            raise RecordValidationError(
                f"Unknown link type: {link_type!r}", kind=_KIND, field="type"
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_link(
        self,
        source_id: str,
        target_id: str,
        link_type: str,
        project_ids: list[str] | None = None,
    ) -> Link:
        """Persist a new edge. Duplicate edges are not rejected here."""
        self._check(source_id, target_id, link_type)
        link_id = await self._allocator.next_id(_KIND)
        now = now_ms()
        link = Link(
            id=link_id,
            source_id=source_id,
            target_id=target_id,
            type=link_type,
            project_ids=list(project_ids or []),
            date_created=now,
            last_modified=now,
        )
        await self.store.save(
            link, f"Create link {link_id}: {source_id} {link_type} {target_id}"
        )
        return link

    async def update_link(self, link_id: str, **changes: Any) -> Link | None:
        current = await self.store.load(link_id)
        if current is None:
            return None
        changes.pop("id", None)
        changes.pop("date_created", None)
        data = current.model_dump()
        data.update(changes)
        data["last_modified"] = now_ms()
        self._check(data["source_id"], data["target_id"], data["type"])
        try:
            link = Link.model_validate(data)
        except ValidationError as exc:
            raise RecordValidationError(f"Invalid link: {exc}", kind=_KIND) from exc
        await self.store.save(link, f"Update link {link_id}")
        return link

    async def delete_link(self, link_id: str) -> None:
        await self.store.delete(link_id, f"Delete link {link_id}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_link(self, link_id: str) -> Link | None:
        return await self.store.load(link_id)

    async def all_links(self) -> list[Link]:
        return await self.store.load_all(include_deleted=True)

    async def global_links(self) -> list[Link]:
        return [link for link in await self.all_links() if link.is_global]

    async def link_exists(
        self, source_id: str, target_id: str, link_type: str | None = None
    ) -> bool:
        """Advisory duplicate check; a concurrent create may still slip through."""
        return any(
            link.source_id == source_id
            and link.target_id == target_id
            and (link_type is None or link.type == link_type)
            for link in await self.all_links()
        )

    async def outgoing(self, artifact_id: str) -> list[Link]:
        return [link for link in await self.all_links() if link.source_id == artifact_id]

    async def incoming(self, artifact_id: str) -> list[IncomingLink]:
        return [
            as_incoming(link)
            for link in await self.all_links()
            if link.target_id == artifact_id
        ]

    async def visible_to_project(self, project_id: str) -> list[Link]:
        """Global edges plus those scoped to *project_id*."""
        return [link for link in await self.all_links() if link.visible_to(project_id)]

    async def outgoing_for_project(self, artifact_id: str, project_id: str) -> list[Link]:
        return [
            link
            for link in await self.visible_to_project(project_id)
            if link.source_id == artifact_id
        ]

    async def incoming_for_project(
        self, artifact_id: str, project_id: str
    ) -> list[IncomingLink]:
        return [
            as_incoming(link)
            for link in await self.visible_to_project(project_id)
            if link.target_id == artifact_id
        ]

    async def links_for_artifact(self, artifact_id: str) -> ArtifactLinks:
        links = await self.all_links()
        return ArtifactLinks(
            outgoing=[link for link in links if link.source_id == artifact_id],
            incoming=[as_incoming(link) for link in links if link.target_id == artifact_id],
        )

    async def impact_of(
        self,
        artifact_id: str,
        direction: ImpactDirection = "both",
        max_depth: int = 0,
        project_id: str | None = None,
    ) -> ImpactChain:
        """Everything reachable from *artifact_id*, optionally over one project's edges."""
        links = (
            await self.visible_to_project(project_id)
            if project_id is not None
            else await self.all_links()
        )
        return impact_chain(artifact_id, links, direction, max_depth)

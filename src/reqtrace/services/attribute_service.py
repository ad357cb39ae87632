# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Custom attribute definitions and the rules they must satisfy before saving."""

from __future__ import annotations

from collections.abc import Iterable

from reqtrace.errors import RecordValidationError
from reqtrace.schemas.attribute import AttributeDefinition
from reqtrace.services.artifact_service import ArtifactService

_KIND = "custom-attributes"


def validate_attribute_definition(
    definition: AttributeDefinition,
    existing: Iterable[AttributeDefinition],
) -> None:
    """Raise ``RecordValidationError`` if *definition* breaks a definition rule.

    *existing* may include *definition* itself (matched by id) and deleted
    definitions; neither counts as a name collision.
    """
    name = definition.name.strip()
    if not name:
        raise RecordValidationError("Attribute name must not be blank", kind=_KIND, field="name")

    for other in existing:
        if other.id == definition.id or other.is_deleted:
            continue
        if other.name.strip().casefold() == name.casefold():
            raise RecordValidationError(
                f"An attribute named {other.name!r} already exists ({other.id})",
                kind=_KIND,
                field="name",
            )

    if definition.type == "dropdown":
        if len(definition.options or []) < 2:
            raise RecordValidationError(
                "Dropdown attributes need at least two options", kind=_KIND, field="options"
            )
    elif definition.options:
        raise RecordValidationError(
            f"Only dropdown attributes take options, not {definition.type}",
            kind=_KIND,
            field="options",
        )


class AttributeDefinitionService(ArtifactService[AttributeDefinition]):
    async def validate(self, record: AttributeDefinition) -> None:
        validate_attribute_definition(record, await self.get_all(include_deleted=True))

    async def name_exists(self, name: str, exclude_id: str | None = None) -> bool:
        wanted = name.strip().casefold()
        return any(
            definition.name.strip().casefold() == wanted
            for definition in await self.get_all()
            if definition.id != exclude_id
        )

    async def for_artifact_type(self, artifact_type: str) -> list[AttributeDefinition]:
        return [d for d in await self.get_all() if artifact_type in d.applies_to]

    async def deleted_definitions(self) -> list[AttributeDefinition]:
        return await self.deleted()

"""Query executor: applies filters, pagination and a populate plan to stored entries.

Entries are stored flat. Components and dynamic zones are embedded in the
entry; relations and media hold the id (or list of ids) of the target entry.
Scalars are always returned; any other attribute is returned only when the
plan names it.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, assert_never

from deep_populate.core.filters import matches
from deep_populate.core.populate import NestedPopulate, PlanNode
from deep_populate.core.ports.database import ContentDatabase
from deep_populate.core.ports.schema import SchemaProvider
from deep_populate.models import (
    UPLOAD_FILE_UID,
    AttributeSpec,
    ComponentAttribute,
    DynamicZoneAttribute,
    MediaAttribute,
    ModelSchema,
    RelationAttribute,
    ScalarAttribute,
)

COMPONENT_KEY = "__component"


async def query_entries(
    database: ContentDatabase,
    schemas: SchemaProvider,
    uid: str,
    populate: PlanNode | None = None,
    where: Mapping[str, Any] | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[dict[str, Any]]:
    schema = schemas.get_schema(uid)
    if where:
        # filters run in Python over every stored entry of the model
        matched = [e for e in await database.fetch_entries(uid) if matches(e, where)]
        end = offset + limit if limit is not None else None
        entries = matched[offset:end]
    else:
        entries = await database.fetch_entries(uid, limit=limit, offset=offset)
    resolver = _PopulateResolver(database, schemas)
    return [await resolver.resolve(schema, entry, populate) for entry in entries]


async def count_entries(
    database: ContentDatabase,
    uid: str,
    where: Mapping[str, Any] | None = None,
) -> int:
    if not where:
        return await database.count_entries(uid)
    # same full scan as query_entries
    return sum(1 for e in await database.fetch_entries(uid) if matches(e, where))


class _PopulateResolver:
    def __init__(self, database: ContentDatabase, schemas: SchemaProvider) -> None:
        self._db = database
        self._schemas = schemas

    async def resolve(self, schema: ModelSchema, entry: Mapping[str, Any], plan: PlanNode | None) -> dict[str, Any]:
        children = plan.populate if isinstance(plan, NestedPopulate) else {}
        result: dict[str, Any] = {}
        if "id" in entry:
            result["id"] = entry["id"]
        if COMPONENT_KEY in entry:
            result[COMPONENT_KEY] = entry[COMPONENT_KEY]

        for name, spec in schema.attributes.items():
            if isinstance(spec, ScalarAttribute):
                if name in entry:
                    result[name] = entry[name]
                continue
            child_plan = children.get(name)
            if child_plan is None:
                continue
            result[name] = await self._resolve_attribute(spec, entry.get(name), child_plan)
        return result

    async def _resolve_attribute(self, spec: AttributeSpec, raw: Any, plan: PlanNode) -> Any:
        match spec:
            case ScalarAttribute():
                return raw
            case ComponentAttribute(target=target, repeatable=repeatable):
                schema = self._schemas.get_schema(target)
                if repeatable:
                    return [await self.resolve(schema, item, plan) for item in _as_list(raw)]
                return await self.resolve(schema, raw, plan) if isinstance(raw, Mapping) else None
            case DynamicZoneAttribute():
                return [
                    await self.resolve(self._schemas.get_schema(item[COMPONENT_KEY]), item, plan)
                    for item in _as_list(raw)
                    if isinstance(item, Mapping) and COMPONENT_KEY in item
                ]
            case RelationAttribute(target=target):
                return await self._resolve_references(target, raw, plan, many=spec.to_many)
            case MediaAttribute(multiple=multiple):
                return await self._resolve_references(UPLOAD_FILE_UID, raw, plan, many=multiple)
            case _:
                assert_never(spec)

    async def _resolve_references(self, uid: str, raw: Any, plan: PlanNode, many: bool) -> Any:
        ids = _reference_ids(raw)
        schema = self._schemas.get_schema(uid)
        targets = await self._db.fetch_entries_by_id(uid, ids) if ids else []
        resolved = [await self.resolve(schema, target, plan) for target in targets]
        if many:
            return resolved
        return resolved[0] if resolved else None


def _as_list(raw: Any) -> list[Any]:
    if raw is None:
        return []
    return raw if isinstance(raw, list) else [raw]


def _reference_ids(raw: Any) -> Sequence[int]:
    ids: list[int] = []
    for item in _as_list(raw):
        if isinstance(item, Mapping):
            item = item.get("id")
        if isinstance(item, int) and not isinstance(item, bool):
            ids.append(item)
    return ids

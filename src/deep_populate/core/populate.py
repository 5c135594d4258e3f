"""Populate plan builder.

Walks the content-schema graph from a root model and produces a bounded-depth
fetch plan. The plan is handed to the query executor in its query form:
``True`` for a fully populated leaf or ``{"populate": {...}}`` for a subtree.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, assert_never

from deep_populate.core.ports.schema import SchemaProvider
from deep_populate.models import (
    ADMIN_USER_UID,
    UPLOAD_FILE_UID,
    AttributeSpec,
    ComponentAttribute,
    DynamicZoneAttribute,
    MediaAttribute,
    ModelSchema,
    RelationAttribute,
    ScalarAttribute,
)

logger = logging.getLogger(__name__)

LOCALIZATIONS = "localizations"


@dataclass(frozen=True)
class FullyPopulate:
    """Populate the subtree without any further field-level planning."""

    def to_query(self) -> bool:
        return True


FULLY_POPULATE = FullyPopulate()


@dataclass(frozen=True)
class NestedPopulate:
    populate: dict[str, PlanNode]

    def __post_init__(self) -> None:
        if not self.populate:
            raise ValueError("NestedPopulate requires at least one attribute; use FULLY_POPULATE instead")

    def to_query(self) -> dict[str, Any]:
        return {"populate": {name: node.to_query() for name, node in self.populate.items()}}


PlanNode = FullyPopulate | NestedPopulate


def plan_to_query(node: PlanNode | None) -> bool | dict[str, Any] | None:
    return None if node is None else node.to_query()


def merge_plans(base: PlanNode, incoming: PlanNode) -> PlanNode:
    """Deep-merge two plans. On conflicting leaves the incoming plan wins."""
    if isinstance(base, NestedPopulate) and isinstance(incoming, NestedPopulate):
        merged = dict(base.populate)
        for name, node in incoming.populate.items():
            merged[name] = merge_plans(merged[name], node) if name in merged else node
        return NestedPopulate(merged)
    return incoming


@dataclass
class PlanTraversal:
    """State shared by every recursive call of one plan build.

    ``visited_collections`` is the cycle guard and grows as schemas are entered.
    ``excluded_attribute_names`` are field names the caller never wants populated.
    Attribute names are checked against both sets.
    """

    visited_collections: set[str] = field(default_factory=set)
    excluded_attribute_names: frozenset[str] = frozenset()

    def should_skip(self, attribute_name: str) -> bool:
        return attribute_name in self.excluded_attribute_names or attribute_name in self.visited_collections


class PopulatePlanBuilder:
    def __init__(self, schemas: SchemaProvider, skip_creator_fields: bool = False) -> None:
        self._schemas = schemas
        self._skip_creator_fields = skip_creator_fields

    def build(
        self,
        uid: str,
        max_depth: int,
        traversal: PlanTraversal | None = None,
        field_filter: Iterable[str] = (),
    ) -> PlanNode | None:
        """Return the fetch plan for ``uid``, or ``None`` when the model must be omitted.

        Raises ``SchemaResolutionError`` for identifiers the schema provider does not know.
        """
        if max_depth <= 1:
            logger.debug("Depth exhausted at %s", uid)
            return FULLY_POPULATE
        if uid == ADMIN_USER_UID and self._skip_creator_fields:
            return None

        if traversal is None:
            traversal = PlanTraversal()
        only = frozenset(field_filter)

        schema = self._schemas.get_schema(uid)
        traversal.visited_collections.add(schema.collection_name)

        populate: dict[str, PlanNode] = {}
        for name, spec in _population_attributes(schema):
            if traversal.should_skip(name):
                logger.debug("Skipping %s.%s (excluded or already visited)", uid, name)
                continue
            if only and name not in only:
                continue
            child = self._plan_attribute(name, spec, max_depth, traversal)
            if child is not None:
                populate[name] = child

        return NestedPopulate(populate) if populate else FULLY_POPULATE

    def _plan_attribute(
        self,
        name: str,
        spec: AttributeSpec,
        max_depth: int,
        traversal: PlanTraversal,
    ) -> PlanNode | None:
        match spec:
            case ScalarAttribute():
                return None
            case ComponentAttribute(target=target):
                return self.build(target, max_depth - 1, traversal)
            case DynamicZoneAttribute(targets=targets):
                return self._dynamic_zone_plan(targets, max_depth, traversal)
            case RelationAttribute(target=target):
                depth = 1 if name == LOCALIZATIONS and max_depth > 2 else max_depth - 1
                return self.build(target, depth, traversal)
            case MediaAttribute():
                return FULLY_POPULATE
            case _:
                assert_never(spec)

    def _dynamic_zone_plan(self, targets: Iterable[str], max_depth: int, traversal: PlanTraversal) -> PlanNode:
        combined: PlanNode | None = None
        for target in targets:
            child = self.build(target, max_depth - 1, traversal)
            if not isinstance(child, NestedPopulate):
                continue
            combined = child if combined is None else merge_plans(combined, child)
        return combined if combined is not None else FULLY_POPULATE


def _population_attributes(schema: ModelSchema) -> Iterable[tuple[str, AttributeSpec]]:
    if schema.uid == UPLOAD_FILE_UID:
        # ``related`` points back at every record using the file
        return [(name, spec) for name, spec in schema.attributes.items() if name != "related"]
    return schema.attributes.items()


def build_plan(
    schemas: SchemaProvider,
    uid: str,
    max_depth: int,
    traversal: PlanTraversal | None = None,
    field_filter: Iterable[str] = (),
    skip_creator_fields: bool = False,
) -> PlanNode | None:
    return PopulatePlanBuilder(schemas, skip_creator_fields).build(uid, max_depth, traversal, field_filter)

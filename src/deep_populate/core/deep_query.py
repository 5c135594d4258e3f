"""Deep-populate request handling: plan, query with fallback, sanitize, assemble."""

from __future__ import annotations

import logging
import math
from collections.abc import Container, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from deep_populate.config import DeepPopulateConfig
from deep_populate.core.directive import PopulateDirective
from deep_populate.core.filters import PUBLISHED_FILTER, uses_comparison_operators, with_published_filter
from deep_populate.core.populate import PlanNode, PlanTraversal, PopulatePlanBuilder
from deep_populate.core.ports.database import ContentDatabase
from deep_populate.core.ports.schema import SchemaProvider
from deep_populate.core.query import count_entries, query_entries
from deep_populate.core.sanitize import SanitizationConfig, sanitize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pagination:
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True)
class QueryOutcome:
    rows: list[dict[str, Any]]
    where: dict[str, Any]
    fell_back: bool = False


async def find_with_fallback(
    database: ContentDatabase,
    schemas: SchemaProvider,
    uid: str,
    populate: PlanNode | None,
    where: Mapping[str, Any] | None,
    pagination: Pagination,
) -> QueryOutcome:
    """Query published entries; retry once without the caller's filter when it matched nothing.

    The retry is skipped when the filter used comparison or inclusion operators,
    in which case an empty result is final.
    """
    effective = with_published_filter(where)
    rows = await query_entries(database, schemas, uid, populate, effective, pagination.limit, pagination.offset)
    if rows or not where or uses_comparison_operators(where):
        return QueryOutcome(rows=rows, where=effective)

    logger.info("No %s entries matched %s; retrying with the published filter only", uid, dict(where))
    fallback = dict(PUBLISHED_FILTER)
    rows = await query_entries(database, schemas, uid, populate, fallback, pagination.limit, pagination.offset)
    return QueryOutcome(rows=rows, where=fallback, fell_back=True)


def collapse_rows(rows: list[dict[str, Any]]) -> dict[str, Any] | list[dict[str, Any]] | None:
    if not rows:
        return None
    return rows if len(rows) > 1 else rows[0]


def pagination_meta(pagination: Pagination, total: int) -> dict[str, Any]:
    if not pagination.limit:
        return {}
    return {
        "pagination": {
            "page": pagination.offset // pagination.limit + 1,
            "pageSize": pagination.limit,
            "pageCount": math.ceil(total / pagination.limit),
            "total": total,
        }
    }


def build_request_plan(
    schemas: SchemaProvider,
    config: DeepPopulateConfig,
    uid: str,
    directive: PopulateDirective,
    field_filter: Iterable[str] = (),
) -> PlanNode | None:
    """Build the plan for a directive; fields the request drops are never populated."""
    depth = directive.depth if directive.depth is not None else config.default_depth
    traversal = PlanTraversal(excluded_attribute_names=frozenset(config.fields_to_drop(directive.keep_fields)))
    builder = PopulatePlanBuilder(schemas, skip_creator_fields=config.skip_creator_fields)
    return builder.build(uid, depth, traversal, field_filter=field_filter)


async def run_deep_query(
    database: ContentDatabase,
    schemas: SchemaProvider,
    registry: Container[str],
    config: DeepPopulateConfig,
    uid: str,
    directive: PopulateDirective | None,
    where: Mapping[str, Any] | None = None,
    pagination: Pagination | None = None,
) -> dict[str, Any]:
    """Serve one content request and return the response body.

    Without a directive the request is an ordinary shallow query. ``deep`` returns
    the populated rows untouched; ``custom`` returns them sanitized under
    ``customData``. Requested specific fields are listed under ``specificFields``.
    """
    pagination = pagination or Pagination()

    if directive is None:
        effective = with_published_filter(where)
        rows = await query_entries(database, schemas, uid, None, effective, pagination.limit, pagination.offset)
        total = await count_entries(database, uid, effective)
        return {"data": rows, "meta": pagination_meta(pagination, total)}

    plan = build_request_plan(schemas, config, uid, directive)
    outcome = await find_with_fallback(database, schemas, uid, plan, where, pagination)
    meta = pagination_meta(pagination, await count_entries(database, uid, outcome.where))
    data = collapse_rows(outcome.rows)

    if directive.sanitizes:
        sanitization = config.sanitization(directive.keep_fields, directive.specific_fields)
    else:
        # extraction only: the populated tree is returned as-is
        sanitization = SanitizationConfig(
            fields_to_drop=frozenset(),
            image_allow_list=(),
            collapse_same_name_wrappers=False,
            collapse_type_wrappers=False,
            specific_fields=frozenset(directive.specific_fields),
        )
    result = sanitize(data, sanitization, registry)

    body: dict[str, Any] = (
        {"customData": result.data, "meta": meta} if directive.sanitizes else {"data": result.data, "meta": meta}
    )
    if directive.specific_fields:
        body["specificFields"] = result.extracted

    logger.debug(
        "Served %s (%s, depth %s, %d rows)",
        uid,
        directive.mode.value,
        directive.depth or config.default_depth,
        len(outcome.rows),
    )
    return body

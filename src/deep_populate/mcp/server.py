"""FastMCP server exposing deep-populate tools."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from deep_populate.config import DeepPopulateConfig
from deep_populate.core.deep_query import Pagination, run_deep_query
from deep_populate.core.directive import InvalidDirectiveError, parse_populate_directive
from deep_populate.core.filters import InvalidFilterError
from deep_populate.core.populate import PlanTraversal, PopulatePlanBuilder, plan_to_query
from deep_populate.core.ports.database import ContentDatabase
from deep_populate.core.ports.schema import SchemaProvider
from deep_populate.core.schema import ContentTypeRegistry, SchemaResolutionError, find_content_type


def create_mcp_server(
    db: ContentDatabase,
    schemas: SchemaProvider,
    registry: ContentTypeRegistry,
    config: DeepPopulateConfig,
) -> FastMCP:
    """Create a FastMCP server wired to the given database and schemas."""

    mcp = FastMCP(
        "deep-populate",
        instructions="Build populate plans for content models and run sanitized deep content queries.",
    )

    @mcp.tool()
    async def build_populate_plan(
        uid: str,
        depth: int | None = None,
        exclude: list[str] | None = None,
        only: list[str] | None = None,
    ) -> Any:
        """Build the populate plan for a model uid (``true``, a nested map, or ``null`` when omitted)."""
        excluded = frozenset(exclude) if exclude is not None else frozenset(config.unnecessary_fields)
        builder = PopulatePlanBuilder(schemas, skip_creator_fields=config.skip_creator_fields)
        try:
            node = builder.build(
                uid,
                depth or config.default_depth,
                PlanTraversal(excluded_attribute_names=excluded),
                field_filter=only or (),
            )
        except SchemaResolutionError as exc:
            return f"Error: {exc}"
        return plan_to_query(node)

    @mcp.tool()
    async def deep_query(
        content_type: str,
        populate: list[str] | None = None,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        start: int = 0,
    ) -> Any:
        """Query a content type; ``populate`` takes directive parts such as ``["custom", "4", "@price"]``."""
        schema = find_content_type(schemas, content_type)
        if schema is None:
            return f"Error: unknown content type {content_type!r}."
        try:
            directive = parse_populate_directive(populate) if populate else None
            await db.ensure_ready()
            return await run_deep_query(
                db, schemas, registry, config, schema.uid, directive, filters, Pagination(limit=limit, offset=start)
            )
        except (InvalidDirectiveError, InvalidFilterError, SchemaResolutionError) as exc:
            return f"Error: {exc}"

    @mcp.tool()
    async def list_content_types() -> list[dict[str, str]]:
        """List deployed content types."""
        return [
            {"uid": s.uid, "singular_name": s.singular_name or "", "plural_name": s.plural_name or "", "kind": s.kind}
            for s in sorted(schemas.schemas(), key=lambda s: s.uid)
            if s.is_content_type
        ]

    return mcp

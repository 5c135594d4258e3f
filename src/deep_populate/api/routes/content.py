from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from deep_populate.api.dependencies import get_config, get_database, get_registry, get_schema_provider
from deep_populate.api.pagination import InvalidPaginationError, parse_page_params
from deep_populate.api.params import parse_filters, populate_values
from deep_populate.config import DeepPopulateConfig
from deep_populate.core.deep_query import run_deep_query
from deep_populate.core.directive import InvalidDirectiveError, parse_populate_directive
from deep_populate.core.filters import InvalidFilterError
from deep_populate.core.ports.database import ContentDatabase
from deep_populate.core.ports.schema import SchemaProvider
from deep_populate.core.schema import ContentTypeRegistry, find_content_type

router = APIRouter(prefix="/api", tags=["content"])


@router.get("/{name}")
async def find_entries(
    name: str,
    request: Request,
    db: ContentDatabase = Depends(get_database),
    schemas: SchemaProvider = Depends(get_schema_provider),
    registry: ContentTypeRegistry = Depends(get_registry),
    config: DeepPopulateConfig = Depends(get_config),
) -> dict[str, Any]:
    """Query a content type; ``populate=custom,...`` or ``populate=deep,...`` switches on deep populate."""
    schema = find_content_type(schemas, name)
    if schema is None:
        raise HTTPException(status_code=404, detail=f"Unknown content type: {name}")

    try:
        directive = parse_populate_directive(populate_values(request.query_params))
        where = parse_filters(request.query_params)
        pagination = parse_page_params(request.query_params)
    except (InvalidDirectiveError, InvalidFilterError, InvalidPaginationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    await db.ensure_ready()
    try:
        return await run_deep_query(db, schemas, registry, config, schema.uid, directive, where, pagination)
    except InvalidFilterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from deep_populate.api.dependencies import get_config, get_registry, get_schema_provider
from deep_populate.api.schemas import ContentTypeRow, ContentTypesResponse, PlanResponse
from deep_populate.config import DeepPopulateConfig
from deep_populate.core.populate import PlanTraversal, PopulatePlanBuilder, plan_to_query
from deep_populate.core.ports.schema import SchemaProvider
from deep_populate.core.schema import ContentTypeRegistry, SchemaResolutionError

router = APIRouter(tags=["plan"])


@router.get("/plan/{uid}", response_model=PlanResponse)
async def populate_plan(
    uid: str,
    depth: int | None = Query(None, ge=1),
    exclude: list[str] | None = Query(None),
    only: list[str] | None = Query(None),
    schemas: SchemaProvider = Depends(get_schema_provider),
    config: DeepPopulateConfig = Depends(get_config),
) -> PlanResponse:
    """Return the fetch plan deep populate would use for ``uid``."""
    try:
        schemas.get_schema(uid)
    except SchemaResolutionError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    max_depth = depth or config.default_depth
    excluded = frozenset(exclude) if exclude is not None else frozenset(config.unnecessary_fields)
    builder = PopulatePlanBuilder(schemas, skip_creator_fields=config.skip_creator_fields)
    plan = builder.build(uid, max_depth, PlanTraversal(excluded_attribute_names=excluded), field_filter=only or ())
    return PlanResponse(uid=uid, depth=max_depth, populate=plan_to_query(plan))


@router.get("/content-types", response_model=ContentTypesResponse)
async def content_types(
    schemas: SchemaProvider = Depends(get_schema_provider),
    registry: ContentTypeRegistry = Depends(get_registry),
) -> ContentTypesResponse:
    rows = [
        ContentTypeRow(
            uid=s.uid,
            kind=s.kind,
            collection_name=s.collection_name,
            singular_name=s.singular_name,
            plural_name=s.plural_name,
            attributes=len(s.attributes),
        )
        for s in sorted(schemas.schemas(), key=lambda s: s.uid)
    ]
    return ContentTypesResponse(registry=list(registry), content_types=rows)

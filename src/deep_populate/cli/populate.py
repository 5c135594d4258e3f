import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from deep_populate.api.dependencies import SCHEMAS_ENV_VAR
from deep_populate.config import CONFIG_ENV_VAR, DeepPopulateConfig, MalformedConfigError, load_config
from deep_populate.core.deep_query import Pagination, run_deep_query
from deep_populate.core.directive import InvalidDirectiveError, parse_populate_directive
from deep_populate.core.filters import InvalidFilterError
from deep_populate.core.populate import PlanTraversal, PopulatePlanBuilder, plan_to_query
from deep_populate.core.ports.database import ContentDatabase
from deep_populate.core.sanitize import sanitize as _sanitize
from deep_populate.core.schema import (
    ContentTypeRegistry,
    SchemaResolutionError,
    find_content_type,
    load_schema_file,
)

console = Console()

SchemasOption = Annotated[
    Path,
    typer.Option("--schemas", envvar=SCHEMAS_ENV_VAR, help="Schema JSON file or Strapi src directory."),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", envvar=CONFIG_ENV_VAR, help="Plugin configuration JSON file."),
]


def _fail(message: str) -> typer.Exit:
    console.print(message, style="red", markup=False)
    return typer.Exit(1)


def _load_config(path: Path | None) -> DeepPopulateConfig:
    try:
        return load_config(path)
    except MalformedConfigError as exc:
        raise _fail(f"Invalid configuration: {exc}") from exc


def _get_database() -> ContentDatabase:
    from deep_populate.db.engine import get_engine
    from deep_populate.db.sql import SqlContentDatabase

    return SqlContentDatabase(get_engine())


def plan(
    uid: Annotated[str, typer.Argument(help="Model uid, e.g. api::article.article.")],
    schemas: SchemasOption,
    depth: Annotated[int | None, typer.Option(min=1, help="Maximum populate depth.")] = None,
    exclude: Annotated[
        list[str] | None, typer.Option(help="Attribute name never to populate (repeatable); defaults to config.")
    ] = None,
    only: Annotated[list[str] | None, typer.Option(help="Restrict top-level expansion to these attributes.")] = None,
    config_path: ConfigOption = None,
) -> None:
    """Print the populate plan for a model."""
    config = _load_config(config_path)
    provider = load_schema_file(schemas)
    excluded = frozenset(exclude) if exclude is not None else frozenset(config.unnecessary_fields)
    builder = PopulatePlanBuilder(provider, skip_creator_fields=config.skip_creator_fields)
    try:
        node = builder.build(
            uid,
            depth or config.default_depth,
            PlanTraversal(excluded_attribute_names=excluded),
            field_filter=only or (),
        )
    except SchemaResolutionError as exc:
        raise _fail(str(exc)) from exc
    console.print_json(data=plan_to_query(node))


def sanitize(
    file: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="JSON result tree to clean.")],
    schemas: Annotated[
        Path | None,
        typer.Option("--schemas", envvar=SCHEMAS_ENV_VAR, help="Schemas used to build the content-type registry."),
    ] = None,
    keep: Annotated[list[str] | None, typer.Option(help="Field to keep although configured to drop.")] = None,
    field: Annotated[list[str] | None, typer.Option(help="Specific field to extract (repeatable).")] = None,
    config_path: ConfigOption = None,
) -> None:
    """Sanitize a JSON result tree the way ``populate=custom`` responses are."""
    config = _load_config(config_path)
    registry = ContentTypeRegistry.from_schemas(load_schema_file(schemas)) if schemas else ContentTypeRegistry([])
    try:
        tree = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise _fail(f"{file} is not valid JSON: {exc}") from exc

    result = _sanitize(tree, config.sanitization(keep or (), field or ()), registry)
    output: dict[str, Any] = {"data": result.data}
    if field:
        output["specificFields"] = result.extracted
    console.print_json(data=output)


def query(
    name: Annotated[str, typer.Argument(help="Content type uid, plural or singular name.")],
    schemas: SchemasOption,
    populate: Annotated[
        str | None, typer.Option(help="Populate directive, e.g. 'custom,4,@price'.")
    ] = None,
    filters: Annotated[str | None, typer.Option(help="Where filter as JSON.")] = None,
    limit: Annotated[int | None, typer.Option(min=1, help="Max entries to return.")] = None,
    start: Annotated[int, typer.Option(min=0, help="Entries to skip.")] = 0,
    config_path: ConfigOption = None,
) -> None:
    """Run a (deep populate) content query against the database."""
    config = _load_config(config_path)
    provider = load_schema_file(schemas)
    schema = find_content_type(provider, name)
    if schema is None:
        raise _fail(f"Unknown content type: {name}")

    try:
        directive = parse_populate_directive(populate.split(",")) if populate else None
        where = json.loads(filters) if filters else None
    except (InvalidDirectiveError, json.JSONDecodeError) as exc:
        raise _fail(str(exc)) from exc

    registry = ContentTypeRegistry.from_schemas(provider)
    db = _get_database()

    async def _run() -> dict[str, Any]:
        try:
            await db.ensure_ready()
            return await run_deep_query(
                db, provider, registry, config, schema.uid, directive, where, Pagination(limit=limit, offset=start)
            )
        finally:
            await db.dispose()

    try:
        body = asyncio.run(_run())
    except (SchemaResolutionError, InvalidFilterError) as exc:
        raise _fail(str(exc)) from exc
    console.print_json(data=body)

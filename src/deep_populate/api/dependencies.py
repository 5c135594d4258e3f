from __future__ import annotations

import os
from collections.abc import AsyncIterator

from deep_populate.config import DeepPopulateConfig, load_config
from deep_populate.core.ports.database import ContentDatabase
from deep_populate.core.ports.schema import SchemaProvider
from deep_populate.core.schema import ContentTypeRegistry, InMemorySchemaProvider, load_schema_file
from deep_populate.db.engine import get_engine
from deep_populate.db.sql import SqlContentDatabase

SCHEMAS_ENV_VAR = "DEEP_POPULATE_SCHEMAS"

_db: SqlContentDatabase | None = None
_schemas: SchemaProvider | None = None
_registry: ContentTypeRegistry | None = None
_config: DeepPopulateConfig | None = None


async def get_database() -> AsyncIterator[ContentDatabase]:
    """Yield a ``ContentDatabase`` instance, creating it lazily on first call."""
    global _db  # noqa: PLW0603
    if _db is None:
        _db = SqlContentDatabase(get_engine())
    yield _db


def get_schema_provider() -> SchemaProvider:
    """Schemas from ``$DEEP_POPULATE_SCHEMAS`` (a file or a Strapi ``src`` directory), loaded once."""
    global _schemas  # noqa: PLW0603
    if _schemas is None:
        path = os.getenv(SCHEMAS_ENV_VAR)
        _schemas = load_schema_file(path) if path else InMemorySchemaProvider([])
    return _schemas


def get_registry() -> ContentTypeRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = ContentTypeRegistry.from_schemas(get_schema_provider())
    return _registry


def get_config() -> DeepPopulateConfig:
    global _config  # noqa: PLW0603
    if _config is None:
        _config = load_config()
    return _config


async def shutdown_database() -> None:
    global _db  # noqa: PLW0603
    if _db is not None:
        await _db.dispose()
        _db = None

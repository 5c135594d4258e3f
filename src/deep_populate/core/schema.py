"""Schema provider implementations and the content-type registry.

Schemas are read once at startup, either from a Strapi project layout
(``api/<name>/content-types/<name>/schema.json`` plus
``components/<category>/<name>.json``) or from a single JSON document holding a
list of schema objects with an explicit ``uid``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from deep_populate.core.ports.schema import SchemaProvider
from deep_populate.models import (
    ADMIN_USER_UID,
    UPLOAD_FILE_UID,
    ModelSchema,
    RelationAttribute,
    ScalarAttribute,
    parse_model_schema,
)

logger = logging.getLogger(__name__)


class SchemaResolutionError(LookupError):
    """Raised when a model identifier is not part of the deployed schema."""

    def __init__(self, uid: str) -> None:
        super().__init__(f"Unknown model identifier: {uid!r}")
        self.uid = uid


def _scalars(*names: str, kind: str = "string") -> dict[str, ScalarAttribute]:
    return {name: ScalarAttribute(kind=kind) for name in names}


UPLOAD_FILE_SCHEMA = ModelSchema(
    uid=UPLOAD_FILE_UID,
    collection_name="files",
    singular_name="file",
    plural_name="files",
    attributes={
        **_scalars("name", "alternativeText", "caption", "hash", "ext", "mime", "url", "previewUrl", "provider"),
        **_scalars("width", "height", kind="integer"),
        **_scalars("size", kind="decimal"),
        **_scalars("formats", "provider_metadata", kind="json"),
        "related": ScalarAttribute(kind="morphToMany"),
    },
)

ADMIN_USER_SCHEMA = ModelSchema(
    uid=ADMIN_USER_UID,
    collection_name="admin_users",
    singular_name="user",
    plural_name="users",
    attributes={
        **_scalars("firstname", "lastname", "username", "email"),
        **_scalars("isActive", "blocked", kind="boolean"),
    },
)

BUILTIN_SCHEMAS: tuple[ModelSchema, ...] = (UPLOAD_FILE_SCHEMA, ADMIN_USER_SCHEMA)


def _with_system_attributes(schema: ModelSchema) -> ModelSchema:
    """Add the timestamp and creator attributes every content type carries."""
    if not schema.is_content_type:
        return schema
    extra: dict[str, Any] = {
        **_scalars("createdAt", "updatedAt", "publishedAt", kind="datetime"),
        "createdBy": RelationAttribute(target=ADMIN_USER_UID, relation="oneToOne"),
        "updatedBy": RelationAttribute(target=ADMIN_USER_UID, relation="oneToOne"),
    }
    attributes = {**schema.attributes, **{k: v for k, v in extra.items() if k not in schema.attributes}}
    return schema.model_copy(update={"attributes": attributes})


class InMemorySchemaProvider:
    """Read-only ``SchemaProvider`` over a fixed set of schemas."""

    def __init__(self, schemas: Iterable[ModelSchema], include_builtins: bool = True) -> None:
        self._schemas: dict[str, ModelSchema] = {}
        if include_builtins:
            for builtin in BUILTIN_SCHEMAS:
                self._schemas[builtin.uid] = builtin
        for schema in schemas:
            self._schemas[schema.uid] = schema

    def get_schema(self, uid: str) -> ModelSchema:
        try:
            return self._schemas[uid]
        except KeyError:
            raise SchemaResolutionError(uid) from None

    def schemas(self) -> Iterable[ModelSchema]:
        return self._schemas.values()


def find_content_type(schemas: SchemaProvider, name: str) -> ModelSchema | None:
    """Resolve a URL segment (plural name, singular name or uid) to a content type."""
    for schema in schemas.schemas():
        if schema.is_content_type and name in (schema.uid, schema.plural_name, schema.singular_name):
            return schema
    return None


def _read_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def load_schema_directory(root: str | Path) -> InMemorySchemaProvider:
    """Load content types and components from a Strapi ``src`` directory."""
    root = Path(root)
    schemas: list[ModelSchema] = []

    for schema_path in sorted(root.glob("api/*/content-types/*/schema.json")):
        api_name = schema_path.parents[2].name
        type_name = schema_path.parent.name
        uid = f"api::{api_name}.{type_name}"
        schemas.append(_with_system_attributes(parse_model_schema(uid, _read_json(schema_path))))

    for component_path in sorted(root.glob("components/*/*.json")):
        uid = f"{component_path.parent.name}.{component_path.stem}"
        raw = _read_json(component_path)
        raw.setdefault("kind", "component")
        raw.setdefault("collectionName", f"components_{component_path.parent.name}_{component_path.stem}")
        schemas.append(parse_model_schema(uid, raw))

    logger.info("Loaded %d schema(s) from %s", len(schemas), root)
    return InMemorySchemaProvider(schemas)


def load_schema_file(path: str | Path) -> InMemorySchemaProvider:
    """Load schemas from a JSON list of ``{"uid": ..., <schema.json fields>}`` objects."""
    path = Path(path)
    if path.is_dir():
        return load_schema_directory(path)
    provider = schemas_from_documents(_read_json(path))
    logger.info("Loaded schemas from %s", path)
    return provider


def schemas_from_documents(documents: Iterable[dict[str, Any]]) -> InMemorySchemaProvider:
    """Build a provider from ``schema.json`` style documents that carry their own ``uid``."""
    schemas: list[ModelSchema] = []
    for doc in documents:
        if not isinstance(doc, dict) or "uid" not in doc:
            raise ValueError(f"Schema document without a uid: {doc!r}")
        schemas.append(_with_system_attributes(parse_model_schema(doc["uid"], doc)))
    return InMemorySchemaProvider(schemas)


class ContentTypeRegistry:
    """Known top-level content-type identifiers, used to unwrap typed envelopes."""

    def __init__(self, identifiers: Iterable[str]) -> None:
        self._identifiers = frozenset(identifiers)

    @classmethod
    def from_schemas(cls, provider: SchemaProvider) -> ContentTypeRegistry:
        identifiers: set[str] = set()
        for schema in provider.schemas():
            if not schema.is_content_type or schema.uid in (UPLOAD_FILE_UID, ADMIN_USER_UID):
                continue
            identifiers.add(schema.uid)
            if schema.singular_name:
                identifiers.add(schema.singular_name)
        return cls(identifiers)

    @classmethod
    def from_api_directory(cls, api_dir: str | Path) -> ContentTypeRegistry:
        return cls(p.name for p in Path(api_dir).iterdir() if p.is_dir())

    @property
    def identifiers(self) -> frozenset[str]:
        return self._identifiers

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._identifiers

    def __len__(self) -> int:
        return len(self._identifiers)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._identifiers))

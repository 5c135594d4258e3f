"""Shared fixtures and helpers for tests."""

import json
from pathlib import Path
from typing import Any

import pytest

from deep_populate.core.schema import ContentTypeRegistry, InMemorySchemaProvider, schemas_from_documents
from deep_populate.db import InMemoryContentDatabase

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Sample content model: articles with authors, a hero component, a repeatable
# SEO component, a dynamic zone of blocks, a cover image and localizations.
# ---------------------------------------------------------------------------

SAMPLE_SCHEMAS: list[dict[str, Any]] = [
    {
        "uid": "api::article.article",
        "kind": "collectionType",
        "collectionName": "articles",
        "info": {"singularName": "article", "pluralName": "articles"},
        "attributes": {
            "title": {"type": "string"},
            "views": {"type": "integer"},
            "author": {"type": "relation", "relation": "manyToOne", "target": "api::author.author"},
            "hero": {"type": "component", "component": "sections.hero"},
            "seo": {"type": "component", "component": "shared.seo", "repeatable": True},
            "blocks": {"type": "dynamiczone", "components": ["blocks.quote", "blocks.gallery"]},
            "cover": {"type": "media", "multiple": False},
            "localizations": {
                "type": "relation",
                "relation": "oneToMany",
                "target": "api::article.article",
            },
        },
    },
    {
        "uid": "api::author.author",
        "kind": "collectionType",
        "collectionName": "authors",
        "info": {"singularName": "author", "pluralName": "authors"},
        "attributes": {
            "name": {"type": "string"},
            "articles": {"type": "relation", "relation": "oneToMany", "target": "api::article.article"},
        },
    },
    {
        "uid": "sections.hero",
        "kind": "component",
        "collectionName": "components_sections_heroes",
        "attributes": {
            "heading": {"type": "string"},
            "image": {"type": "media"},
        },
    },
    {
        "uid": "shared.seo",
        "kind": "component",
        "collectionName": "components_shared_seos",
        "attributes": {"metaTitle": {"type": "string"}},
    },
    {
        "uid": "blocks.quote",
        "kind": "component",
        "collectionName": "components_blocks_quotes",
        "attributes": {
            "text": {"type": "string"},
            "author": {"type": "relation", "relation": "oneToOne", "target": "api::author.author"},
        },
    },
    {
        "uid": "blocks.gallery",
        "kind": "component",
        "collectionName": "components_blocks_galleries",
        "attributes": {"images": {"type": "media", "multiple": True}},
    },
]


@pytest.fixture
def schema_provider() -> InMemorySchemaProvider:
    return schemas_from_documents(SAMPLE_SCHEMAS)


@pytest.fixture
def registry(schema_provider: InMemorySchemaProvider) -> ContentTypeRegistry:
    return ContentTypeRegistry.from_schemas(schema_provider)


IMAGE = {
    "name": "cover.png",
    "url": "/uploads/cover.png",
    "alternativeText": "A cover",
    "width": 800,
    "height": 600,
    "mime": "image/png",
    "formats": {"thumbnail": {"url": "/uploads/thumbnail_cover.png"}, "small": {"url": "/uploads/small_cover.png"}},
}

PUBLISHED = "2024-01-01T00:00:00.000Z"


def _sample_entries() -> dict[str, list[dict[str, Any]]]:
    return {
        "plugin::upload.file": [{"id": 1, **IMAGE}],
        "api::author.author": [
            {"id": 1, "name": "Ada", "articles": [1], "publishedAt": PUBLISHED},
            {"id": 2, "name": "Grace", "articles": [], "publishedAt": None},
        ],
        "api::article.article": [
            {
                "id": 1,
                "title": "Hello",
                "views": 10,
                "author": 1,
                "hero": {"id": 1, "heading": "Welcome", "image": 1},
                "seo": [{"id": 1, "metaTitle": "Hello | Blog"}],
                "blocks": [
                    {"id": 1, "__component": "blocks.quote", "text": "Be curious", "author": 1},
                    {"id": 2, "__component": "blocks.gallery", "images": [1]},
                ],
                "cover": 1,
                "localizations": [],
                "createdAt": PUBLISHED,
                "updatedAt": PUBLISHED,
                "publishedAt": PUBLISHED,
            },
            {
                "id": 2,
                "title": "Second",
                "views": 3,
                "author": 1,
                "hero": None,
                "seo": [],
                "blocks": [],
                "cover": None,
                "localizations": [],
                "createdAt": PUBLISHED,
                "updatedAt": PUBLISHED,
                "publishedAt": PUBLISHED,
            },
            {
                "id": 3,
                "title": "Draft",
                "views": 0,
                "author": 2,
                "createdAt": PUBLISHED,
                "updatedAt": PUBLISHED,
                "publishedAt": None,
            },
        ],
    }


@pytest.fixture
def in_memory_db() -> InMemoryContentDatabase:
    return InMemoryContentDatabase(_sample_entries())


@pytest.fixture
def entry_data() -> dict[str, list[dict[str, Any]]]:
    return _sample_entries()


@pytest.fixture
def schemas_file(tmp_path: Path) -> Path:
    """The sample schemas written to a JSON file, as the CLI and loaders read them."""
    path = tmp_path / "schemas.json"
    path.write_text(json.dumps(SAMPLE_SCHEMAS), encoding="utf-8")
    return path

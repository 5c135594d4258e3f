"""Tests for the query executor over the in-memory content database."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from deep_populate.core.populate import FULLY_POPULATE, NestedPopulate
from deep_populate.core.query import count_entries, query_entries
from deep_populate.core.schema import InMemorySchemaProvider, SchemaResolutionError
from deep_populate.db import InMemoryContentDatabase

ARTICLE = "api::article.article"

IMAGE_RECORD = {
    "id": 1,
    "name": "cover.png",
    "url": "/uploads/cover.png",
    "alternativeText": "A cover",
    "width": 800,
    "height": 600,
    "mime": "image/png",
    "formats": {"thumbnail": {"url": "/uploads/thumbnail_cover.png"}, "small": {"url": "/uploads/small_cover.png"}},
}


class TestQueryEntries:
    @pytest.mark.asyncio
    async def test_without_plan_returns_scalars_only(
        self, in_memory_db: InMemoryContentDatabase, schema_provider: InMemorySchemaProvider
    ) -> None:
        rows = await query_entries(in_memory_db, schema_provider, ARTICLE, where={"id": 2})
        assert rows == [
            {
                "id": 2,
                "title": "Second",
                "views": 3,
                "createdAt": "2024-01-01T00:00:00.000Z",
                "updatedAt": "2024-01-01T00:00:00.000Z",
                "publishedAt": "2024-01-01T00:00:00.000Z",
            }
        ]

    @pytest.mark.asyncio
    async def test_plan_resolves_relations_components_and_media(
        self, in_memory_db: InMemoryContentDatabase, schema_provider: InMemorySchemaProvider
    ) -> None:
        plan = NestedPopulate(
            {
                "author": FULLY_POPULATE,
                "hero": NestedPopulate({"image": FULLY_POPULATE}),
                "seo": FULLY_POPULATE,
                "blocks": NestedPopulate({"author": FULLY_POPULATE, "images": FULLY_POPULATE}),
                "cover": FULLY_POPULATE,
                "localizations": FULLY_POPULATE,
            }
        )
        rows = await query_entries(in_memory_db, schema_provider, ARTICLE, plan, where={"id": 1})
        assert len(rows) == 1
        row = rows[0]
        ada = {"id": 1, "name": "Ada", "publishedAt": "2024-01-01T00:00:00.000Z"}
        assert row["author"] == ada
        assert row["hero"] == {"id": 1, "heading": "Welcome", "image": IMAGE_RECORD}
        assert row["seo"] == [{"id": 1, "metaTitle": "Hello | Blog"}]
        assert row["blocks"] == [
            {"id": 1, "__component": "blocks.quote", "text": "Be curious", "author": ada},
            {"id": 2, "__component": "blocks.gallery", "images": [IMAGE_RECORD]},
        ]
        assert row["cover"] == IMAGE_RECORD
        assert row["localizations"] == []

    @pytest.mark.asyncio
    async def test_fully_populated_relation_stops_at_scalars(
        self, in_memory_db: InMemoryContentDatabase, schema_provider: InMemorySchemaProvider
    ) -> None:
        rows = await query_entries(
            in_memory_db, schema_provider, "api::author.author", NestedPopulate({"articles": FULLY_POPULATE})
        )
        assert [a["title"] for a in rows[0]["articles"]] == ["Hello"]
        assert "author" not in rows[0]["articles"][0]
        assert rows[1]["articles"] == []

    @pytest.mark.asyncio
    async def test_unplanned_attributes_are_left_out(
        self, in_memory_db: InMemoryContentDatabase, schema_provider: InMemorySchemaProvider
    ) -> None:
        rows = await query_entries(
            in_memory_db, schema_provider, ARTICLE, NestedPopulate({"cover": FULLY_POPULATE}), where={"id": 1}
        )
        assert set(rows[0]) == {"id", "title", "views", "createdAt", "updatedAt", "publishedAt", "cover"}

    @pytest.mark.asyncio
    async def test_missing_single_relation_is_none(
        self, in_memory_db: InMemoryContentDatabase, schema_provider: InMemorySchemaProvider
    ) -> None:
        rows = await query_entries(
            in_memory_db, schema_provider, ARTICLE, NestedPopulate({"cover": FULLY_POPULATE}), where={"id": 2}
        )
        assert rows[0]["cover"] is None

    @pytest.mark.asyncio
    async def test_where_limit_and_offset(
        self, in_memory_db: InMemoryContentDatabase, schema_provider: InMemorySchemaProvider
    ) -> None:
        where = {"publishedAt": {"$notNull": True}}
        rows = await query_entries(in_memory_db, schema_provider, ARTICLE, where=where, limit=1, offset=1)
        assert [r["id"] for r in rows] == [2]

    @pytest.mark.asyncio
    async def test_unfiltered_page_is_fetched_by_the_store(
        self, in_memory_db: InMemoryContentDatabase, schema_provider: InMemorySchemaProvider
    ) -> None:
        with patch.object(in_memory_db, "fetch_entries", wraps=in_memory_db.fetch_entries) as fetch:
            rows = await query_entries(in_memory_db, schema_provider, ARTICLE, limit=2, offset=1)
        fetch.assert_called_once_with(ARTICLE, limit=2, offset=1)
        assert [r["id"] for r in rows] == [2, 3]

    @pytest.mark.asyncio
    async def test_unknown_model_is_fatal(
        self, in_memory_db: InMemoryContentDatabase, schema_provider: InMemorySchemaProvider
    ) -> None:
        with pytest.raises(SchemaResolutionError):
            await query_entries(in_memory_db, schema_provider, "api::nope.nope")


class TestCountEntries:
    @pytest.mark.asyncio
    async def test_counts_all_without_filter(self, in_memory_db: InMemoryContentDatabase) -> None:
        assert await count_entries(in_memory_db, ARTICLE) == 3

    @pytest.mark.asyncio
    async def test_counts_matching(self, in_memory_db: InMemoryContentDatabase) -> None:
        assert await count_entries(in_memory_db, ARTICLE, {"publishedAt": {"$null": True}}) == 1

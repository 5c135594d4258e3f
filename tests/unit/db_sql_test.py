"""Tests for the SQL content store, run against a SQLite file database."""

from __future__ import annotations

from pathlib import Path

import pytest

from deep_populate.db.engine import get_engine
from deep_populate.db.sql import SqlContentDatabase


def _database(tmp_path: Path) -> SqlContentDatabase:
    return SqlContentDatabase(get_engine(f"sqlite+aiosqlite:///{tmp_path / 'content.db'}"))


class TestSqlContentDatabase:
    @pytest.mark.asyncio
    async def test_insert_and_fetch(self, tmp_path: Path) -> None:
        db = _database(tmp_path)
        try:
            await db.ensure_ready()
            inserted = await db.insert_entries(
                "api::tag.tag", [{"name": "a", "meta": {"x": [1, 2]}}, {"id": 10, "name": "b"}, {"name": "c"}]
            )
            assert inserted == 3
            entries = await db.fetch_entries("api::tag.tag")
            assert entries == [
                {"id": 1, "name": "a", "meta": {"x": [1, 2]}},
                {"id": 10, "name": "b"},
                {"id": 11, "name": "c"},
            ]
            assert await db.count_entries("api::tag.tag") == 3
            assert await db.count_entries("api::other.other") == 0
        finally:
            await db.dispose()

    @pytest.mark.asyncio
    async def test_ids_continue_after_existing_entries(self, tmp_path: Path) -> None:
        db = _database(tmp_path)
        try:
            await db.insert_entries("api::tag.tag", [{"name": "a"}])
            await db.insert_entries("api::tag.tag", [{"name": "b"}])
            assert [e["id"] for e in await db.fetch_entries("api::tag.tag")] == [1, 2]
        finally:
            await db.dispose()

    @pytest.mark.asyncio
    async def test_fetch_by_id_keeps_requested_order(self, tmp_path: Path) -> None:
        db = _database(tmp_path)
        try:
            await db.insert_entries("api::tag.tag", [{"name": "a"}, {"name": "b"}, {"name": "c"}])
            entries = await db.fetch_entries_by_id("api::tag.tag", [3, 1, 42])
            assert [e["name"] for e in entries] == ["c", "a"]
            assert await db.fetch_entries_by_id("api::tag.tag", []) == []
        finally:
            await db.dispose()

    @pytest.mark.asyncio
    async def test_fetch_pages_in_sql(self, tmp_path: Path) -> None:
        db = _database(tmp_path)
        try:
            await db.insert_entries("api::tag.tag", [{"name": n} for n in "abcd"])
            assert [e["name"] for e in await db.fetch_entries("api::tag.tag", limit=2, offset=1)] == ["b", "c"]
            assert [e["name"] for e in await db.fetch_entries("api::tag.tag", offset=3)] == ["d"]
        finally:
            await db.dispose()

    @pytest.mark.asyncio
    async def test_models_are_isolated(self, tmp_path: Path) -> None:
        db = _database(tmp_path)
        try:
            await db.insert_entries("api::tag.tag", [{"name": "a"}])
            await db.insert_entries("api::page.page", [{"title": "p"}])
            assert await db.fetch_entries_by_id("api::page.page", [1]) == [{"id": 1, "title": "p"}]
        finally:
            await db.dispose()

    @pytest.mark.asyncio
    async def test_ping(self, tmp_path: Path) -> None:
        db = _database(tmp_path)
        try:
            assert await db.ping()
        finally:
            await db.dispose()

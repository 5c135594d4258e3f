import asyncio

from deep_populate.db import InMemoryContentDatabase


def test_in_memory_db_assigns_ids() -> None:
    db = InMemoryContentDatabase({"api::tag.tag": [{"name": "a"}, {"id": 7, "name": "b"}, {"name": "c"}]})
    entries = asyncio.run(db.fetch_entries("api::tag.tag"))
    assert [(e["id"], e["name"]) for e in entries] == [(1, "a"), (7, "b"), (8, "c")]


def test_in_memory_db_fetch_by_id_keeps_requested_order(in_memory_db: InMemoryContentDatabase) -> None:
    entries = asyncio.run(in_memory_db.fetch_entries_by_id("api::article.article", [3, 1, 99]))
    assert [e["id"] for e in entries] == [3, 1]


def test_in_memory_db_returns_copies(in_memory_db: InMemoryContentDatabase) -> None:
    entry = asyncio.run(in_memory_db.fetch_entries_by_id("api::article.article", [1]))[0]
    entry["title"] = "changed"
    assert in_memory_db.entries["api::article.article"][1]["title"] == "Hello"


def test_in_memory_db_insert_and_count() -> None:
    db = InMemoryContentDatabase()
    assert asyncio.run(db.count_entries("api::tag.tag")) == 0
    assert asyncio.run(db.insert_entries("api::tag.tag", [{"name": "a"}, {"name": "b"}])) == 2
    assert asyncio.run(db.count_entries("api::tag.tag")) == 2
    assert asyncio.run(db.ping())

import json
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

_TABLE_DDL = (
    "CREATE TABLE IF NOT EXISTS content_entries ("
    " model_uid TEXT NOT NULL,"
    " entry_id INTEGER NOT NULL,"
    " document TEXT NOT NULL,"
    " PRIMARY KEY (model_uid, entry_id)"
    ")"
)


def _load_document(entry_id: Any, document: str) -> dict[str, Any]:
    record: dict[str, Any] = json.loads(document)
    record["id"] = int(entry_id)
    return record


class SqlContentDatabase:
    """``ContentDatabase`` storing each entry as a JSON document in ``content_entries``."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._ready = False

    async def ensure_ready(self) -> None:
        if self._ready:
            return
        async with self._engine.begin() as conn:
            await conn.execute(text(_TABLE_DDL))
        self._ready = True

    async def fetch_entries(self, uid: str, limit: int | None = None, offset: int = 0) -> list[dict[str, Any]]:
        await self.ensure_ready()
        sql = "SELECT entry_id, document FROM content_entries WHERE model_uid = :uid ORDER BY entry_id"
        params: dict[str, Any] = {"uid": uid}
        if limit is not None:
            sql += " LIMIT :limit OFFSET :offset"
            params.update(limit=limit, offset=offset)
        async with self._engine.connect() as conn:
            result = await conn.execute(text(sql), params)
            entries = [_load_document(row[0], row[1]) for row in result.fetchall()]
        # SQLite has no OFFSET without LIMIT
        return entries if limit is not None else entries[offset:]

    async def fetch_entries_by_id(self, uid: str, ids: Sequence[int]) -> list[dict[str, Any]]:
        if not ids:
            return []
        await self.ensure_ready()
        stmt = text(
            "SELECT entry_id, document FROM content_entries WHERE model_uid = :uid AND entry_id IN :ids"
        ).bindparams(bindparam("ids", expanding=True))
        async with self._engine.connect() as conn:
            result = await conn.execute(stmt, {"uid": uid, "ids": list(ids)})
            by_id = {int(row[0]): _load_document(row[0], row[1]) for row in result.fetchall()}
        # keep the order the relation stores its ids in
        return [by_id[i] for i in ids if i in by_id]

    async def count_entries(self, uid: str) -> int:
        await self.ensure_ready()
        async with self._engine.connect() as conn:
            result = await conn.execute(
                text("SELECT count(*) FROM content_entries WHERE model_uid = :uid"),
                {"uid": uid},
            )
            return int(result.scalar_one())

    async def insert_entries(self, uid: str, entries: Iterable[dict[str, Any]]) -> int:
        await self.ensure_ready()
        count = 0
        async with self._engine.begin() as conn:
            result = await conn.execute(
                text("SELECT coalesce(max(entry_id), 0) FROM content_entries WHERE model_uid = :uid"),
                {"uid": uid},
            )
            next_id = int(result.scalar_one()) + 1
            for entry in entries:
                document = dict(entry)
                entry_id = document.pop("id", None)
                if entry_id is None:
                    entry_id = next_id
                next_id = max(next_id, int(entry_id)) + 1
                await conn.execute(
                    text(
                        "INSERT INTO content_entries (model_uid, entry_id, document) "
                        "VALUES (:uid, :entry_id, :document)"
                    ),
                    {"uid": uid, "entry_id": int(entry_id), "document": json.dumps(document)},
                )
                count += 1
        logger.info("Inserted %d %s entries", count, uid)
        return count

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    async def dispose(self) -> None:
        await self._engine.dispose()

import copy
from collections.abc import Iterable, Mapping, Sequence
from typing import Any


class InMemoryContentDatabase:
    """``ContentDatabase`` keeping entries in dictionaries, keyed by model uid and id."""

    def __init__(self, entries: Mapping[str, Iterable[dict[str, Any]]] | None = None) -> None:
        self.entries: dict[str, dict[int, dict[str, Any]]] = {}
        for uid, items in (entries or {}).items():
            self._insert(uid, items)

    def _insert(self, uid: str, entries: Iterable[dict[str, Any]]) -> int:
        table = self.entries.setdefault(uid, {})
        count = 0
        for entry in entries:
            record = copy.deepcopy(dict(entry))
            if "id" not in record:
                record["id"] = max(table, default=0) + 1
            table[int(record["id"])] = record
            count += 1
        return count

    async def ensure_ready(self) -> None:
        pass

    async def fetch_entries(self, uid: str, limit: int | None = None, offset: int = 0) -> list[dict[str, Any]]:
        table = self.entries.get(uid, {})
        keys = sorted(table)[offset:]
        if limit is not None:
            keys = keys[:limit]
        return [copy.deepcopy(table[key]) for key in keys]

    async def fetch_entries_by_id(self, uid: str, ids: Sequence[int]) -> list[dict[str, Any]]:
        table = self.entries.get(uid, {})
        return [copy.deepcopy(table[i]) for i in ids if i in table]

    async def count_entries(self, uid: str) -> int:
        return len(self.entries.get(uid, {}))

    async def insert_entries(self, uid: str, entries: Iterable[dict[str, Any]]) -> int:
        return self._insert(uid, entries)

    async def ping(self) -> bool:
        return True

    async def dispose(self) -> None:
        pass

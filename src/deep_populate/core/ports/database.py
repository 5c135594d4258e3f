from collections.abc import Iterable, Sequence
from typing import Any, Protocol


class ContentDatabase(Protocol):
    async def ensure_ready(self) -> None: ...

    async def fetch_entries(self, uid: str, limit: int | None = None, offset: int = 0) -> list[dict[str, Any]]: ...

    async def fetch_entries_by_id(self, uid: str, ids: Sequence[int]) -> list[dict[str, Any]]: ...

    async def count_entries(self, uid: str) -> int: ...

    async def insert_entries(self, uid: str, entries: Iterable[dict[str, Any]]) -> int: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...

from deep_populate.db.engine import DEFAULT_DATABASE_URL
from deep_populate.db.engine import get_engine as _get_engine
from deep_populate.db.memory import InMemoryContentDatabase
from deep_populate.db.sql import SqlContentDatabase

__all__ = [
    "DEFAULT_DATABASE_URL",
    "InMemoryContentDatabase",
    "SqlContentDatabase",
    "_get_engine",
]

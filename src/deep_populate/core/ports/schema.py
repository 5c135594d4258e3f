from collections.abc import Iterable
from typing import Protocol

from deep_populate.models import ModelSchema


class SchemaProvider(Protocol):
    def get_schema(self, uid: str) -> ModelSchema: ...

    def schemas(self) -> Iterable[ModelSchema]: ...

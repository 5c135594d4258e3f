from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"


class ReadinessResponse(BaseModel):
    status: str = "ok"
    database: str = "up"


class PlanResponse(BaseModel):
    uid: str
    depth: int
    populate: bool | dict[str, Any] | None


class ContentTypeRow(BaseModel):
    uid: str
    kind: str
    collection_name: str
    singular_name: str
    plural_name: str
    attributes: int


class ContentTypesResponse(BaseModel):
    registry: list[str]
    content_types: list[ContentTypeRow]

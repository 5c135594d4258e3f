from __future__ import annotations

from typing import Any

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Root discovery endpoint listing the available API routes."""
    return {
        "meta": {
            "title": "Deep Populate API",
            "description": "Deep-populated, sanitized content queries over a content-schema graph.",
            "version": "0.1.0",
        },
        "links": {
            "self": "/",
            "content": "/api/{name}",
            "plan": "/plan/{uid}",
            "content-types": "/content-types",
            "openapi": "/openapi.json",
            "docs": "/docs",
        },
    }

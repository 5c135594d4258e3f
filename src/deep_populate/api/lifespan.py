from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from deep_populate.api.dependencies import get_config, get_registry, shutdown_database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # fail at startup, not on the first request, when schemas or config are broken
    config = get_config()
    registry = get_registry()
    logger.info("Deep populate ready: %d content type(s), default depth %d", len(registry), config.default_depth)
    yield
    await shutdown_database()

"""Plugin configuration.

Options use the plugin's camelCase names (``defaultDepth``, ``imageFormats`` ...)
and are also accepted in snake_case. The JSON file may hold the options directly
or a Strapi-style plugin entry: ``{"deep-populate": {"config": {...}}}``.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from deep_populate.core.sanitize import DEFAULT_IMAGE_FIELDS, SanitizationConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DEEP_POPULATE_CONFIG"
PLUGIN_NAME = "deep-populate"


class MalformedConfigError(ValueError):
    """Raised when configuration values have the wrong shape."""


class DeepPopulateConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", alias_generator=to_camel, populate_by_name=True)

    default_depth: int = Field(10, ge=1)
    unnecessary_fields: tuple[str, ...] = ("createdAt", "updatedAt", "publishedAt", "createdBy", "updatedBy")
    fields_to_keep_in_image: tuple[str, ...] = DEFAULT_IMAGE_FIELDS
    remove_nested_fields_with_same_name: bool = True
    skip_creator_fields: bool = False
    image_formats: bool = False
    image_inline: bool = False

    def fields_to_drop(self, keep_fields: Iterable[str] = ()) -> tuple[str, ...]:
        keep = set(keep_fields)
        return tuple(name for name in self.unnecessary_fields if name not in keep)

    def sanitization(
        self,
        keep_fields: Iterable[str] = (),
        specific_fields: Iterable[str] = (),
    ) -> SanitizationConfig:
        return SanitizationConfig(
            fields_to_drop=frozenset(self.fields_to_drop(keep_fields)),
            image_allow_list=self.fields_to_keep_in_image,
            collapse_same_name_wrappers=self.remove_nested_fields_with_same_name,
            collapse_type_wrappers=self.remove_nested_fields_with_same_name,
            expand_image_formats=self.image_formats,
            inline_images=self.image_inline,
            specific_fields=frozenset(specific_fields),
        )


def parse_config(raw: Any) -> DeepPopulateConfig:
    if isinstance(raw, dict) and PLUGIN_NAME in raw:
        raw = (raw[PLUGIN_NAME] or {}).get("config", {})
    if not isinstance(raw, dict):
        raise MalformedConfigError(f"Configuration must be an object, got {type(raw).__name__}")
    try:
        return DeepPopulateConfig.model_validate(raw)
    except ValidationError as exc:
        raise MalformedConfigError(str(exc)) from exc


def load_config(path: str | Path | None = None) -> DeepPopulateConfig:
    """Load configuration from ``path`` or ``$DEEP_POPULATE_CONFIG``; defaults when neither is set."""
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR)
    if not path:
        return DeepPopulateConfig()

    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedConfigError(f"{config_path} is not valid JSON: {exc}") from exc

    config = parse_config(raw)
    logger.info("Loaded configuration from %s (default depth %d)", config_path, config.default_depth)
    return config

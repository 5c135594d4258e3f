"""Response tree sanitizer.

Rewrites a populated result tree bottom-up: every child is cleaned before the
rules of its parent run, and each object is rebuilt rather than mutated.
The per-object rules run in a fixed order:

1. drop configured fields
2. collapse same-name wrappers (``{"hero": {"hero": {...}}}``)
3. collapse content-type wrappers (``{"block": {"api::card.card": {...}}}``)
4. project image records onto an allow-list
5. record the specific-field projection of the result, if requested
"""

from __future__ import annotations

from collections.abc import Container
from dataclasses import dataclass, field
from typing import Any

DEFAULT_UNNECESSARY_FIELDS: frozenset[str] = frozenset(
    {"createdAt", "updatedAt", "publishedAt", "createdBy", "updatedBy"}
)
DEFAULT_IMAGE_FIELDS: tuple[str, ...] = ("url", "alternativeText")

_IMAGE_MARKERS = ("height", "width", "url")
_IMAGE_FORMAT_FIELDS: tuple[tuple[str, str], ...] = (
    ("urlThumb", "thumbnail"),
    ("urlM", "medium"),
    ("urlS", "small"),
    ("urlL", "large"),
)


@dataclass(frozen=True)
class SanitizationConfig:
    fields_to_drop: frozenset[str] = DEFAULT_UNNECESSARY_FIELDS
    image_allow_list: tuple[str, ...] = DEFAULT_IMAGE_FIELDS
    collapse_same_name_wrappers: bool = True
    collapse_type_wrappers: bool = True
    expand_image_formats: bool = False
    inline_images: bool = False
    specific_fields: frozenset[str] = frozenset()


@dataclass(frozen=True)
class SanitizeResult:
    data: Any
    extracted: list[dict[str, Any]] = field(default_factory=list)


def sanitize(tree: Any, config: SanitizationConfig, registry: Container[str] = frozenset()) -> SanitizeResult:
    """Clean ``tree`` and return it with the specific-field projections gathered on the way."""
    extracted: list[dict[str, Any]] = []
    cleaned = _TreeSanitizer(config, registry, extracted).visit(tree)
    if config.specific_fields:
        extracted = [entry for entry in extracted if _has_content(entry)]
    return SanitizeResult(data=cleaned, extracted=extracted)


class _TreeSanitizer:
    def __init__(self, config: SanitizationConfig, registry: Container[str], extracted: list[dict[str, Any]]) -> None:
        self._config = config
        self._registry = registry
        self._extracted = extracted

    def visit(self, node: Any) -> Any:
        if isinstance(node, list):
            return [self.visit(item) for item in node]
        if isinstance(node, dict):
            return self._apply_rules({key: self.visit(value) for key, value in node.items()})
        return node

    def _apply_rules(self, obj: dict[str, Any]) -> Any:
        config = self._config
        if config.fields_to_drop:
            obj = drop_fields(obj, config.fields_to_drop)
        obj = self._collapse(obj)

        result: Any = obj
        if config.image_allow_list:
            result = project_image(
                obj,
                config.image_allow_list,
                expand_formats=config.expand_image_formats,
                inline=config.inline_images,
            )

        if config.specific_fields and isinstance(result, dict):
            projection = {key: value for key, value in result.items() if key in config.specific_fields}
            if projection:
                self._extracted.append(projection)
        return result

    def _collapse(self, obj: dict[str, Any]) -> dict[str, Any]:
        # unwrapping a type wrapper can expose a same-name pair, and the reverse
        config = self._config
        for _ in range(_depth(obj) + 1):
            before = obj
            if config.collapse_same_name_wrappers:
                obj = collapse_same_name_wrappers(obj)
            if config.collapse_type_wrappers:
                obj = collapse_type_wrappers(obj, self._registry)
            if obj == before:
                break
        return obj


def drop_fields(obj: dict[str, Any], fields: Container[str]) -> dict[str, Any]:
    return {key: value for key, value in obj.items() if key not in fields}


def collapse_same_name_wrappers(obj: dict[str, Any]) -> dict[str, Any]:
    """Replace ``{k: {k: v}}`` with ``{k: v}`` until no such pair is left."""
    result = dict(obj)
    for _ in range(_depth(obj) + 1):
        changed = False
        for key, value in result.items():
            if isinstance(value, dict) and key in value:
                result[key] = value[key]
                changed = True
        if not changed:
            break
    return result


def collapse_type_wrappers(obj: dict[str, Any], registry: Container[str]) -> dict[str, Any]:
    """Unwrap single-entry objects keyed by a known content-type identifier."""
    result = dict(obj)
    for key, value in obj.items():
        if isinstance(value, dict) and len(value) == 1:
            inner_key, inner_value = next(iter(value.items()))
            if inner_key in registry:
                result[key] = inner_value
    return result


def is_image(obj: dict[str, Any]) -> bool:
    return all(obj.get(marker) is not None for marker in _IMAGE_MARKERS)


def project_image(
    obj: dict[str, Any],
    allow_list: tuple[str, ...],
    expand_formats: bool = False,
    inline: bool = False,
) -> Any:
    """Reduce an image record to its allow-listed fields; other objects are returned as-is."""
    if not is_image(obj):
        return obj

    image = {name: obj[name] for name in allow_list if obj.get(name) is not None}

    formats = obj.get("formats")
    if expand_formats and isinstance(formats, dict):
        for target, format_name in _IMAGE_FORMAT_FIELDS:
            url = _format_url(formats.get(format_name))
            if url is not None:
                image[target] = url

    if inline and set(image) == {"url"}:
        return image["url"]
    return image


def _format_url(fmt: Any) -> Any:
    # an inlined format is already its url
    if isinstance(fmt, str):
        return fmt
    if isinstance(fmt, dict):
        return fmt.get("url")
    return None


def _depth(node: Any) -> int:
    if isinstance(node, dict):
        return 1 + max((_depth(v) for v in node.values()), default=0)
    if isinstance(node, list):
        return max((_depth(v) for v in node), default=0)
    return 0


def _has_content(entry: dict[str, Any]) -> bool:
    return any(value not in (None, [], {}) for value in entry.values())

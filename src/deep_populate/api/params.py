"""Decoding of bracket-notation query parameters (``filters[title][$eq]=...``)."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from starlette.datastructures import QueryParams

from deep_populate.core.filters import InvalidFilterError

_SEGMENT = re.compile(r"\[([^\]]*)\]")


def parse_bracket_params(items: Iterable[tuple[str, str]], prefix: str) -> Any:
    """Fold ``prefix[a][b]=v`` pairs into nested objects; all-numeric keys become lists."""
    tree: dict[str, Any] = {}
    for key, value in items:
        if not key.startswith(prefix + "["):
            continue
        path = _SEGMENT.findall(key[len(prefix) :])
        if not path:
            continue
        node = tree
        for part in path[:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                raise InvalidFilterError(f"Conflicting query parameter: {key}")
            node = child
        node[path[-1]] = value
    return _listify(tree)


def _listify(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    converted = {key: _listify(value) for key, value in node.items()}
    if converted and all(key.isdigit() for key in converted):
        return [converted[key] for key in sorted(converted, key=int)]
    return converted


def parse_filters(params: QueryParams) -> dict[str, Any]:
    filters = parse_bracket_params(params.multi_items(), "filters")
    if not isinstance(filters, dict):
        raise InvalidFilterError("filters must be an object")
    return filters


def populate_values(params: QueryParams) -> list[str]:
    """Collect the populate parameter from indexed, repeated or comma-separated forms."""
    indexed = parse_bracket_params(params.multi_items(), "populate")
    if isinstance(indexed, list):
        return [str(v) for v in indexed]

    values = params.getlist("populate")
    if len(values) == 1 and "," in values[0]:
        return values[0].split(",")
    return values

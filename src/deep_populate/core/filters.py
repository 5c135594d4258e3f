"""Evaluation of Strapi-style ``where`` filters against stored entries."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any


class InvalidFilterError(ValueError):
    """Raised when a filter uses an unknown operator or an unusable operand."""


PUBLISHED_FILTER: dict[str, Any] = {"publishedAt": {"$notNull": True}}

# Operators that compare or test membership; a filter using any of them is trusted when it matches nothing.
COMPARISON_OPERATORS: frozenset[str] = frozenset(
    {
        "$eq",
        "$eqi",
        "$ne",
        "$lt",
        "$lte",
        "$gt",
        "$gte",
        "$in",
        "$notIn",
        "$between",
        "$contains",
        "$containsi",
        "$notContains",
        "$startsWith",
        "$endsWith",
    }
)


def with_published_filter(where: Mapping[str, Any] | None) -> dict[str, Any]:
    if not where:
        return dict(PUBLISHED_FILTER)
    return {"$and": [dict(where), dict(PUBLISHED_FILTER)]}


def uses_comparison_operators(where: Any) -> bool:
    if isinstance(where, Mapping):
        return any(key in COMPARISON_OPERATORS or uses_comparison_operators(value) for key, value in where.items())
    if isinstance(where, list):
        return any(uses_comparison_operators(item) for item in where)
    return False


def matches(entry: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    if not where:
        return True
    for key, condition in where.items():
        if key == "$and":
            if not all(matches(entry, sub) for sub in _conditions(key, condition)):
                return False
        elif key == "$or":
            if not any(matches(entry, sub) for sub in _conditions(key, condition)):
                return False
        elif key == "$not":
            if not isinstance(condition, Mapping):
                raise InvalidFilterError("$not expects an object")
            if matches(entry, condition):
                return False
        elif key.startswith("$"):
            raise InvalidFilterError(f"Unknown logical operator: {key}")
        elif not _match_field(entry.get(key), condition):
            return False
    return True


def _conditions(operator: str, condition: Any) -> list[Mapping[str, Any]]:
    if isinstance(condition, Mapping):
        return [condition]
    if isinstance(condition, list) and all(isinstance(c, Mapping) for c in condition):
        return condition
    raise InvalidFilterError(f"{operator} expects a list of objects")


def _match_field(value: Any, condition: Any) -> bool:
    if isinstance(condition, Mapping):
        if condition and all(str(k).startswith("$") for k in condition):
            return all(_apply_operator(op, value, operand) for op, operand in condition.items())
        # nested filter on a component
        if isinstance(value, Mapping):
            return matches(value, condition)
        if isinstance(value, list):
            return any(isinstance(item, Mapping) and matches(item, condition) for item in value)
        return False
    if isinstance(condition, list):
        return _apply_operator("$in", value, condition)
    return _apply_operator("$eq", value, condition)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1")
    return bool(value)


def _coerce(operand: Any, actual: Any) -> Any:
    """Convert query-string operands to the type of the stored value."""
    if not isinstance(operand, str) or actual is None or isinstance(actual, str):
        return operand
    try:
        if isinstance(actual, bool):
            return _as_bool(operand)
        if isinstance(actual, int):
            return int(operand)
        if isinstance(actual, float):
            return float(operand)
    except ValueError:
        return operand
    return operand


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def _op(value: Any, operand: Any) -> bool:
        if value is None:
            return False
        try:
            return compare(value, _coerce(operand, value))
        except TypeError:
            return False

    return _op


def _in(value: Any, operand: Any) -> bool:
    if not isinstance(operand, list):
        operand = [operand]
    return any(value == _coerce(item, value) for item in operand)


def _between(value: Any, operand: Any) -> bool:
    if not isinstance(operand, list) or len(operand) != 2:
        raise InvalidFilterError("$between expects two bounds")
    low, high = operand
    return _ordered(lambda v, o: v >= o)(value, low) and _ordered(lambda v, o: v <= o)(value, high)


def _contains(value: Any, operand: Any, fold: bool = False) -> bool:
    if value is None:
        return False
    if isinstance(value, list):
        return any(_contains(item, operand, fold) for item in value)
    haystack, needle = str(value), str(operand)
    if fold:
        haystack, needle = haystack.casefold(), needle.casefold()
    return needle in haystack


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$eq": lambda v, o: v == _coerce(o, v),
    "$eqi": lambda v, o: v is not None and str(v).casefold() == str(o).casefold(),
    "$ne": lambda v, o: v != _coerce(o, v),
    "$lt": _ordered(lambda v, o: v < o),
    "$lte": _ordered(lambda v, o: v <= o),
    "$gt": _ordered(lambda v, o: v > o),
    "$gte": _ordered(lambda v, o: v >= o),
    "$in": _in,
    "$notIn": lambda v, o: not _in(v, o),
    "$between": _between,
    "$null": lambda v, o: (v is None) == _as_bool(o),
    "$notNull": lambda v, o: (v is not None) == _as_bool(o),
    "$contains": _contains,
    "$containsi": lambda v, o: _contains(v, o, fold=True),
    "$notContains": lambda v, o: not _contains(v, o),
    "$startsWith": lambda v, o: v is not None and str(v).startswith(str(o)),
    "$endsWith": lambda v, o: v is not None and str(v).endswith(str(o)),
}


def _apply_operator(operator: str, value: Any, operand: Any) -> bool:
    try:
        op = _OPERATORS[operator]
    except KeyError:
        raise InvalidFilterError(f"Unknown filter operator: {operator}") from None
    return op(value, operand)

"""Parsing of the ``populate`` request parameter that switches on deep populate.

``["custom", "4", "createdAt", "@price"]`` asks for a sanitized response
populated four levels deep, keeps ``createdAt`` in the output and extracts
every ``price`` field into a side list.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


class InvalidDirectiveError(ValueError):
    """Raised when a populate directive is recognised but malformed."""


class PopulateMode(str, Enum):
    DEEP = "deep"
    CUSTOM = "custom"


SPECIFIC_FIELD_MARKER = "@"


@dataclass(frozen=True)
class PopulateDirective:
    mode: PopulateMode
    depth: int | None = None
    keep_fields: tuple[str, ...] = ()
    specific_fields: tuple[str, ...] = ()

    @property
    def sanitizes(self) -> bool:
        return self.mode is PopulateMode.CUSTOM


def _is_int(value: str) -> bool:
    return value.lstrip("+-").isdigit()


def parse_populate_directive(values: Sequence[str]) -> PopulateDirective | None:
    """Return the directive, or ``None`` when ``values`` is an ordinary populate parameter."""
    if not values:
        return None
    try:
        mode = PopulateMode(str(values[0]).strip())
    except ValueError:
        return None

    rest = [str(v).strip() for v in values[1:]]
    depth: int | None = None
    if rest and _is_int(rest[0]):
        depth = int(rest.pop(0))
        if depth < 1:
            raise InvalidDirectiveError(f"Populate depth must be at least 1, got {depth}")
    elif rest and rest[0] == "":
        rest.pop(0)

    keep: list[str] = []
    specific: list[str] = []
    for item in rest:
        if not item:
            continue
        if item.startswith(SPECIFIC_FIELD_MARKER):
            name = item[len(SPECIFIC_FIELD_MARKER) :]
            if not name:
                raise InvalidDirectiveError(f"{SPECIFIC_FIELD_MARKER!r} must be followed by a field name")
            specific.append(name)
        else:
            keep.append(item)

    return PopulateDirective(mode=mode, depth=depth, keep_fields=tuple(keep), specific_fields=tuple(specific))

"""Offset pagination parameters for the content endpoints.

Accepts either ``pagination[page]`` / ``pagination[pageSize]`` or
``pagination[start]`` / ``pagination[limit]``; page-based parameters win when
both are given.
"""

from __future__ import annotations

from starlette.datastructures import QueryParams

from deep_populate.core.deep_query import Pagination

MAX_PAGE_SIZE = 1000


class InvalidPaginationError(ValueError):
    """Raised when pagination parameters are not positive integers."""


def _int_param(params: QueryParams, name: str, minimum: int) -> int | None:
    raw = params.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidPaginationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise InvalidPaginationError(f"{name} must be at least {minimum}, got {value}")
    return value


def parse_page_params(params: QueryParams) -> Pagination:
    page = _int_param(params, "pagination[page]", 1)
    page_size = _int_param(params, "pagination[pageSize]", 1)
    if page is not None or page_size is not None:
        size = min(page_size or 25, MAX_PAGE_SIZE)
        return Pagination(limit=size, offset=((page or 1) - 1) * size)

    start = _int_param(params, "pagination[start]", 0)
    limit = _int_param(params, "pagination[limit]", 1)
    return Pagination(limit=min(limit, MAX_PAGE_SIZE) if limit is not None else None, offset=start or 0)

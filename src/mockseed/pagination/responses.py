"""Fill list-response wrappers from pagination windows.

A wrapper is whatever object the response schema describes around the
item array. Its items field and any recognised meta fields are replaced
by the window's values; every other field keeps its synthesized value.
Meta objects nested under ``pagination`` or ``meta`` are filled the same
way.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mockseed.models import PaginationShape
from mockseed.pagination.results import CursorPage, PageWindow

NESTED_META_KEYS = ("pagination", "meta", "page_info", "pageInfo")


def page_meta(window: PageWindow) -> dict[str, Any]:
    """Meta field values for a page window, in both camelCase and snake_case."""
    return {
        "page": window.page,
        "page_number": window.page,
        "pageNumber": window.page,
        "totalPages": window.total_pages,
        "total_pages": window.total_pages,
        "total": window.total,
        "totalItems": window.total,
        "total_items": window.total,
        "totalCount": window.total,
        "total_count": window.total,
        "limit": window.limit,
        "size": window.limit,
        "page_size": window.limit,
        "pageSize": window.limit,
        "offset": window.offset,
        "hasMore": window.has_next,
        "has_more": window.has_next,
        "hasNext": window.has_next,
        "has_next": window.has_next,
        "hasPrev": window.has_prev,
        "has_prev": window.has_prev,
    }


def cursor_meta(window: CursorPage) -> dict[str, Any]:
    """Meta field values for a cursor window, in both camelCase and snake_case."""
    return {
        "nextCursor": window.next_cursor,
        "next_cursor": window.next_cursor,
        "prevCursor": window.prev_cursor,
        "prev_cursor": window.prev_cursor,
        "cursor": window.next_cursor,
        "next_page_token": window.next_cursor or "",
        "nextPageToken": window.next_cursor or "",
        "hasMore": window.has_more,
        "has_more": window.has_more,
        "hasNext": window.has_more,
        "has_next": window.has_more,
        "hasPrev": window.has_prev,
        "has_prev": window.has_prev,
        "total": window.total,
        "totalItems": window.total,
        "total_items": window.total,
        "limit": window.limit,
        "size": window.limit,
        "page_size": window.limit,
        "pageSize": window.limit,
        "offset": window.start_index,
    }


def _fill(target: dict[str, Any], meta: Mapping[str, Any], fields: set[str]) -> None:
    for name in fields:
        if name in meta:
            target[name] = meta[name]
    for key in NESTED_META_KEYS:
        nested = target.get(key)
        if isinstance(nested, dict):
            target[key] = dict(nested)
            _fill(target[key], meta, set(nested))


def _apply(
    shape: PaginationShape,
    items: list[Any],
    meta: Mapping[str, Any],
    base: Mapping[str, Any] | None,
) -> dict[str, Any]:
    wrapper = dict(base or {})
    fields = set(shape.meta_fields) | set(wrapper)
    fields.discard(shape.items_field_name)
    _fill(wrapper, meta, fields)
    wrapper[shape.items_field_name] = items
    return wrapper


def build_page_response(
    shape: PaginationShape,
    window: PageWindow,
    base: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Wrap a page window in the response shape, on top of an optional synthesized wrapper."""
    return _apply(shape, window.items, page_meta(window), base)


def build_cursor_response(
    shape: PaginationShape,
    window: CursorPage,
    base: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Wrap a cursor window in the response shape.

    Cursor fields with no further page are emitted as null (``""`` for page tokens).
    """
    return _apply(shape, window.items, cursor_meta(window), base)

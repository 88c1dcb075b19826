"""Pagination parameters read from a query string."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mockseed.config import MockCursorConfig, MockPaginationConfig

TRUE_VALUES = frozenset({"true", "1"})


def _first(value: Any) -> Any:
    if isinstance(value, list | tuple):
        return value[0] if value else None
    return value


def _positive_int(value: Any, default: int, minimum: int = 1) -> int:
    value = _first(value)
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= minimum else default


@dataclass(frozen=True)
class PaginationRequest:
    """Normalised page / offset / cursor parameters."""

    page: int = 1
    limit: int = 20
    offset: int | None = None
    cursor: str | None = None
    is_backward: bool = False

    @classmethod
    def from_query(
        cls,
        query: Mapping[str, Any],
        config: MockPaginationConfig | None = None,
        cursor_config: MockCursorConfig | None = None,
    ) -> PaginationRequest:
        """Read pagination parameters, falling back to defaults for missing or bad values.

        ``limit`` may also be given as ``size``. Multi-valued parameters use
        their first value.
        """
        config = config or MockPaginationConfig()
        cursor_config = cursor_config or MockCursorConfig()

        limit_value = query.get("limit")
        if limit_value is None:
            limit_value = query.get("size")
        offset_value = _first(query.get("offset"))
        cursor = _first(query.get("cursor"))
        backward = _first(query.get(cursor_config.backward_param))

        return cls(
            page=_positive_int(query.get("page"), 1),
            limit=_positive_int(limit_value, config.default_limit),
            offset=None if offset_value is None else _positive_int(offset_value, 0, minimum=0),
            cursor=str(cursor) if cursor else None,
            is_backward=str(backward).lower() in TRUE_VALUES if backward is not None else False,
        )

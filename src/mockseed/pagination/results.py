"""Windows returned by the pagination managers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PageWindow:
    """One page of a page-numbered collection."""

    items: list[Any]
    page: int
    limit: int
    total: int
    total_pages: int
    snapshot_id: str
    include_snapshot_id: bool = False

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1 and self.total > 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "items": self.items,
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "totalPages": self.total_pages,
            },
        }
        if self.include_snapshot_id:
            result["_snapshotId"] = self.snapshot_id
        return result


@dataclass(frozen=True)
class OffsetWindow:
    """A slice of a collection addressed by offset."""

    items: list[Any]
    offset: int
    limit: int
    total: int
    snapshot_id: str
    include_snapshot_id: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "items": self.items,
            "offset": self.offset,
            "limit": self.limit,
            "total": self.total,
        }
        if self.include_snapshot_id:
            result["_snapshotId"] = self.snapshot_id
        return result


@dataclass(frozen=True)
class CursorPage:
    """A cursor window and the tokens to move away from it.

    ``next_cursor`` / ``prev_cursor`` are set only when a further page
    exists in that direction.
    """

    items: list[Any]
    has_more: bool
    has_prev: bool
    limit: int
    total: int
    start_index: int
    snapshot_id: str
    next_cursor: str | None = None
    prev_cursor: str | None = None
    include_snapshot_id: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"items": self.items}
        if self.next_cursor is not None:
            result["nextCursor"] = self.next_cursor
        if self.prev_cursor is not None:
            result["prevCursor"] = self.prev_cursor
        result["hasMore"] = self.has_more
        result["hasPrev"] = self.has_prev
        if self.include_snapshot_id:
            result["_snapshotId"] = self.snapshot_id
        return result

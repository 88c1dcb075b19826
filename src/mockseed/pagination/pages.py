"""Page-number and offset windows over a snapshot."""

from __future__ import annotations

import math

from mockseed.pagination.base import BasePaginationManager
from mockseed.pagination.results import OffsetWindow, PageWindow
from mockseed.providers import ItemProvider


class PagePaginationManager(BasePaginationManager):
    """Slices snapshots by ``(page, limit)`` or ``(offset, limit)``."""

    def get_paged_response(
        self,
        provider: ItemProvider,
        *,
        page: int = 1,
        limit: int | None = None,
        total: int | None = None,
        seed: str | int | None = None,
        snapshot_id: str | None = None,
        cache: bool | None = None,
        ttl: float | None = None,
    ) -> PageWindow:
        """Return page ``page`` (1-based) of the collection.

        Pages past the end come back with no items rather than an error.
        """
        seed = self.default_seed(provider, seed)
        limit = self.normalize_limit(limit)
        page = max(page, 1)
        snapshot = self.resolve_snapshot(
            provider, seed, total, snapshot_id=snapshot_id, cache=cache, ttl=ttl
        )

        start = min((page - 1) * limit, snapshot.total)
        end = min(start + limit, snapshot.total)
        return PageWindow(
            items=self.build_items(provider, snapshot, start, end, seed),
            page=page,
            limit=limit,
            total=snapshot.total,
            total_pages=math.ceil(snapshot.total / limit),
            snapshot_id=snapshot.id,
            include_snapshot_id=self.config.include_snapshot_id,
        )

    def get_offset_response(
        self,
        provider: ItemProvider,
        *,
        offset: int = 0,
        limit: int | None = None,
        total: int | None = None,
        seed: str | int | None = None,
        snapshot_id: str | None = None,
        cache: bool | None = None,
        ttl: float | None = None,
    ) -> OffsetWindow:
        """Return ``limit`` items starting at position ``offset``."""
        seed = self.default_seed(provider, seed)
        limit = self.normalize_limit(limit)
        snapshot = self.resolve_snapshot(
            provider, seed, total, snapshot_id=snapshot_id, cache=cache, ttl=ttl
        )

        start = min(max(offset, 0), snapshot.total)
        end = min(start + limit, snapshot.total)
        return OffsetWindow(
            items=self.build_items(provider, snapshot, start, end, seed),
            offset=start,
            limit=limit,
            total=snapshot.total,
            snapshot_id=snapshot.id,
            include_snapshot_id=self.config.include_snapshot_id,
        )

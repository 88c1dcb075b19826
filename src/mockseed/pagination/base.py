"""Snapshot resolution and item materialisation shared by the managers."""

from __future__ import annotations

from typing import Any

import structlog

from mockseed.config import MockPaginationConfig
from mockseed.pagination.snapshots import PaginationSnapshot, SnapshotStore
from mockseed.providers import ItemProvider

log = structlog.get_logger()


def item_seed(seed: str | int, item_id: str | int) -> str:
    """Seed an item body from its identifier so it is the same on every page."""
    return f"{seed}-{item_id}"


class BasePaginationManager:
    """Common plumbing for page, offset and cursor windows."""

    def __init__(
        self,
        store: SnapshotStore,
        config: MockPaginationConfig | None = None,
    ) -> None:
        self.store = store
        self.config = config or store.config

    def resolve_snapshot(
        self,
        provider: ItemProvider,
        seed: str | int,
        total: int | None = None,
        *,
        snapshot_id: str | None = None,
        cache: bool | None = None,
        ttl: float | None = None,
    ) -> PaginationSnapshot:
        """Resume a snapshot by handle when it is still live, else get one by seed."""
        if snapshot_id:
            existing = self.store.get_by_id(snapshot_id)
            if existing is not None and existing.model_name == provider.get_model_name():
                return existing
            log.debug("snapshot handle not usable", snapshot_id=snapshot_id)
        return self.store.get_or_create(provider, seed, total, cache=cache, ttl=ttl)

    def build_items(
        self,
        provider: ItemProvider,
        snapshot: PaginationSnapshot,
        start: int,
        end: int,
        seed: str | int,
    ) -> list[Any]:
        """Generate the items at snapshot positions ``start`` up to ``end``."""
        return [
            provider.generate_item_with_id(item_id, start + offset, item_seed(seed, item_id))
            for offset, item_id in enumerate(snapshot.item_ids[start:end])
        ]

    def default_seed(self, provider: ItemProvider, seed: str | int | None) -> str | int:
        return provider.get_model_name() if seed is None else seed

    def normalize_limit(self, limit: int | None) -> int:
        if limit is None or limit < 1:
            return self.config.default_limit
        return limit

"""Snapshot store: stable identifier lists for stateless pagination.

A snapshot fixes which identifiers a (model, seed) collection contains and
in what order. Item bodies are still generated per request from
``(id, index, seed)``; only membership and order are cached.
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from mockseed.config import MockPaginationConfig

if TYPE_CHECKING:
    from mockseed.providers import ItemProvider

log = structlog.get_logger()

Clock = Callable[[], float]


def generate_snapshot_id() -> str:
    """Opaque snapshot handle."""
    return f"snap-{uuid.uuid4().hex[:16]}"


@dataclass
class PaginationSnapshot:
    """Ordered identifiers of one generated collection."""

    id: str
    model_name: str
    seed: str
    total: int
    item_ids: tuple[str | int, ...]
    id_field_name: str
    created_at: float
    expires_at: float | None = None
    accessed_at: float = 0.0
    _positions: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._positions = {}
        for position, item_id in enumerate(self.item_ids):
            self._positions.setdefault(str(item_id), position)

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def index_of(self, item_id: str | int) -> int | None:
        """Position of an identifier, compared by string form."""
        return self._positions.get(str(item_id))


class SnapshotStore:
    """Snapshots keyed by ``model:seed``, with TTL expiry.

    Thread-safe. Concurrent misses for the same key may both build a
    snapshot; the builds are identical, so whichever write lands is kept.
    """

    def __init__(
        self,
        config: MockPaginationConfig | None = None,
        *,
        clock: Clock = time.time,
        sweep_interval: float | None = None,
    ) -> None:
        self.config = config or MockPaginationConfig()
        self.clock = clock
        self._snapshots: dict[str, PaginationSnapshot] = {}
        self._keys_by_id: dict[str, str] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None
        if sweep_interval is not None:
            self.start_sweeper(sweep_interval)

    @staticmethod
    def key(model_name: str, seed: str | int) -> str:
        return f"{model_name}:{seed}"

    def get_or_create(
        self,
        provider: ItemProvider,
        seed: str | int,
        total: int | None = None,
        *,
        cache: bool | None = None,
        ttl: float | None = None,
    ) -> PaginationSnapshot:
        """Return the live snapshot for ``provider``'s model and ``seed``, building it if needed.

        Args:
            provider: Source of identifiers for the model
            seed: Collection seed
            total: Number of items (defaults to ``config.default_total``)
            cache: Keep the snapshot for later requests (defaults to ``config.cache``)
            ttl: Snapshot lifetime in seconds (defaults to ``config.cache_ttl``)
        """
        model_name = provider.get_model_name()
        key = self.key(model_name, seed)
        use_cache = self.config.cache if cache is None else cache
        now = self.clock()

        if use_cache:
            with self._lock:
                existing = self._snapshots.get(key)
                if existing is not None and not existing.is_expired(now):
                    existing.accessed_at = now
                    return existing

        total = self.config.default_total if total is None else max(total, 0)
        lifetime = self.config.cache_ttl if ttl is None else ttl
        snapshot = PaginationSnapshot(
            id=generate_snapshot_id(),
            model_name=model_name,
            seed=str(seed),
            total=total,
            item_ids=tuple(provider.generate_id(i, seed) for i in range(total)),
            id_field_name=provider.get_id_field_name(),
            created_at=now,
            expires_at=now + lifetime if use_cache else None,
            accessed_at=now,
        )

        if use_cache:
            with self._lock:
                previous = self._snapshots.get(key)
                if previous is not None:
                    self._keys_by_id.pop(previous.id, None)
                self._snapshots[key] = snapshot
                self._keys_by_id[snapshot.id] = key
            log.debug("snapshot created", model=model_name, seed=str(seed), total=total)
        return snapshot

    def get_by_id(self, snapshot_id: str) -> PaginationSnapshot | None:
        """Look up a live snapshot by its handle."""
        now = self.clock()
        with self._lock:
            key = self._keys_by_id.get(snapshot_id)
            snapshot = self._snapshots.get(key) if key else None
            if snapshot is None:
                return None
            if snapshot.is_expired(now):
                self._drop(key)
                return None
            snapshot.accessed_at = now
            return snapshot

    def cleanup(self) -> int:
        """Remove expired snapshots and return how many were removed."""
        now = self.clock()
        with self._lock:
            expired = [key for key, snap in self._snapshots.items() if snap.is_expired(now)]
            for key in expired:
                self._drop(key)
        if expired:
            log.debug("expired snapshots removed", count=len(expired))
        return len(expired)

    def _drop(self, key: str) -> None:
        snapshot = self._snapshots.pop(key, None)
        if snapshot is not None:
            self._keys_by_id.pop(snapshot.id, None)

    def clear(self) -> None:
        with self._lock:
            self._snapshots.clear()
            self._keys_by_id.clear()

    def reset(self) -> None:
        """Drop every snapshot so previously seen seeds regenerate."""
        self.clear()
        log.info("snapshot store reset")

    @property
    def size(self) -> int:
        return len(self._snapshots)

    def __len__(self) -> int:
        return self.size

    def start_sweeper(self, interval: float) -> None:
        """Run ``cleanup`` every ``interval`` seconds on a daemon thread."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()

        def sweep() -> None:
            while not self._stop.wait(interval):
                self.cleanup()

        self._sweeper = threading.Thread(
            target=sweep, name="mockseed-snapshot-sweeper", daemon=True
        )
        self._sweeper.start()

    def destroy(self) -> None:
        """Stop the sweeper and drop everything."""
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)
            self._sweeper = None
        self.clear()

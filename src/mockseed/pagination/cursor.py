"""Cursor encoding and cursor-addressed windows.

Cursors are base64url (unpadded) JSON payloads naming an anchor item.
Decoding also accepts two older token shapes, tried in order:

1. structured: ``{"lastId", "direction", "snapshotId"?, "timestamp", ...}``
2. legacy: standard base64 of a decimal index, read as ``legacy-<index>``
3. raw: a bare identifier (digits, or any space-free token of 8+ chars)

A token that matches none of them, or whose payload has expired, is
treated as no cursor at all.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Callable
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from mockseed.config import MockCursorConfig, MockPaginationConfig
from mockseed.errors import CursorDecodeError
from mockseed.pagination.base import BasePaginationManager
from mockseed.pagination.results import CursorPage
from mockseed.pagination.snapshots import PaginationSnapshot, SnapshotStore
from mockseed.providers import ItemProvider

log = structlog.get_logger()

LEGACY_PREFIX = "legacy-"
MIN_RAW_CURSOR_LENGTH = 8

Direction = Literal["forward", "backward"]
CursorKind = Literal["structured", "legacy", "raw"]


class CursorPayload(BaseModel):
    """Decoded cursor contents. ``timestamp`` is epoch milliseconds."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    last_id: StrictStr | StrictInt = Field(alias="lastId")
    direction: Direction
    snapshot_id: str | None = Field(default=None, alias="snapshotId")
    timestamp: int
    sort_field: str | None = Field(default=None, alias="sortField")
    sort_order: Literal["asc", "desc"] | None = Field(default=None, alias="sortOrder")
    kind: CursorKind = Field(default="structured", exclude=True)

    @property
    def legacy_index(self) -> int | None:
        if self.kind != "legacy" or not isinstance(self.last_id, str):
            return None
        return int(self.last_id.removeprefix(LEGACY_PREFIX))


def encode_cursor(payload: CursorPayload) -> str:
    """Serialize a payload to an opaque, URL-safe token."""
    data = payload.model_dump(by_alias=True, exclude_none=True)
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_structured(token: str, now_ms: int) -> CursorPayload:
    try:
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
        data = json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise CursorDecodeError("not a structured cursor") from e
    if not isinstance(data, dict):
        raise CursorDecodeError("structured cursor payload is not an object")
    data.pop("kind", None)
    try:
        return CursorPayload.model_validate(data)
    except ValueError as e:
        raise CursorDecodeError("structured cursor payload is incomplete") from e


def decode_legacy(token: str, now_ms: int) -> CursorPayload:
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except ValueError as e:
        raise CursorDecodeError("not a legacy cursor") from e
    if not (decoded.isascii() and decoded.isdigit()) or decoded != str(int(decoded)):
        raise CursorDecodeError("legacy cursor is not an index")
    return CursorPayload(
        last_id=f"{LEGACY_PREFIX}{int(decoded)}",
        direction="forward",
        timestamp=now_ms,
        kind="legacy",
    )


def decode_raw(token: str, now_ms: int) -> CursorPayload:
    if token.isascii() and token.isdigit() and token == str(int(token)):
        return CursorPayload(last_id=int(token), direction="forward", timestamp=now_ms, kind="raw")
    if len(token) >= MIN_RAW_CURSOR_LENGTH and not any(c.isspace() for c in token):
        return CursorPayload(last_id=token, direction="forward", timestamp=now_ms, kind="raw")
    raise CursorDecodeError("token is not usable as a raw identifier")


CursorDecoder = Callable[[str, int], CursorPayload]

CURSOR_DECODERS: tuple[CursorDecoder, ...] = (decode_structured, decode_legacy, decode_raw)


def decode_cursor(token: str, now_ms: int) -> CursorPayload | None:
    """Decode with the first decoder that accepts the token; None when none does."""
    if not token:
        return None
    for decoder in CURSOR_DECODERS:
        try:
            return decoder(token, now_ms)
        except CursorDecodeError:
            continue
    log.debug("cursor not recognised", cursor=token[:32])
    return None


def is_cursor_expired(payload: CursorPayload, config: MockCursorConfig, now_ms: int) -> bool:
    if not config.enable_expiry:
        return False
    return now_ms - payload.timestamp > config.cursor_ttl * 1000


def estimate_start(
    payload: CursorPayload,
    snapshot: PaginationSnapshot,
    limit: int,
    backward: bool,
) -> int:
    """Approximate a lost anchor's position from how far into the snapshot's life it was issued.

    Best effort only: the result is a plausible position, not the anchor's.
    """
    age_ms = (snapshot.accessed_at - snapshot.created_at) * 1000
    if age_ms <= 0:
        ratio = 0.0
    else:
        ratio = (payload.timestamp - snapshot.created_at * 1000) / age_ms
        ratio = min(max(ratio, 0.0), 1.0)
    estimate = round(ratio * snapshot.total)
    if backward:
        estimate = max(0, estimate - limit)
    return min(max(estimate, 0), snapshot.total)


class CursorPaginationManager(BasePaginationManager):
    """Cursor windows anchored on item identifiers."""

    def __init__(
        self,
        store: SnapshotStore,
        config: MockPaginationConfig | None = None,
        cursor_config: MockCursorConfig | None = None,
    ) -> None:
        super().__init__(store, config)
        self.cursor_config = cursor_config or MockCursorConfig()

    def now_ms(self) -> int:
        return int(self.store.clock() * 1000)

    def get_cursor_page(
        self,
        provider: ItemProvider,
        *,
        cursor: str | None = None,
        limit: int | None = None,
        total: int | None = None,
        seed: str | int | None = None,
        is_backward: bool = False,
        snapshot_id: str | None = None,
        cache: bool | None = None,
        ttl: float | None = None,
    ) -> CursorPage:
        """Return the window after (or, going backward, before) the cursor's anchor.

        Without a usable cursor the window starts at the beginning, or at
        the last window when ``is_backward`` is set.
        """
        seed = self.default_seed(provider, seed)
        limit = self.normalize_limit(limit)
        now_ms = self.now_ms()

        payload = decode_cursor(cursor, now_ms) if cursor else None
        if payload is not None and is_cursor_expired(payload, self.cursor_config, now_ms):
            log.debug("cursor expired", model=provider.get_model_name())
            payload = None

        snapshot = self.resolve_snapshot(
            provider,
            seed,
            total,
            snapshot_id=snapshot_id or (payload.snapshot_id if payload else None),
            cache=cache,
            ttl=ttl,
        )
        start = self._start_index(payload, snapshot, limit, is_backward)
        end = min(start + limit, snapshot.total)
        page_ids = snapshot.item_ids[start:end]
        has_more = end < snapshot.total
        has_prev = start > 0

        next_cursor = prev_cursor = None
        if page_ids and has_more:
            next_cursor = self._cursor_for(page_ids[-1], "forward", snapshot, now_ms)
        if page_ids and has_prev:
            prev_cursor = self._cursor_for(page_ids[0], "backward", snapshot, now_ms)

        return CursorPage(
            items=self.build_items(provider, snapshot, start, end, seed),
            has_more=has_more,
            has_prev=has_prev,
            limit=limit,
            total=snapshot.total,
            start_index=start,
            snapshot_id=snapshot.id,
            next_cursor=next_cursor,
            prev_cursor=prev_cursor,
            include_snapshot_id=self.config.include_snapshot_id,
        )

    def _start_index(
        self,
        payload: CursorPayload | None,
        snapshot: PaginationSnapshot,
        limit: int,
        is_backward: bool,
    ) -> int:
        last_window = max(0, snapshot.total - limit)
        if payload is None:
            return last_window if is_backward else 0

        legacy_index = payload.legacy_index
        if legacy_index is not None:
            return min(legacy_index, snapshot.total)

        anchor = snapshot.index_of(payload.last_id)
        if anchor is not None:
            direction = "backward" if is_backward else payload.direction
            return anchor + 1 if direction == "forward" else max(0, anchor - limit)

        if payload.kind == "structured":
            log.debug("cursor anchor missing, estimating", last_id=str(payload.last_id))
            return estimate_start(payload, snapshot, limit, is_backward)
        return last_window if is_backward else 0

    def _cursor_for(
        self,
        item_id: str | int,
        direction: Direction,
        snapshot: PaginationSnapshot,
        now_ms: int,
    ) -> str:
        sort_info = self.cursor_config.include_sort_info
        return encode_cursor(
            CursorPayload(
                last_id=item_id,
                direction=direction,
                snapshot_id=snapshot.id,
                timestamp=now_ms,
                sort_field=snapshot.id_field_name if sort_info else None,
                sort_order="asc" if sort_info else None,
            )
        )

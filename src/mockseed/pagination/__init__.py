"""Snapshot-backed pagination over generated collections."""

from mockseed.pagination.base import BasePaginationManager, item_seed
from mockseed.pagination.cursor import (
    CURSOR_DECODERS,
    CursorPaginationManager,
    CursorPayload,
    decode_cursor,
    encode_cursor,
    is_cursor_expired,
)
from mockseed.pagination.pages import PagePaginationManager
from mockseed.pagination.request import PaginationRequest
from mockseed.pagination.responses import build_cursor_response, build_page_response
from mockseed.pagination.results import CursorPage, OffsetWindow, PageWindow
from mockseed.pagination.snapshots import PaginationSnapshot, SnapshotStore

__all__ = [
    "BasePaginationManager",
    "CURSOR_DECODERS",
    "CursorPage",
    "CursorPaginationManager",
    "CursorPayload",
    "OffsetWindow",
    "PagePaginationManager",
    "PageWindow",
    "PaginationRequest",
    "PaginationSnapshot",
    "SnapshotStore",
    "build_cursor_response",
    "build_page_response",
    "decode_cursor",
    "encode_cursor",
    "is_cursor_expired",
    "item_seed",
]

"""Deterministic pseudo-random helpers.

Everything here is a pure function of its seed. The same seed always yields
the same stream, so generated mock data is reproducible across processes and
restarts. Nothing in this module is suitable for security purposes.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, TypeVar

T = TypeVar("T")

_MASK_31 = 0x7FFFFFFF
_PERIOD = 2**31

CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
NANOID_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz_-"
HEX_ALPHABET = "0123456789abcdef"

PAGINATION_PARAMS = frozenset(
    {"page", "limit", "page_size", "cursor", "offset", "size", "page_number"}
)

DEFAULT_REQUEST_SEED = 42


def hash_string(value: str) -> int:
    """Hash a string to a non-negative 32-bit integer.

    Uses the classic ``hash * 31 + char`` rolling hash with signed 32-bit
    wraparound, returning the absolute value.
    """
    h = 0
    for char in value:
        h = ((h << 5) - h + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def seeded_random(seed: int) -> Iterator[float]:
    """Yield an endless linear-congruential stream of floats in [0, 1)."""
    state = seed & _MASK_31
    while True:
        state = (state * 1103515245 + 12345) & _MASK_31
        yield state / _PERIOD


def to_seed(seed: str | int) -> int:
    """Normalize a string or integer seed to an integer."""
    if isinstance(seed, bool):
        return int(seed)
    if isinstance(seed, int):
        return seed
    return hash_string(seed)


class SeededRandom:
    """Reproducible random stream with convenience draws.

    String seeds are hashed first, so ``SeededRandom("users-3")`` is as
    stable as an integer seed.
    """

    def __init__(self, seed: str | int) -> None:
        self.seed = to_seed(seed)
        self._stream = seeded_random(self.seed)

    def next(self) -> float:
        """Draw a float in [0, 1)."""
        return next(self._stream)

    def next_int(self, low: int, high: int) -> int:
        """Draw an integer in [low, high], both ends inclusive."""
        if high < low:
            low, high = high, low
        return int(self.next() * (high - low + 1)) + low

    def pick(self, items: Sequence[T]) -> T:
        """Pick one element."""
        if not items:
            raise IndexError("cannot pick from an empty sequence")
        return items[int(self.next() * len(items))]

    def weighted_pick(self, items: Sequence[T], weights: Sequence[float]) -> T:
        """Pick one element with probability proportional to its weight."""
        if not items or len(items) != len(weights):
            raise ValueError("items and weights must be non-empty and the same length")
        total = sum(weights)
        if total <= 0:
            return self.pick(items)
        target = self.next() * total
        running = 0.0
        for item, weight in zip(items, weights, strict=True):
            running += weight
            if target < running:
                return item
        return items[-1]

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        return self.next() < probability

    def string(self, length: int, alphabet: str) -> str:
        """Draw a fixed-length string over an alphabet."""
        return "".join(self.pick(alphabet) for _ in range(length))

    def uuid(self) -> str:
        """UUID v4 shaped string."""
        chars = []
        for i in range(36):
            if i in (8, 13, 18, 23):
                chars.append("-")
            elif i == 14:
                chars.append("4")
            elif i == 19:
                chars.append(HEX_ALPHABET[self.next_int(8, 11)])
            else:
                chars.append(HEX_ALPHABET[self.next_int(0, 15)])
        return "".join(chars)

    def ulid(self) -> str:
        """ULID shaped string (26 Crockford base32 characters)."""
        return self.string(26, CROCKFORD_ALPHABET)

    def nanoid(self, size: int = 21) -> str:
        """NanoID shaped string."""
        return self.string(size, NANOID_ALPHABET)

    def hash_id(self, length: int = 8) -> str:
        """Short lowercase hex identifier."""
        return self.string(length, HEX_ALPHABET)


def derive_seed(payload: Mapping[str, Any] | None) -> int:
    """Derive a stable seed from a request payload.

    Pagination parameters are dropped first so that every page of the same
    query is generated from the same dataset.
    """
    if not payload:
        return DEFAULT_REQUEST_SEED
    body = {k: v for k, v in payload.items() if k not in PAGINATION_PARAMS}
    if not body:
        return DEFAULT_REQUEST_SEED
    canonical = json.dumps(body, sort_keys=True, separators=(",", ":"), default=str)
    return hash_string(canonical) or DEFAULT_REQUEST_SEED

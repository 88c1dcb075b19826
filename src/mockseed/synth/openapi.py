"""Value synthesis for JSON-Schema style OpenAPI nodes."""

from __future__ import annotations

import base64
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from mockseed.rng import SeededRandom

log = structlog.get_logger()

BASE_DATE = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

_INTEGER_TYPES = frozenset({"integer"})
_NUMBER_TYPES = frozenset({"number"})


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def ref_name(ref: str) -> str:
    """Return the component name a ``$ref`` points at."""
    return ref.rsplit("/", 1)[-1]


def schema_type(schema: Mapping[str, Any]) -> str | None:
    """Resolve the effective type of a schema node.

    Handles OpenAPI 3.1 type lists (``["string", "null"]``) and untyped
    nodes that only declare ``properties`` or ``items``.
    """
    declared = schema.get("type")
    if isinstance(declared, list):
        declared = next((t for t in declared if t != "null"), None)
    if declared:
        return str(declared)
    if "properties" in schema or "additionalProperties" in schema:
        return "object"
    if "items" in schema:
        return "array"
    return None


class OpenAPISynthesizer:
    """Generate values for OpenAPI schema nodes.

    Output is a pure function of ``(schema, seed)``: the same call always
    returns an equal value. Unresolvable references and nodes beyond
    ``max_depth`` degrade to ``{}`` or ``[]`` instead of raising.
    """

    def __init__(
        self,
        schemas: Mapping[str, Any] | None = None,
        *,
        max_depth: int = 5,
        optional_omit_rate: float = 0.5,
    ) -> None:
        self.schemas: Mapping[str, Any] = schemas or {}
        self.max_depth = max_depth
        self.optional_omit_rate = optional_omit_rate

    def generate(self, schema: Mapping[str, Any], seed: int = 1) -> Any:
        """Generate a value for ``schema``."""
        return self._generate(schema, seed, 0, frozenset())

    def _generate(
        self,
        schema: Mapping[str, Any],
        seed: int,
        depth: int,
        expanding: frozenset[tuple[str, int]],
    ) -> Any:
        if not isinstance(schema, Mapping):
            return None

        if "$ref" in schema:
            ref = schema["$ref"]
            key = (ref, depth)
            if key in expanding:
                return {}
            target = self.schemas.get(ref_name(ref))
            if target is None:
                log.debug("unresolved schema reference", ref=ref)
                return {}
            return self._generate(target, seed, depth, expanding | {key})

        kind = schema_type(schema)
        if depth > self.max_depth and kind in ("object", "array", None):
            return [] if kind == "array" else {}

        if "example" in schema:
            return schema["example"]
        examples = schema.get("examples")
        if isinstance(examples, list) and examples:
            return examples[0]
        if "const" in schema:
            return schema["const"]
        enum = schema.get("enum")
        if isinstance(enum, list) and enum:
            return enum[0]

        rng = SeededRandom(seed)

        for combinator in ("oneOf", "anyOf"):
            branches = schema.get(combinator)
            if isinstance(branches, list) and branches:
                return self._generate(rng.pick(branches), seed, depth, expanding)

        branches = schema.get("allOf")
        if isinstance(branches, list) and branches:
            merged: dict[str, Any] = {}
            for offset, branch in enumerate(branches):
                value = self._generate(branch, seed + offset, depth, expanding)
                if isinstance(value, dict):
                    merged.update(value)
            return merged

        if kind == "string":
            return self._string(schema, seed, rng)
        if kind in _INTEGER_TYPES or kind in _NUMBER_TYPES:
            return self._number(schema, kind, rng)
        if kind == "boolean":
            return rng.next() > 0.5
        if kind == "null":
            return None
        if kind == "array":
            return self._array(schema, seed, depth, expanding, rng)
        if kind == "object":
            return self._object(schema, seed, depth, expanding, rng)
        return None

    def _string(self, schema: Mapping[str, Any], seed: int, rng: SeededRandom) -> str:
        fmt = schema.get("format")
        n = rng.next_int(1, 1000)

        if fmt == "date":
            value = (BASE_DATE - timedelta(days=rng.next_int(0, 365))).strftime("%Y-%m-%d")
        elif fmt == "date-time":
            moment = BASE_DATE - timedelta(days=rng.next_int(0, 365), minutes=rng.next_int(0, 1439))
            value = moment.strftime("%Y-%m-%dT%H:%M:%SZ")
        elif fmt == "time":
            value = f"{rng.next_int(0, 23):02d}:{rng.next_int(0, 59):02d}:00"
        elif fmt == "email":
            value = f"user{n}@example.com"
        elif fmt == "uuid":
            value = rng.uuid()
        elif fmt in ("uri", "url", "uri-reference"):
            value = f"https://example.com/resource/{n}"
        elif fmt == "hostname":
            value = f"host{n}.example.com"
        elif fmt == "ipv4":
            value = f"192.168.{rng.next_int(0, 255)}.{rng.next_int(1, 254)}"
        elif fmt == "ipv6":
            value = f"2001:db8::{rng.hash_id(4)}"
        elif fmt == "byte":
            value = base64.b64encode(f"mock_{seed}".encode()).decode("ascii")
        elif fmt == "binary":
            value = f"binary_data_{n}"
        elif fmt == "password":
            value = "********"
        else:
            value = f"mock_string_{n}"

        max_length = schema.get("maxLength")
        if isinstance(max_length, int) and max_length >= 0:
            value = value[:max_length]
        min_length = schema.get("minLength")
        if isinstance(min_length, int) and len(value) < min_length:
            value = value.ljust(min_length, "x")
        return value

    def _number(self, schema: Mapping[str, Any], kind: str, rng: SeededRandom) -> int | float:
        minimum = schema.get("minimum")
        if minimum is None and _is_number(schema.get("exclusiveMinimum")):
            minimum = schema["exclusiveMinimum"] + (1 if kind == "integer" else 0.01)
        minimum = 0 if minimum is None else minimum
        maximum = schema.get("maximum")
        if maximum is None and _is_number(schema.get("exclusiveMaximum")):
            maximum = schema["exclusiveMaximum"] - (1 if kind == "integer" else 0.01)
        if maximum is None:
            maximum = max(minimum, 0) + 1000
        if maximum < minimum:
            maximum = minimum

        value = rng.next() * (maximum - minimum) + minimum
        if kind == "integer":
            return min(int(value), int(maximum))
        return round(value, 2)

    def _array(
        self,
        schema: Mapping[str, Any],
        seed: int,
        depth: int,
        expanding: frozenset[tuple[str, int]],
        rng: SeededRandom,
    ) -> list[Any]:
        items = schema.get("items") or {}
        min_items = schema.get("minItems", 1)
        max_items = schema.get("maxItems", 1 if depth > 3 else 3)
        if max_items < min_items:
            max_items = min_items
        count = rng.next_int(min_items, max_items)
        return [self._generate(items, seed + i + 1, depth + 1, expanding) for i in range(count)]

    def _object(
        self,
        schema: Mapping[str, Any],
        seed: int,
        depth: int,
        expanding: frozenset[tuple[str, int]],
        rng: SeededRandom,
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        properties = schema.get("properties") or {}
        required = set(schema.get("required") or ())

        prop_seed = seed
        for name, prop in properties.items():
            prop_seed += 1
            if name not in required and rng.chance(self.optional_omit_rate):
                continue
            result[name] = self._generate(prop, prop_seed, depth + 1, expanding)

        extra = schema.get("additionalProperties")
        if isinstance(extra, Mapping) and not properties:
            for i in range(1, 4):
                result[f"key{i}"] = self._generate(extra, seed + i, depth + 1, expanding)
        elif extra is True and not properties:
            result["key1"] = "value1"
            result["key2"] = "value2"
        return result

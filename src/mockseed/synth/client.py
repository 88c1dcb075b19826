"""Value synthesis for models scanned out of generated client packages.

Scanned models often carry unhelpful types (``object``, ``any``), so field
names drive most of the generation through an ordered heuristic table.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from mockseed.config import MockIdConfig
from mockseed.ids import generate_id_value, is_id_field
from mockseed.models import ModelField, ModelSchema
from mockseed.rng import SeededRandom

log = structlog.get_logger()

BASE_DATE = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)

FIRST_NAMES = ("John", "Jane", "Mike", "Sarah", "Alex", "Emma", "Noah", "Olivia")
EMAIL_USERS = ("user", "test", "mock", "admin")
EMAIL_DOMAINS = ("example.com", "test.com", "mock.io")
STATUSES = ("ACTIVE", "INACTIVE", "PENDING", "COMPLETED")
CITIES = ("Seoul", "Busan", "Berlin", "Lisbon", "Austin", "Toronto")
COUNTRIES = ("KR", "US", "JP", "DE")
CATEGORIES = ("TYPE_A", "TYPE_B", "TYPE_C")
TAGS = ("new", "popular", "sale", "featured", "limited")

_BOOLEAN_PREFIX = re.compile(r"^(is|has|can|should|will)([A-Z_]|$)")

Rule = tuple[Callable[[str, str], bool], Callable[[SeededRandom, str], Any]]


def iso_timestamp(rng: SeededRandom) -> str:
    """A timestamp within a year before (or a month after) the fixed base date."""
    moment = BASE_DATE + timedelta(days=rng.next_int(-365, 30), minutes=rng.next_int(0, 1439))
    return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def _contains(*needles: str) -> Callable[[str, str], bool]:
    return lambda lower, _name: any(n in lower for n in needles)


def _equals(*names: str) -> Callable[[str, str], bool]:
    return lambda lower, _name: lower in names


def _is_boolean_name(_lower: str, name: str) -> bool:
    return bool(_BOOLEAN_PREFIX.match(name))


def _is_date_name(lower: str, _name: str) -> bool:
    return (
        any(n in lower for n in ("date", "time", "created", "updated", "modified"))
        or lower.endswith("at")
    )


# Checked in order; the first matching rule produces the value.
NAME_RULES: tuple[Rule, ...] = (
    (
        _contains("email", "mail"),
        lambda rng, _n: f"{rng.pick(EMAIL_USERS)}{rng.next_int(1, 999)}@{rng.pick(EMAIL_DOMAINS)}",
    ),
    (
        lambda lower, _n: lower == "name" or any(
            n in lower for n in ("username", "firstname", "lastname", "fullname")
        ),
        lambda rng, _n: rng.pick(FIRST_NAMES),
    ),
    (
        _contains("phone", "mobile", "tel"),
        lambda rng, _n: f"010-{rng.next_int(1000, 9999)}-{rng.next_int(1000, 9999)}",
    ),
    (
        _contains("image", "avatar", "photo", "thumbnail", "picture"),
        lambda rng, _n: f"https://picsum.photos/seed/{rng.next_int(1, 1000)}/200/200",
    ),
    (
        _contains("url", "link", "href"),
        lambda rng, name: f"https://example.com/{name}/{rng.next_int(1, 1000)}",
    ),
    (_is_date_name, lambda rng, _n: iso_timestamp(rng)),
    (
        _contains("description", "content", "body", "text", "summary"),
        lambda rng, name: f"Mock {name} text #{rng.next_int(1, 100)}",
    ),
    (
        _contains("title", "subject", "headline"),
        lambda rng, name: f"Sample {name} #{rng.next_int(1, 100)}",
    ),
    (_contains("status", "state"), lambda rng, _n: rng.pick(STATUSES)),
    (_equals("page"), lambda _rng, _n: 1),
    (_equals("limit", "size", "pagesize"), lambda _rng, _n: 20),
    (_equals("total", "totalcount", "totalitems"), lambda rng, _n: rng.next_int(50, 500)),
    (_equals("totalpages"), lambda rng, _n: rng.next_int(3, 25)),
    (_contains("price", "cost", "fee"), lambda rng, _n: rng.next_int(1000, 100000)),
    (
        _contains("count", "quantity", "amount", "num"),
        lambda rng, _n: rng.next_int(0, 100),
    ),
    (_is_boolean_name, lambda rng, _n: rng.next() > 0.5),
    (
        _contains("address", "street"),
        lambda rng, _n: f"{rng.next_int(1, 500)} Main Street",
    ),
    (_contains("city"), lambda rng, _n: rng.pick(CITIES)),
    (_contains("country"), lambda rng, _n: rng.pick(COUNTRIES)),
    (_contains("zipcode", "postal"), lambda rng, _n: str(rng.next_int(10000, 99999))),
    (_contains("code"), lambda rng, _n: f"CODE-{rng.next_int(1000, 9999)}"),
    (_contains("tag", "label"), lambda rng, _n: rng.pick(TAGS)),
    (_contains("type", "category", "kind"), lambda rng, _n: rng.pick(CATEGORIES)),
    (
        _contains("version"),
        lambda rng, _n: f"{rng.next_int(1, 10)}.{rng.next_int(0, 9)}.{rng.next_int(0, 99)}",
    ),
    (_contains("token", "key", "secret"), lambda rng, _n: rng.uuid()),
)

_NUMERIC_WORDS = (
    "count", "num", "amount", "size", "total", "views", "likes",
    "price", "age", "quantity", "index", "order",
)
_BOOLEAN_WORDS = ("enabled", "active", "visible", "valid")


def infer_value_by_field_name(
    field_name: str,
    rng: SeededRandom,
    index: int = 0,
    id_config: MockIdConfig | None = None,
) -> Any:
    """Guess a realistic value from a field name alone.

    Returns None when no rule recognises the name.
    """
    id_config = id_config or MockIdConfig()
    if is_id_field(field_name, id_config):
        return generate_id_value(field_name, index, rng.hash_id(16), id_config)

    lower = field_name.lower()
    for matches, produce in NAME_RULES:
        if matches(lower, field_name):
            return produce(rng, field_name)
    return None


def infer_type_from_field_name(
    field_name: str,
    rng: SeededRandom,
    index: int = 0,
    id_config: MockIdConfig | None = None,
) -> Any:
    """Pick a value type for a loosely typed field from its name."""
    id_config = id_config or MockIdConfig()
    if is_id_field(field_name, id_config):
        return generate_id_value(field_name, index, rng.hash_id(16), id_config)

    lower = field_name.lower()
    if any(word in lower for word in _NUMERIC_WORDS):
        return rng.next_int(0, 1000)
    if _BOOLEAN_PREFIX.match(field_name) or any(word in lower for word in _BOOLEAN_WORDS):
        return rng.next() > 0.5
    if _is_date_name(lower, field_name):
        return iso_timestamp(rng)
    if any(word in lower for word in ("url", "link", "href")):
        return f"https://example.com/{field_name}/{rng.next_int(1, 1000)}"
    if any(word in lower for word in ("image", "thumbnail", "avatar", "photo", "picture")):
        return f"https://picsum.photos/seed/{rng.next_int(1, 1000)}/200/200"
    return f"mock-{field_name}-{rng.next_int(1, 1000)}"


def generate_value_by_type(
    type_name: str,
    field_name: str,
    rng: SeededRandom,
    index: int = 0,
    id_config: MockIdConfig | None = None,
) -> Any:
    """Generate a primitive value, preferring field-name heuristics."""
    inferred = infer_value_by_field_name(field_name, rng, index, id_config)
    if inferred is not None:
        return inferred

    kind = type_name.lower()
    if kind == "string":
        return f"mock-{field_name}-{rng.next_int(1, 1000)}"
    if kind in ("number", "int", "integer"):
        return rng.next_int(1, 1000)
    if kind in ("boolean", "bool"):
        return rng.next() > 0.5
    if kind == "date":
        return iso_timestamp(rng)
    if kind in ("unknown", "any", "object"):
        return infer_type_from_field_name(field_name, rng, index, id_config)
    return f"mock-{field_name}-{rng.next_int(1, 1000)}"


class SchemaSynthesizer:
    """Generate records for scanned client models.

    Nested model references recurse with a visited-model set and a depth
    limit; a model already on the current path, or one past ``max_depth``,
    becomes ``{}`` (``[]`` for array fields).
    """

    def __init__(
        self,
        models: Mapping[str, ModelSchema],
        id_config: MockIdConfig | None = None,
        *,
        max_depth: int = 5,
        optional_omit_rate: float = 0.3,
    ) -> None:
        self.models = models
        self.id_config = id_config or MockIdConfig()
        self.max_depth = max_depth
        self.optional_omit_rate = optional_omit_rate

    def generate_one(
        self, model_name: str, seed: str | int | None = None, index: int = 0
    ) -> dict[str, Any]:
        """Generate one record (or ``{"value": ...}`` for an enum model)."""
        return self._generate(model_name, seed, index, 0, frozenset())

    def generate_one_with_id(
        self,
        model_name: str,
        item_id: str | int,
        seed: str | int | None = None,
        index: int = 0,
    ) -> dict[str, Any]:
        """Generate a record and force its identifier to ``item_id``."""
        if seed is None:
            seed = f"{model_name}-{item_id}"
        item = self.generate_one(model_name, seed, index)
        id_field = self.find_id_field(model_name)
        item[id_field.output_key if id_field else "id"] = item_id
        return item

    def find_id_field(self, model_name: str) -> ModelField | None:
        """First field of the model whose name looks like an identifier."""
        schema = self.models.get(model_name)
        if schema is None:
            return None
        return next((f for f in schema.fields if is_id_field(f.name, self.id_config)), None)

    def _generate(
        self,
        model_name: str,
        seed: str | int | None,
        index: int,
        depth: int,
        visited: frozenset[str],
    ) -> dict[str, Any]:
        schema = self.models.get(model_name)
        if schema is None:
            log.debug("unknown model reference", model=model_name)
            return {}
        if schema.is_enum:
            rng = SeededRandom(seed if seed is not None else model_name)
            return {"value": rng.pick(schema.enum_values)}
        if depth > self.max_depth or model_name in visited:
            return {}

        visited = visited | {model_name}
        base_seed = seed if seed is not None else f"{model_name}-{index}"
        rng = SeededRandom(base_seed)
        result: dict[str, Any] = {}
        for model_field in schema.fields:
            if not model_field.required and rng.chance(self.optional_omit_rate):
                continue
            result[model_field.output_key] = self._field(
                model_field, rng, base_seed, index, depth, visited
            )
        return result

    def _field(
        self,
        model_field: ModelField,
        rng: SeededRandom,
        seed: str | int,
        index: int,
        depth: int,
        visited: frozenset[str],
    ) -> Any:
        ref = model_field.ref_type
        if ref:
            ref_schema = self.models.get(ref)
            if ref_schema is not None and ref_schema.is_enum:
                value = rng.pick(ref_schema.enum_values)
                return [value] if model_field.is_array else value
            if ref_schema is None or ref in visited or depth + 1 > self.max_depth:
                return [] if model_field.is_array else {}
            if model_field.is_array:
                count = rng.next_int(1, 3)
                return [
                    self._generate(ref, f"{seed}-{ref}-{index}-{i}", i, depth + 1, visited)
                    for i in range(count)
                ]
            return self._generate(ref, f"{seed}-{ref}-{index}", index, depth + 1, visited)

        if model_field.is_array:
            count = rng.next_int(1, 5)
            return [
                generate_value_by_type(model_field.type, model_field.name, rng, i, self.id_config)
                for i in range(count)
            ]
        return generate_value_by_type(
            model_field.type, model_field.name, rng, index, self.id_config
        )

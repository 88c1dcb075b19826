"""Value synthesis for Protobuf messages."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any

import structlog

from mockseed.rng import SeededRandom, hash_string

if TYPE_CHECKING:
    from mockseed.adapters.proto import ProtoField, ProtoMessageType, ProtoRegistry

log = structlog.get_logger()

INT32_TYPES = frozenset({"int32", "sint32", "sfixed32", "uint32", "fixed32"})
INT64_TYPES = frozenset({"int64", "sint64", "sfixed64", "uint64", "fixed64"})
FLOAT_TYPES = frozenset({"float", "double"})

# How many distinct items a repeated message field gets at the top level
ROOT_REPEATED_ITEMS = (2, 3)


class ProtoSynthesizer:
    """Generate JSON-ready dicts for Protobuf messages.

    Recursion is bounded two ways: a maximum nesting depth, and the set of
    message types currently being expanded on the path from the root. Either
    limit turns the nested message into ``{}`` (or ``[]`` for a repeated
    field), so self-referential and mutually recursive types always finish.
    """

    def __init__(self, registry: ProtoRegistry, *, max_depth: int = 3) -> None:
        self.registry = registry
        self.max_depth = max_depth

    def generate(self, message: ProtoMessageType | str, seed: int = 1) -> dict[str, Any]:
        """Generate one message value."""
        if isinstance(message, str):
            resolved = self.registry.get_message(message)
            if resolved is None:
                log.debug("unknown protobuf message", type_name=message)
                return {}
            message = resolved
        return self._message(message, seed, 0, frozenset())

    def _message(
        self,
        message: ProtoMessageType,
        seed: int,
        depth: int,
        expanding: frozenset[str],
    ) -> dict[str, Any]:
        if depth > self.max_depth or message.full_name in expanding:
            return {}
        expanding = expanding | {message.full_name}

        result: dict[str, Any] = {}
        filled_oneofs: set[str] = set()
        current_seed = seed
        for proto_field in message.fields:
            if proto_field.oneof is not None:
                if proto_field.oneof in filled_oneofs:
                    continue
                filled_oneofs.add(proto_field.oneof)
            result[proto_field.name] = self._field(proto_field, current_seed, depth, expanding)
            current_seed += 1
        return result

    def _field(
        self,
        proto_field: ProtoField,
        seed: int,
        depth: int,
        expanding: frozenset[str],
    ) -> Any:
        if proto_field.is_map:
            key = self._map_key(proto_field.map_key_type or "string", seed)
            return {key: self._single(proto_field, seed, depth, expanding)}

        if not proto_field.repeated:
            return self._single(proto_field, seed, depth, expanding)

        if proto_field.type == "message" and self._would_truncate(proto_field, depth, expanding):
            return []

        if proto_field.type == "message" and depth == 0:
            rng = SeededRandom(f"{proto_field.name}-{seed}")
            count = rng.next_int(*ROOT_REPEATED_ITEMS)
            seeds = [hash_string(f"{seed}-{proto_field.name}-{i}") for i in range(count)]
            return [self._single(proto_field, s, depth, expanding) for s in seeds]
        return [self._single(proto_field, seed, depth, expanding)]

    def _would_truncate(
        self, proto_field: ProtoField, depth: int, expanding: frozenset[str]
    ) -> bool:
        return depth + 1 > self.max_depth or proto_field.type_name in expanding

    def _single(
        self,
        proto_field: ProtoField,
        seed: int,
        depth: int,
        expanding: frozenset[str],
    ) -> Any:
        if proto_field.type == "enum":
            enum = self.registry.enums.get(proto_field.type_name or "")
            if enum is None or not enum.values:
                return "UNKNOWN"
            return SeededRandom(hash_string(proto_field.name) + seed).pick(enum.values)

        if proto_field.type in ("message", "group"):
            nested = self.registry.messages.get(proto_field.type_name or "")
            if nested is None:
                log.debug("unresolved protobuf field type", field=proto_field.name)
                return {}
            return self._message(nested, seed, depth + 1, expanding)

        return self._scalar(proto_field.name, proto_field.type, seed)

    @staticmethod
    def _scalar(field_name: str, kind: str, seed: int) -> Any:
        field_seed = hash_string(field_name) + seed
        rng = SeededRandom(field_seed)
        if kind == "string":
            return f"{field_name}_{rng.next_int(1, 1000)}"
        if kind in INT32_TYPES:
            return rng.next_int(0, 9999)
        if kind in INT64_TYPES:
            # 64-bit values travel as strings in proto3 JSON
            return str(rng.next_int(0, 9_999_999))
        if kind in FLOAT_TYPES:
            return round(rng.next() * 10000) / 100
        if kind == "bool":
            return rng.next() > 0.5
        if kind == "bytes":
            return base64.b64encode(f"mock_bytes_{field_seed}".encode()).decode("ascii")
        return f"{field_name}_{rng.next_int(1, 1000)}"

    @staticmethod
    def _map_key(key_type: str, seed: int) -> str:
        if key_type == "bool":
            return "true"
        if key_type in INT32_TYPES or key_type in INT64_TYPES:
            return str(seed % 10000)
        return f"key_{seed % 10000}"

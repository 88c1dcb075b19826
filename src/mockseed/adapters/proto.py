"""Protobuf descriptor adapter.

Normalizes descriptor dictionaries (``DescriptorProto`` /
``FileDescriptorProto`` in their JSON form, as emitted by ``protoc
--descriptor_set_out`` converted to JSON or by proto-loader package
definitions) into a registry of message and enum types, and classifies
list responses for pagination.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from mockseed.errors import UnknownModelError
from mockseed.models import ModelField, ModelSchema, PaginationShape

log = structlog.get_logger()

# FieldDescriptorProto.Type numbering
PROTO_TYPE_NAMES: dict[int, str] = {
    1: "double",
    2: "float",
    3: "int64",
    4: "uint64",
    5: "int32",
    6: "fixed64",
    7: "fixed32",
    8: "bool",
    9: "string",
    10: "group",
    11: "message",
    12: "bytes",
    13: "uint32",
    14: "enum",
    15: "sfixed32",
    16: "sfixed64",
    17: "sint32",
    18: "sint64",
}

LABEL_REPEATED = 3

PAGE_FIELD_PATTERNS = (
    "page",
    "total_pages",
    "total",
    "total_items",
    "limit",
    "size",
    "offset",
    "page_size",
    "page_number",
)
CURSOR_FIELD_PATTERNS = (
    "next_cursor",
    "prev_cursor",
    "cursor",
    "has_more",
    "has_next",
    "has_prev",
    "next_page_token",
    "page_token",
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_snake(name: str) -> str:
    """Normalize camelCase or snake_case field names to snake_case."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def scalar_type_name(raw: Any) -> str:
    """Map a descriptor type (number or ``TYPE_*`` name) to a short type name."""
    if isinstance(raw, int):
        return PROTO_TYPE_NAMES.get(raw, "string")
    if isinstance(raw, str):
        name = raw.removeprefix("TYPE_").lower()
        return name or "string"
    return "string"


@dataclass(frozen=True)
class ProtoField:
    """A resolved message field."""

    name: str
    type: str
    number: int = 0
    repeated: bool = False
    type_name: str | None = None
    map_key_type: str | None = None
    oneof: str | None = None

    @property
    def is_map(self) -> bool:
        return self.map_key_type is not None


@dataclass(frozen=True)
class ProtoMessageType:
    """A message with fully resolved field types."""

    full_name: str
    fields: tuple[ProtoField, ...] = ()
    is_map_entry: bool = False

    @property
    def name(self) -> str:
        return self.full_name.rsplit(".", 1)[-1]

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass(frozen=True)
class ProtoEnumType:
    """An enumeration with its value names in declaration order."""

    full_name: str
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProtoMethod:
    name: str
    input_type: str
    output_type: str
    client_streaming: bool = False
    server_streaming: bool = False


@dataclass(frozen=True)
class ProtoService:
    full_name: str
    methods: tuple[ProtoMethod, ...] = ()

    def get_method(self, name: str) -> ProtoMethod | None:
        return next((m for m in self.methods if m.name == name), None)


@dataclass
class ProtoRegistry:
    """All message, enum and service types known for one loaded package."""

    messages: dict[str, ProtoMessageType] = field(default_factory=dict)
    enums: dict[str, ProtoEnumType] = field(default_factory=dict)
    services: dict[str, ProtoService] = field(default_factory=dict)

    @classmethod
    def from_file_descriptors(cls, files: Iterable[Mapping[str, Any]]) -> ProtoRegistry:
        """Build a registry from ``FileDescriptorProto`` dicts.

        Accepts either a list of files or a ``FileDescriptorSet`` style
        ``{"file": [...]}`` mapping.
        """
        if isinstance(files, Mapping):
            files = files.get("file", [])
        builder = _RegistryBuilder()
        for file in files:
            package = file.get("package", "")
            for message in _get(file, "messageType", "message_type"):
                builder.add_message(_join(package, message["name"]), message)
            for enum in _get(file, "enumType", "enum_type"):
                builder.add_enum(_join(package, enum["name"]), enum)
            for service in file.get("service", []):
                builder.add_service(_join(package, service["name"]), service, package)
        return builder.build()

    @classmethod
    def from_package_definition(cls, definition: Mapping[str, Mapping[str, Any]]) -> ProtoRegistry:
        """Build a registry from a full-name -> descriptor mapping.

        Values may be bare ``DescriptorProto``/``EnumDescriptorProto`` dicts
        or proto-loader entries wrapping them as ``{"format": ..., "type": {...}}``.
        """
        builder = _RegistryBuilder()
        for full_name, entry in definition.items():
            descriptor = entry.get("type", entry) if "format" in entry else entry
            if not isinstance(descriptor, Mapping):
                continue
            if "value" in descriptor and "field" not in descriptor:
                builder.add_enum(full_name, descriptor)
            elif "field" in descriptor or "name" in descriptor:
                builder.add_message(full_name, descriptor)
        return builder.build()

    def resolve_name(self, type_name: str, scope: str = "") -> str | None:
        """Resolve a possibly relative type name against the registry.

        Lookup order: fully qualified name, then the enclosing scopes of
        ``scope`` from innermost outwards, then any type whose name ends
        with ``.<type_name>``.
        """
        known = self.messages.keys() | self.enums.keys()
        if type_name.startswith("."):
            stripped = type_name[1:]
            if stripped in known:
                return stripped
            type_name = stripped
        if type_name in known:
            return type_name
        parts = scope.split(".") if scope else []
        while parts:
            candidate = ".".join([*parts, type_name])
            if candidate in known:
                return candidate
            parts.pop()
        suffix = f".{type_name}"
        matches = sorted(name for name in known if name.endswith(suffix))
        return matches[0] if matches else None

    def get_message(self, type_name: str) -> ProtoMessageType | None:
        resolved = self.resolve_name(type_name)
        return self.messages.get(resolved) if resolved else None

    def get_enum(self, type_name: str) -> ProtoEnumType | None:
        resolved = self.resolve_name(type_name)
        return self.enums.get(resolved) if resolved else None

    def require_message(self, type_name: str) -> ProtoMessageType:
        """Look up a message or raise ``UnknownModelError``."""
        message = self.get_message(type_name)
        if message is None:
            raise UnknownModelError("protobuf", type_name)
        return message

    def find_service(self, service_name: str) -> ProtoService | None:
        """Look up a service by full name or by its unqualified name."""
        service = self.services.get(service_name.lstrip("."))
        if service is None:
            suffix = f".{service_name}"
            service = next(
                (s for name, s in self.services.items() if name.endswith(suffix)), None
            )
        return service

    def find_method(self, service_name: str, method_name: str) -> ProtoMethod | None:
        service = self.find_service(service_name)
        return service.get_method(method_name) if service else None


class _RegistryBuilder:
    """Two-pass registry construction: collect raw descriptors, then resolve."""

    def __init__(self) -> None:
        self._raw_messages: dict[str, Mapping[str, Any]] = {}
        self._raw_enums: dict[str, Mapping[str, Any]] = {}
        self._raw_services: dict[str, tuple[Mapping[str, Any], str]] = {}

    def add_message(self, full_name: str, descriptor: Mapping[str, Any]) -> None:
        self._raw_messages[full_name] = descriptor
        for nested in _get(descriptor, "nestedType", "nested_type"):
            self.add_message(f"{full_name}.{nested['name']}", nested)
        for enum in _get(descriptor, "enumType", "enum_type"):
            self.add_enum(f"{full_name}.{enum['name']}", enum)

    def add_enum(self, full_name: str, descriptor: Mapping[str, Any]) -> None:
        self._raw_enums[full_name] = descriptor

    def add_service(self, full_name: str, descriptor: Mapping[str, Any], package: str) -> None:
        self._raw_services[full_name] = (descriptor, package)

    def build(self) -> ProtoRegistry:
        registry = ProtoRegistry()
        for name, descriptor in self._raw_enums.items():
            values = tuple(v["name"] for v in descriptor.get("value", []) if "name" in v)
            registry.enums[name] = ProtoEnumType(full_name=name, values=values)

        # Placeholder entries let resolve_name see every message before fields resolve
        for name, descriptor in self._raw_messages.items():
            options = descriptor.get("options") or {}
            is_entry = bool(options.get("mapEntry") or options.get("map_entry"))
            registry.messages[name] = ProtoMessageType(full_name=name, is_map_entry=is_entry)

        for name, descriptor in self._raw_messages.items():
            fields = tuple(
                self._build_field(registry, name, raw) for raw in descriptor.get("field", [])
            )
            registry.messages[name] = ProtoMessageType(
                full_name=name,
                fields=_with_oneofs(fields, descriptor),
                is_map_entry=registry.messages[name].is_map_entry,
            )

        for name, (descriptor, package) in self._raw_services.items():
            methods = tuple(
                ProtoMethod(
                    name=m["name"],
                    input_type=_method_type(registry, m, "inputType", "input_type", package),
                    output_type=_method_type(registry, m, "outputType", "output_type", package),
                    client_streaming=bool(m.get("clientStreaming") or m.get("client_streaming")),
                    server_streaming=bool(m.get("serverStreaming") or m.get("server_streaming")),
                )
                for m in descriptor.get("method", [])
            )
            registry.services[name] = ProtoService(full_name=name, methods=methods)

        log.debug(
            "protobuf registry built",
            messages=len(registry.messages),
            enums=len(registry.enums),
            services=len(registry.services),
        )
        return registry

    def _build_field(
        self, registry: ProtoRegistry, scope: str, raw: Mapping[str, Any]
    ) -> ProtoField:
        kind = scalar_type_name(raw.get("type"))
        label = raw.get("label")
        repeated = label == LABEL_REPEATED or label == "LABEL_REPEATED"
        raw_type_name = _get_str(raw, "typeName", "type_name")
        type_name = registry.resolve_name(raw_type_name, scope) if raw_type_name else None

        if raw_type_name and type_name is None:
            log.debug("unresolved protobuf type", field=raw.get("name"), type_name=raw_type_name)

        if type_name in registry.enums:
            kind = "enum"
        elif type_name in registry.messages and kind not in ("enum",):
            kind = "message"

        entry = registry.messages.get(type_name or "")
        if repeated and kind == "message" and entry is not None and entry.is_map_entry:
            entry_descriptor = self._raw_messages.get(entry.full_name)
            key_field, value_field = _map_entry_fields(entry_descriptor or {})
            value_kind = scalar_type_name(value_field.get("type"))
            value_type_raw = _get_str(value_field, "typeName", "type_name")
            value_type = None
            if value_type_raw:
                value_type = registry.resolve_name(value_type_raw, type_name or scope)
            if value_type in registry.enums:
                value_kind = "enum"
            elif value_type in registry.messages:
                value_kind = "message"
            return ProtoField(
                name=raw["name"],
                type=value_kind,
                number=raw.get("number", 0),
                type_name=value_type,
                map_key_type=scalar_type_name(key_field.get("type")),
            )

        return ProtoField(
            name=raw["name"],
            type=kind,
            number=raw.get("number", 0),
            repeated=repeated,
            type_name=type_name,
        )


def _method_type(
    registry: ProtoRegistry, method: Mapping[str, Any], camel: str, snake: str, package: str
) -> str:
    raw = _get_str(method, camel, snake)
    return registry.resolve_name(raw, package) or raw.lstrip(".")


def _with_oneofs(
    fields: tuple[ProtoField, ...], descriptor: Mapping[str, Any]
) -> tuple[ProtoField, ...]:
    decls = _get(descriptor, "oneofDecl", "oneof_decl")
    if not decls:
        return fields
    names = [d.get("name", f"oneof_{i}") for i, d in enumerate(decls)]
    result = []
    for proto_field, raw in zip(fields, descriptor.get("field", []), strict=True):
        index = raw.get("oneofIndex", raw.get("oneof_index"))
        if index is not None and raw.get("proto3Optional") is not True and 0 <= index < len(names):
            proto_field = ProtoField(
                name=proto_field.name,
                type=proto_field.type,
                number=proto_field.number,
                repeated=proto_field.repeated,
                type_name=proto_field.type_name,
                map_key_type=proto_field.map_key_type,
                oneof=names[index],
            )
        result.append(proto_field)
    return tuple(result)


def _map_entry_fields(descriptor: Mapping[str, Any]) -> tuple[Mapping[str, Any], Mapping[str, Any]]:
    fields = {f.get("name"): f for f in descriptor.get("field", [])}
    return fields.get("key", {"type": 9}), fields.get("value", {"type": 9})


def _get(mapping: Mapping[str, Any], camel: str, snake: str) -> list[Any]:
    return list(mapping.get(camel) or mapping.get(snake) or [])


def _get_str(mapping: Mapping[str, Any], camel: str, snake: str) -> str:
    return str(mapping.get(camel) or mapping.get(snake) or "")


def _join(package: str, name: str) -> str:
    return f"{package}.{name}" if package else name


def analyze_proto_pagination(
    message: ProtoMessageType, registry: ProtoRegistry
) -> PaginationShape | None:
    """Classify a response message as a paginated list.

    The first repeated field whose element type is a message with fields is
    the item list. Meta fields are matched on their snake_case names.
    """
    items_field: ProtoField | None = None
    item_type: ProtoMessageType | None = None
    for f in message.fields:
        if not f.repeated or f.type != "message" or not f.type_name:
            continue
        candidate = registry.messages.get(f.type_name)
        if candidate is not None and candidate.fields:
            items_field, item_type = f, candidate
            break
    if items_field is None:
        return None

    meta = tuple(
        f.name
        for f in message.fields
        if to_snake(f.name) in PAGE_FIELD_PATTERNS or to_snake(f.name) in CURSOR_FIELD_PATTERNS
    )
    page_hits = sum(1 for name in meta if to_snake(name) in PAGE_FIELD_PATTERNS)
    cursor_hits = sum(1 for name in meta if to_snake(name) in CURSOR_FIELD_PATTERNS)
    return PaginationShape(
        items_field_name=items_field.name,
        item_schema=item_type,
        is_page_based=page_hits >= 2,
        is_cursor_based=cursor_hits >= 1,
        meta_fields=meta,
    )


def proto_model_schema(message: ProtoMessageType, registry: ProtoRegistry) -> ModelSchema:
    """Describe a message in the shared ``ModelSchema`` shape."""
    fields = []
    for f in message.fields:
        ref = None
        if f.type in ("message", "enum") and f.type_name:
            ref = f.type_name
        fields.append(
            ModelField(
                name=f.name,
                type="map" if f.is_map else f.type,
                required=f.oneof is None,
                is_array=f.repeated,
                ref_type=ref,
            )
        )
    return ModelSchema(name=message.full_name, fields=tuple(fields))


def proto_enum_schema(enum: ProtoEnumType) -> ModelSchema:
    return ModelSchema(name=enum.full_name, enum_values=enum.values)

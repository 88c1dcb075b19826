"""OpenAPI / Swagger document adapter.

Works on an already parsed document (YAML or JSON loading happens
elsewhere). Exposes the component schemas, converts them to the shared
``ModelSchema`` shape, classifies list response schemas for pagination and
lists the operations declared under ``paths``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from mockseed.models import Endpoint, ModelField, ModelSchema, PaginationShape
from mockseed.synth.openapi import ref_name, schema_type

log = structlog.get_logger()

ITEMS_FIELD_PRIORITY = (
    "items",
    "data",
    "posts",
    "comments",
    "results",
    "records",
    "list",
    "users",
    "products",
    "orders",
)
PAGE_META_FIELDS = ("page", "totalPages", "total", "totalItems", "limit", "size", "offset")
CURSOR_META_FIELDS = ("nextCursor", "prevCursor", "cursor", "hasMore", "hasNext", "hasPrev")
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

_PATH_PARAM_RE = re.compile(r"\{(\w+)\}")


def component_schemas(document: Mapping[str, Any]) -> dict[str, Any]:
    """Named schemas of an OpenAPI 3 or Swagger 2 document.

    OpenAPI 3 keeps them under ``components.schemas``, Swagger 2 under ``definitions``.
    """
    components = document.get("components") or {}
    schemas = components.get("schemas") or document.get("definitions") or {}
    return dict(schemas)


def resolve_schema(
    schema: Mapping[str, Any] | None, schemas: Mapping[str, Any]
) -> Mapping[str, Any] | None:
    """Follow ``$ref`` chains and flatten ``allOf`` into one object schema."""
    seen: set[str] = set()
    while schema is not None and "$ref" in schema:
        ref = schema["$ref"]
        if ref in seen:
            return None
        seen.add(ref)
        schema = schemas.get(ref_name(ref))
    if schema is None or "allOf" not in schema:
        return schema

    properties: dict[str, Any] = dict(schema.get("properties") or {})
    required: list[str] = list(schema.get("required") or [])
    for branch in schema["allOf"]:
        resolved = resolve_schema(branch, schemas)
        if resolved is None:
            continue
        properties.update(resolved.get("properties") or {})
        required.extend(resolved.get("required") or [])
    return {"type": "object", "properties": properties, "required": required}


def analyze_pagination_schema(
    schema: Mapping[str, Any], schemas: Mapping[str, Any] | None = None
) -> PaginationShape | None:
    """Classify a response schema as a paginated list.

    Returns None when the schema is not an object with an array property.
    """
    schemas = schemas or {}
    resolved = resolve_schema(schema, schemas)
    if resolved is None or schema_type(resolved) != "object":
        return None
    properties: Mapping[str, Any] = resolved.get("properties") or {}

    def is_array(name: str) -> bool:
        prop = resolve_schema(properties[name], schemas)
        return prop is not None and schema_type(prop) == "array"

    items_field = next((n for n in ITEMS_FIELD_PRIORITY if n in properties and is_array(n)), None)
    if items_field is None:
        items_field = next((n for n in properties if is_array(n)), None)
    if items_field is None:
        return None

    array_schema = resolve_schema(properties[items_field], schemas) or {}
    page_hits = [n for n in PAGE_META_FIELDS if n in properties]
    cursor_hits = [n for n in CURSOR_META_FIELDS if n in properties]
    return PaginationShape(
        items_field_name=items_field,
        item_schema=array_schema.get("items") or {},
        is_page_based=len(page_hits) >= 2,
        is_cursor_based=len(cursor_hits) >= 1,
        meta_fields=tuple(page_hits + cursor_hits),
    )


def _field_from_property(
    name: str, prop: Mapping[str, Any], required: bool, schemas: Mapping[str, Any]
) -> ModelField:
    is_array = False
    node = prop
    if "$ref" not in node and schema_type(node) == "array":
        is_array = True
        node = node.get("items") or {}
    ref = ref_name(node["$ref"]) if "$ref" in node else None
    if ref is not None:
        target = schemas.get(ref) or {}
        target_type = schema_type(target)
        kind = ref if target_type in ("object", None) or "enum" in target else target_type
    else:
        kind = schema_type(node) or "unknown"
        if kind == "string" and node.get("format") in ("date", "date-time"):
            kind = "Date"
    return ModelField(name=name, type=kind, required=required, is_array=is_array, ref_type=ref)


def openapi_model_schemas(document: Mapping[str, Any]) -> dict[str, ModelSchema]:
    """Convert every component schema into a ``ModelSchema``.

    Enum schemas become enum models; object schemas (including ``allOf``
    compositions) become record models. Other shapes are skipped.
    """
    schemas = component_schemas(document)
    models: dict[str, ModelSchema] = {}
    for name, raw in schemas.items():
        enum = raw.get("enum") if isinstance(raw, Mapping) else None
        if isinstance(enum, list) and enum:
            models[name] = ModelSchema(name=name, enum_values=tuple(str(v) for v in enum))
            continue
        resolved = resolve_schema(raw, schemas)
        if resolved is None or schema_type(resolved) != "object":
            log.debug("skipping non-object component schema", schema=name)
            continue
        required = set(resolved.get("required") or ())
        fields = tuple(
            _field_from_property(prop_name, prop, prop_name in required, schemas)
            for prop_name, prop in (resolved.get("properties") or {}).items()
        )
        models[name] = ModelSchema(name=name, fields=fields)
    return models


# --- operations --------------------------------------------------------------


@dataclass(frozen=True)
class OpenAPIOperation:
    """One path + method of a document, with its declared responses."""

    endpoint: Endpoint
    responses: Mapping[str, Any] = field(default_factory=dict)


def openapi_operations(document: Mapping[str, Any]) -> list[OpenAPIOperation]:
    """List every operation under ``paths`` as an ``Endpoint`` plus its responses.

    Operations without an ``operationId`` are named after their method and path.
    """
    operations: list[OpenAPIOperation] = []
    for path, item in (document.get("paths") or {}).items():
        if not isinstance(item, Mapping):
            continue
        for method in HTTP_METHODS:
            operation = item.get(method)
            if not isinstance(operation, Mapping):
                continue
            query = [
                p["name"]
                for p in operation.get("parameters") or ()
                if isinstance(p, Mapping) and p.get("in") == "query" and "name" in p
            ]
            endpoint = Endpoint(
                path=path,
                method=method.upper(),
                operation_id=operation.get("operationId") or f"{method} {path}",
                summary=operation.get("summary") or "",
                path_params=tuple(_PATH_PARAM_RE.findall(path)),
                query_params=tuple(query),
            )
            raw_responses = operation.get("responses") or {}
            responses = {str(code): body for code, body in raw_responses.items()}
            operations.append(OpenAPIOperation(endpoint, responses))
    return operations


def success_response(responses: Mapping[str, Any]) -> tuple[int, Mapping[str, Any]]:
    """Pick the response to mock: 200, 201 or 204 first, then any 2xx, then whatever is first."""
    for code in ("200", "201", "204"):
        if code in responses:
            return int(code), responses[code] or {}
    for code, response in responses.items():
        if code.startswith("2") and code.isdigit():
            return int(code), response or {}
    for response in responses.values():
        return 200, response or {}
    return 200, {}


def response_payload(
    response: Mapping[str, Any],
) -> tuple[Mapping[str, Any] | None, Any]:
    """Return ``(schema, example)`` of a JSON response body.

    Reads OpenAPI 3 ``content`` media types and Swagger 2 ``schema``/``examples``.
    """
    content = response.get("content")
    if isinstance(content, Mapping):
        media = content.get("application/json")
        if media is None:
            media = next((v for k, v in content.items() if "json" in k), None)
        if not isinstance(media, Mapping):
            return None, None
        example = media.get("example")
        if example is None:
            examples = media.get("examples") or {}
            first = next(iter(examples.values()), None)
            if isinstance(first, Mapping):
                example = first.get("value")
        return media.get("schema"), example
    examples = response.get("examples") or {}
    return response.get("schema"), examples.get("application/json")

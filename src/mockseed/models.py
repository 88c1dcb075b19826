"""Normalized schema records shared by every backend.

The adapters turn OpenAPI documents, Protobuf descriptors and client
package sources into these shapes; synthesizers and pagination only ever
see these.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ModelField:
    """One field of a record model."""

    name: str
    type: str
    required: bool = True
    is_array: bool = False
    ref_type: str | None = None
    json_key: str | None = None

    @property
    def output_key(self) -> str:
        """Key the field is emitted under on the wire."""
        return self.json_key or self.name


@dataclass(frozen=True)
class ModelSchema:
    """A record model or an enumeration, never both."""

    name: str
    fields: tuple[ModelField, ...] = ()
    enum_values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.fields and self.enum_values:
            raise ValueError(f"model {self.name} cannot declare both fields and enum values")

    @property
    def is_enum(self) -> bool:
        return bool(self.enum_values)

    def get_field(self, name: str) -> ModelField | None:
        """Look up a field by name or wire key."""
        for f in self.fields:
            if f.name == name or f.json_key == name:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        if self.is_enum:
            return {"name": self.name, "enumValues": list(self.enum_values)}
        return {
            "name": self.name,
            "fields": [
                {
                    "name": f.name,
                    "jsonKey": f.output_key,
                    "type": f.type,
                    "required": f.required,
                    "isArray": f.is_array,
                    "refType": f.ref_type,
                }
                for f in self.fields
            ],
        }


@dataclass(frozen=True)
class Endpoint:
    """An HTTP operation recovered from a client package."""

    path: str
    method: str
    operation_id: str
    api_class_name: str = ""
    summary: str = ""
    path_params: tuple[str, ...] = ()
    query_params: tuple[str, ...] = ()
    request_body_type: str | None = None
    response_type: str = "unknown"


@dataclass(frozen=True)
class ClientPackage:
    """Everything scanned out of one generated client package."""

    root: Path
    endpoints: tuple[Endpoint, ...]
    models: Mapping[str, ModelSchema] = field(default_factory=dict)
    name: str = "unknown"
    version: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ResponseTypeInfo:
    """Where the item model sits inside an endpoint's response type."""

    model_name: str
    is_list: bool
    list_field_name: str | None = None
    wrapper_type: str | None = None


@dataclass(frozen=True)
class PaginationShape:
    """How a list response wraps its items and pagination metadata."""

    items_field_name: str
    item_schema: Any
    is_page_based: bool
    is_cursor_based: bool
    meta_fields: tuple[str, ...] = ()

    @property
    def is_paginated(self) -> bool:
        return self.is_page_based or self.is_cursor_based

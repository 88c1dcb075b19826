"""Item providers: one uniform item source per (schema backend, model).

Pagination only ever talks to ``ItemProvider``. Each backend gets one
concrete subclass chosen when the provider is constructed, so nothing
downstream inspects what kind of schema it is working with.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from functools import cached_property
from typing import Any

from mockseed.adapters.openapi import resolve_schema
from mockseed.adapters.proto import ProtoMessageType
from mockseed.config import MockIdConfig
from mockseed.errors import UnknownModelError
from mockseed.ids import detect_id_field, generate_id_value
from mockseed.rng import hash_string
from mockseed.synth.client import SchemaSynthesizer
from mockseed.synth.openapi import OpenAPISynthesizer
from mockseed.synth.proto import ProtoSynthesizer


class ItemProvider(ABC):
    """Generates the items of one model.

    Providers hold no mutable state beyond their captured schema, so a
    single instance can serve concurrent requests.
    """

    def __init__(self, model_name: str, id_config: MockIdConfig | None = None) -> None:
        self.model_name = model_name
        self.id_config = id_config or MockIdConfig()

    @abstractmethod
    def generate_item(self, index: int, seed: str | int) -> Any:
        """Generate the item at ``index`` of the collection identified by ``seed``."""

    @abstractmethod
    def field_names(self) -> Sequence[str]:
        """Declared field names of the model, in declaration order."""

    def output_key(self, field_name: str) -> str:
        """Wire key a field is emitted under."""
        return field_name

    def get_model_name(self) -> str:
        return self.model_name

    @cached_property
    def id_field_name(self) -> str:
        return detect_id_field(self.field_names(), self.id_config)

    def get_id_field_name(self) -> str:
        return self.id_field_name

    def generate_id(self, index: int, seed: str | int) -> str | int:
        """Identifier of the item at ``index``."""
        return generate_id_value(self.id_field_name, index, seed, self.id_config)

    def generate_item_with_id(self, item_id: str | int, index: int, seed: str | int) -> Any:
        """Generate an item and force its identifier field to ``item_id``.

        Non-object items are wrapped as ``{<id field>: item_id, "value": item}``.
        """
        item = self.generate_item(index, seed)
        key = self.output_key(self.id_field_name)
        if isinstance(item, dict):
            item = dict(item)
            item[key] = item_id
            return item
        return {key: item_id, "value": item}


class OpenAPIItemProvider(ItemProvider):
    """Items from an OpenAPI schema node."""

    def __init__(
        self,
        schema: Mapping[str, Any],
        synthesizer: OpenAPISynthesizer,
        model_name: str = "Item",
        id_config: MockIdConfig | None = None,
    ) -> None:
        super().__init__(model_name, id_config)
        self.schema = schema
        self.synthesizer = synthesizer

    def generate_item(self, index: int, seed: str | int) -> Any:
        return self.synthesizer.generate(self.schema, hash_string(f"{seed}-{index}"))

    def field_names(self) -> Sequence[str]:
        resolved = resolve_schema(self.schema, self.synthesizer.schemas) or {}
        return list((resolved.get("properties") or {}).keys())


class ProtoItemProvider(ItemProvider):
    """Items from a Protobuf message type."""

    def __init__(
        self,
        message: ProtoMessageType,
        synthesizer: ProtoSynthesizer,
        id_config: MockIdConfig | None = None,
    ) -> None:
        super().__init__(message.name, id_config)
        self.message = message
        self.synthesizer = synthesizer

    def generate_item(self, index: int, seed: str | int) -> Any:
        return self.synthesizer.generate(self.message, hash_string(f"{seed}-{index}"))

    def field_names(self) -> Sequence[str]:
        return self.message.field_names()


class SchemaItemProvider(ItemProvider):
    """Items from a model scanned out of a client package."""

    def __init__(
        self,
        model_name: str,
        synthesizer: SchemaSynthesizer,
        id_config: MockIdConfig | None = None,
    ) -> None:
        if model_name not in synthesizer.models:
            raise UnknownModelError("client", model_name)
        super().__init__(model_name, id_config or synthesizer.id_config)
        self.synthesizer = synthesizer
        self.schema = synthesizer.models[model_name]

    def generate_item(self, index: int, seed: str | int) -> Any:
        return self.synthesizer.generate_one(self.model_name, f"{seed}-{index}", index)

    def field_names(self) -> Sequence[str]:
        return [f.name for f in self.schema.fields]

    def output_key(self, field_name: str) -> str:
        model_field = self.schema.get_field(field_name)
        return model_field.output_key if model_field else field_name

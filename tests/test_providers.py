"""Tests for item providers."""

import pytest

from mockseed.adapters.client_package import parse_model_source
from mockseed.adapters.proto import ProtoRegistry
from mockseed.config import IdFormat, MockIdConfig
from mockseed.errors import UnknownModelError
from mockseed.providers import OpenAPIItemProvider, ProtoItemProvider, SchemaItemProvider
from mockseed.synth.client import SchemaSynthesizer
from mockseed.synth.openapi import OpenAPISynthesizer
from mockseed.synth.proto import ProtoSynthesizer


class TestOpenAPIItemProvider:
    """Tests for OpenAPIItemProvider."""

    def test_field_names(self, user_provider: OpenAPIItemProvider) -> None:
        """Field names come from the resolved schema."""
        assert list(user_provider.field_names()) == [
            "id",
            "name",
            "email",
            "role",
            "age",
            "tags",
            "profile",
            "createdAt",
        ]
        assert user_provider.get_id_field_name() == "id"
        assert user_provider.get_model_name() == "User"

    def test_deterministic(self, user_provider: OpenAPIItemProvider) -> None:
        """Same index and seed give the same item."""
        assert user_provider.generate_item(3, "s") == user_provider.generate_item(3, "s")
        assert user_provider.generate_item(3, "s") != user_provider.generate_item(4, "s")

    def test_generate_item_with_id(self, user_provider: OpenAPIItemProvider) -> None:
        """The identifier field is forced to the given id."""
        item = user_provider.generate_item_with_id("user-1", 0, "s")
        assert item["id"] == "user-1"
        assert item["name"] == user_provider.generate_item(0, "s")["name"]

    def test_non_object_items_wrapped(self, user_provider: OpenAPIItemProvider) -> None:
        """Scalar items are wrapped with their id."""
        provider = OpenAPIItemProvider({"type": "string"}, user_provider.synthesizer, "Label")
        item = provider.generate_item_with_id("label-1", 0, "s")
        assert item["id"] == "label-1"
        assert isinstance(item["value"], str)

    def test_composed_schema_id_field(self) -> None:
        """allOf compositions expose their merged fields for id detection."""
        synth = OpenAPISynthesizer(
            {
                "Owned": {
                    "type": "object",
                    "required": ["ownerId"],
                    "properties": {"ownerId": {"type": "string"}},
                },
                "Pet": {
                    "allOf": [
                        {"$ref": "#/components/schemas/Owned"},
                        {"type": "object", "properties": {"nickname": {"type": "string"}}},
                    ]
                },
            }
        )
        provider = OpenAPIItemProvider({"$ref": "#/components/schemas/Pet"}, synth, "Pet")
        assert list(provider.field_names()) == ["ownerId", "nickname"]
        assert provider.get_id_field_name() == "ownerId"
        item = provider.generate_item_with_id("owner-1", 0, "s")
        assert item["ownerId"] == "owner-1"
        assert "id" not in item

    def test_sequential_ids(self, user_provider: OpenAPIItemProvider) -> None:
        """Identifiers follow the configured format."""
        provider = OpenAPIItemProvider(
            user_provider.schema,
            user_provider.synthesizer,
            "User",
            MockIdConfig(format=IdFormat.SEQUENTIAL, prefix="usr-"),
        )
        assert [provider.generate_id(i, "s") for i in range(3)] == ["usr-1", "usr-2", "usr-3"]


class TestProtoItemProvider:
    """Tests for ProtoItemProvider."""

    def test_message_items(self, proto_descriptor_set: dict[str, object]) -> None:
        """Items are message dicts named after the message."""
        registry = ProtoRegistry.from_file_descriptors(proto_descriptor_set)
        provider = ProtoItemProvider(
            registry.require_message("User"), ProtoSynthesizer(registry)
        )
        assert provider.get_model_name() == "User"
        assert provider.get_id_field_name() == "id"
        item = provider.generate_item_with_id("u-1", 0, "s")
        assert item["id"] == "u-1"
        assert "status" in item


class TestSchemaItemProvider:
    """Tests for SchemaItemProvider."""

    @pytest.fixture
    def synthesizer(self, model_sources: dict[str, str]) -> SchemaSynthesizer:
        models = {}
        for file_name, source in model_sources.items():
            schema = parse_model_source(source, file_name)
            if schema is not None:
                models[schema.name] = schema
        return SchemaSynthesizer(models)

    def test_output_key(self, synthesizer: SchemaSynthesizer) -> None:
        """Fields map to their wire keys."""
        provider = SchemaItemProvider("User", synthesizer)
        assert provider.output_key("userName") == "user_name"
        assert provider.output_key("missing") == "missing"

    def test_items_use_wire_keys(self, synthesizer: SchemaSynthesizer) -> None:
        """Generated items carry wire keys and the forced id."""
        provider = SchemaItemProvider("User", synthesizer)
        item = provider.generate_item_with_id("u-1", 0, "s")
        assert item["id"] == "u-1"
        assert "user_name" in item
        assert "userName" not in item

    def test_unknown_model(self, synthesizer: SchemaSynthesizer) -> None:
        """Models the package does not declare are rejected."""
        with pytest.raises(UnknownModelError, match="client model not found: Nope"):
            SchemaItemProvider("Nope", synthesizer)

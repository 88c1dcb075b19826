"""Process state: caches, managers and provider factories wired from settings.

Nothing in mockseed keeps module-level mutable state. A ``MockState``
owns the snapshot store and the client package cache; tests build a fresh
one per case and servers keep one for their lifetime.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from mockseed.adapters.client_package import ClientPackageCache
from mockseed.adapters.openapi import component_schemas
from mockseed.adapters.proto import ProtoRegistry
from mockseed.config import Settings, get_settings
from mockseed.errors import UnknownModelError
from mockseed.models import ClientPackage, ModelSchema
from mockseed.pagination.cursor import CursorPaginationManager
from mockseed.pagination.pages import PagePaginationManager
from mockseed.pagination.snapshots import Clock, SnapshotStore
from mockseed.providers import OpenAPIItemProvider, ProtoItemProvider, SchemaItemProvider
from mockseed.synth.client import SchemaSynthesizer
from mockseed.synth.openapi import OpenAPISynthesizer
from mockseed.synth.proto import ProtoSynthesizer

log = structlog.get_logger()


class MockState:
    """Shared mutable state for one mock server (or one test)."""

    def __init__(self, settings: Settings | None = None, *, clock: Clock = time.time) -> None:
        self.settings = settings or get_settings()
        self.snapshots = SnapshotStore(self.settings.pagination, clock=clock)
        self.client_packages = ClientPackageCache()
        self.page_manager = PagePaginationManager(self.snapshots)
        self.cursor_manager = CursorPaginationManager(
            self.snapshots, cursor_config=self.settings.cursor
        )

    # --- synthesizers ---------------------------------------------------------

    def openapi_synthesizer(self, document: Mapping[str, Any]) -> OpenAPISynthesizer:
        return OpenAPISynthesizer(
            component_schemas(document),
            max_depth=self.settings.max_openapi_depth,
            optional_omit_rate=self.settings.openapi_optional_omit_rate,
        )

    def proto_synthesizer(self, registry: ProtoRegistry) -> ProtoSynthesizer:
        return ProtoSynthesizer(registry, max_depth=self.settings.max_proto_depth)

    def schema_synthesizer(self, models: Mapping[str, ModelSchema]) -> SchemaSynthesizer:
        return SchemaSynthesizer(
            models,
            self.settings.ids,
            max_depth=self.settings.max_model_depth,
            optional_omit_rate=self.settings.client_optional_omit_rate,
        )

    # --- providers --------------------------------------------------------------

    def openapi_provider(
        self,
        document: Mapping[str, Any],
        model_name: str,
        schema: Mapping[str, Any] | None = None,
    ) -> OpenAPIItemProvider:
        """Provider for a component schema, or for an inline ``schema`` labelled ``model_name``."""
        synthesizer = self.openapi_synthesizer(document)
        if schema is None:
            if model_name not in synthesizer.schemas:
                raise UnknownModelError("openapi", model_name)
            schema = {"$ref": f"#/components/schemas/{model_name}"}
        return OpenAPIItemProvider(schema, synthesizer, model_name, self.settings.ids)

    def proto_provider(self, registry: ProtoRegistry, message_name: str) -> ProtoItemProvider:
        message = registry.require_message(message_name)
        return ProtoItemProvider(message, self.proto_synthesizer(registry), self.settings.ids)

    def schema_provider(
        self, source: ClientPackage | Mapping[str, ModelSchema], model_name: str
    ) -> SchemaItemProvider:
        models = source.models if isinstance(source, ClientPackage) else source
        return SchemaItemProvider(model_name, self.schema_synthesizer(models), self.settings.ids)

    def client_package(self, root: str | Path) -> ClientPackage:
        return self.client_packages.get(root)

    # --- lifecycle --------------------------------------------------------------

    def start_sweeper(self) -> None:
        self.snapshots.start_sweeper(self.settings.snapshot_sweep_interval)

    def reset(self) -> None:
        """Forget every snapshot and scanned package."""
        self.snapshots.reset()
        self.client_packages.reset()
        log.info("mock state reset")

    def close(self) -> None:
        self.snapshots.destroy()
        self.client_packages.reset()

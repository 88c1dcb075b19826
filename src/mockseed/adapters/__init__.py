"""Schema extraction adapters.

Each adapter turns one backend's native description into the shared
``ModelSchema`` / ``Endpoint`` / ``PaginationShape`` records.
"""

from mockseed.adapters.client_package import (
    ClientPackageCache,
    analyze_type,
    extract_data_model_name,
    match_endpoint,
    parse_api_source,
    parse_model_source,
    scan_client_package,
)
from mockseed.adapters.openapi import (
    analyze_pagination_schema,
    component_schemas,
    openapi_model_schemas,
    resolve_schema,
)
from mockseed.adapters.proto import (
    ProtoRegistry,
    analyze_proto_pagination,
    proto_model_schema,
)

__all__ = [
    # Client packages
    "ClientPackageCache",
    "analyze_type",
    "extract_data_model_name",
    "match_endpoint",
    "parse_api_source",
    "parse_model_source",
    "scan_client_package",
    # OpenAPI
    "analyze_pagination_schema",
    "component_schemas",
    "openapi_model_schemas",
    "resolve_schema",
    # Protobuf
    "ProtoRegistry",
    "analyze_proto_pagination",
    "proto_model_schema",
]

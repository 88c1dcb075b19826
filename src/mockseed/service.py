"""Answer mock requests for the three schema backends.

``ClientMockService`` and ``OpenAPIMockService`` turn ``(method, path, query)``
into a status code and a JSON-ready body; ``ProtoMockService`` does the same
for ``(service, method, body)`` calls. Serving them over HTTP is up to the
caller.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from mockseed.adapters.client_package import extract_data_model_name, match_endpoint
from mockseed.adapters.openapi import (
    analyze_pagination_schema,
    openapi_operations,
    response_payload,
    success_response,
)
from mockseed.adapters.proto import ProtoRegistry, analyze_proto_pagination
from mockseed.models import ClientPackage, Endpoint, PaginationShape, ResponseTypeInfo
from mockseed.pagination.request import PaginationRequest
from mockseed.pagination.responses import build_cursor_response, build_page_response
from mockseed.providers import (
    ItemProvider,
    OpenAPIItemProvider,
    ProtoItemProvider,
    SchemaItemProvider,
)
from mockseed.rng import PAGINATION_PARAMS, derive_seed, hash_string
from mockseed.state import MockState

log = structlog.get_logger()

PRIMITIVE_RESPONSE_TYPES = frozenset({"object", "string", "number", "boolean", "any", "unknown"})
PAGE_WRAPPER_FIELDS = frozenset({"page", "totalPages", "total", "totalItems", "pagination"})
DEFAULT_LIST_TOTAL = 100
RPC_CONTROL_PARAMS = PAGINATION_PARAMS | {"pagesize", "page_token", "pagetoken", "is_backward"}


@dataclass(frozen=True)
class MockResponse:
    """Status, body and routing details for one handled request."""

    status_code: int
    body: Any
    meta: dict[str, Any] = field(default_factory=dict)


class ClientMockService:
    """Mock responses for every endpoint of one client package."""

    def __init__(
        self,
        package: ClientPackage,
        state: MockState,
        *,
        list_total: int = DEFAULT_LIST_TOTAL,
    ) -> None:
        self.package = package
        self.state = state
        self.list_total = list_total
        self.synthesizer = state.schema_synthesizer(package.models)

    def handle(
        self, method: str, path: str, query: Mapping[str, Any] | None = None
    ) -> MockResponse:
        """Build the mock response for a request."""
        matched = match_endpoint(self.package.endpoints, method, path)
        if matched is None:
            log.debug("no endpoint matched", method=method, path=path)
            return MockResponse(
                404,
                {"error": "Not found", "message": f"No matching endpoint for {method} {path}"},
            )

        endpoint, path_params = matched
        meta = {
            "operationId": endpoint.operation_id,
            "apiClass": endpoint.api_class_name,
            "responseType": endpoint.response_type,
        }
        response_type = endpoint.response_type.lower()
        if response_type == "void":
            return MockResponse(204, None, meta)
        if response_type in PRIMITIVE_RESPONSE_TYPES:
            return MockResponse(200, self._primitive_body(path, endpoint), meta)

        info = extract_data_model_name(endpoint.response_type, self.package.models)
        params = json.dumps(path_params, separators=(",", ":"))
        if info.is_list:
            request = PaginationRequest.from_query(
                query or {}, self.state.settings.pagination, self.state.settings.cursor
            )
            body = self._list_body(info, request, f"{endpoint.path}-{params}")
        else:
            body = self.synthesizer.generate_one(
                endpoint.response_type, f"{endpoint.operation_id}-{params}"
            )
        return MockResponse(200, body, meta)

    def _primitive_body(self, path: str, endpoint: Endpoint) -> Any:
        lowered = path.lower()
        if "health" in lowered:
            now = datetime.fromtimestamp(self.state.snapshots.clock(), tz=UTC)
            return {"status": "ok", "timestamp": now.isoformat()}
        if "ping" in lowered:
            return {"pong": True}
        match endpoint.response_type:
            case "string":
                return "success"
            case "number":
                return 0
            case "boolean":
                return True
        return {}

    def _is_page_wrapper(self, info: ResponseTypeInfo) -> bool:
        if info.list_field_name != "items" or not info.wrapper_type:
            return False
        wrapper = self.package.models.get(info.wrapper_type)
        return wrapper is not None and any(f.name in PAGE_WRAPPER_FIELDS for f in wrapper.fields)

    def _list_body(self, info: ResponseTypeInfo, request: PaginationRequest, seed: str) -> Any:
        if info.model_name not in self.package.models:
            log.debug("list item model unknown", model=info.model_name)
            return {info.list_field_name: []} if info.list_field_name else []

        provider = SchemaItemProvider(info.model_name, self.synthesizer)

        if self._is_page_wrapper(info) and not (request.cursor or request.is_backward):
            body = self.state.page_manager.get_paged_response(
                provider, page=request.page, limit=request.limit, total=self.list_total, seed=seed
            ).to_dict()
            body.pop("_snapshotId", None)
            return body

        window = self.state.cursor_manager.get_cursor_page(
            provider,
            cursor=request.cursor,
            limit=request.limit,
            total=self.list_total,
            seed=seed,
            is_backward=request.is_backward,
        )
        if self._is_page_wrapper(info):
            body = window.to_dict()
            body.pop("_snapshotId", None)
            return body
        if not info.list_field_name or not info.wrapper_type:
            return window.items

        wrapper = self.package.models[info.wrapper_type]
        shape = PaginationShape(
            items_field_name=info.list_field_name,
            item_schema=info.model_name,
            is_page_based=False,
            is_cursor_based=True,
            meta_fields=tuple(f.output_key for f in wrapper.fields),
        )
        base = self.synthesizer.generate_one(info.wrapper_type, seed)
        return build_cursor_response(shape, window, base)


class OpenAPIMockService:
    """Mock responses for every operation of one OpenAPI or Swagger document.

    Declared examples are returned as is. Response schemas recognised as
    paginated lists are served from the snapshot managers, everything else
    is synthesized with a seed made of the operation id and path parameters.
    """

    def __init__(
        self,
        document: Mapping[str, Any],
        state: MockState,
        *,
        list_total: int = DEFAULT_LIST_TOTAL,
    ) -> None:
        self.state = state
        self.list_total = list_total
        self.synthesizer = state.openapi_synthesizer(document)
        self.operations = {op.endpoint: op for op in openapi_operations(document)}

    def handle(
        self, method: str, path: str, query: Mapping[str, Any] | None = None
    ) -> MockResponse:
        """Build the mock response for a request."""
        matched = match_endpoint(self.operations, method, path)
        if matched is None:
            log.debug("no operation matched", method=method, path=path)
            return MockResponse(
                404,
                {"error": "Not found", "message": f"No matching operation for {method} {path}"},
            )

        endpoint, path_params = matched
        meta = {"operationId": endpoint.operation_id}
        status, response = success_response(self.operations[endpoint].responses)
        if status == 204:
            return MockResponse(204, None, meta)
        schema, example = response_payload(response)
        if example is not None:
            return MockResponse(status, example, meta)
        if schema is None:
            return MockResponse(status, None, meta)

        seed = f"{endpoint.operation_id}-{json.dumps(path_params, separators=(',', ':'))}"
        shape = analyze_pagination_schema(schema, self.synthesizer.schemas)
        if shape is None:
            return MockResponse(status, self.synthesizer.generate(schema, hash_string(seed)), meta)

        request = PaginationRequest.from_query(
            query or {}, self.state.settings.pagination, self.state.settings.cursor
        )
        provider = OpenAPIItemProvider(
            shape.item_schema, self.synthesizer, endpoint.operation_id, self.state.settings.ids
        )
        body = _paginate(self.state, provider, shape, request, self.list_total, seed)
        return MockResponse(status, body, meta)


class ProtoMockService:
    """Mock responses for the unary methods of the services in a registry."""

    def __init__(
        self,
        registry: ProtoRegistry,
        state: MockState,
        *,
        list_total: int = DEFAULT_LIST_TOTAL,
    ) -> None:
        self.registry = registry
        self.state = state
        self.list_total = list_total
        self.synthesizer = state.proto_synthesizer(registry)

    def handle(
        self, service_name: str, method_name: str, body: Mapping[str, Any] | None = None
    ) -> MockResponse:
        """Build the mock response for one call.

        The response is wrapped as ``{success, service, method, data}``.
        Unknown services and methods are 404s, streaming methods 501s.
        """
        service = self.registry.find_service(service_name)
        if service is None:
            available = sorted(name.rsplit(".", 1)[-1] for name in self.registry.services)
            return MockResponse(
                404,
                {
                    "error": "Not found",
                    "message": f"Service '{service_name}' not found. "
                    f"Available services: {', '.join(available)}",
                },
            )
        method = service.get_method(method_name)
        if method is None:
            available = [m.name for m in service.methods]
            return MockResponse(
                404,
                {
                    "error": "Not found",
                    "message": f"Method '{method_name}' not found in service '{service_name}'. "
                    f"Available methods: {', '.join(available)}",
                },
            )

        meta = {"service": service.full_name, "method": method.name}
        if method.client_streaming or method.server_streaming:
            return MockResponse(
                501,
                {
                    "error": "Not implemented",
                    "message": "Streaming methods are not supported. Only unary RPC is available.",
                },
                meta,
            )

        body = dict(body or {})
        call = f"{service_name}.{method_name}"
        backward_param = self.state.settings.cursor.backward_param
        seed_body = {
            k: v
            for k, v in body.items()
            if k.lower() not in RPC_CONTROL_PARAMS and k != backward_param
        }
        seed_number = derive_seed(seed_body) if seed_body else hash_string(json.dumps(call))
        seed = f"{call}-{seed_number}"

        message = self.registry.get_message(method.output_type)
        if message is None:
            log.debug("unknown response message", method=call, type=method.output_type)
            data: Any = {}
        else:
            shape = analyze_proto_pagination(message, self.registry)
            if shape is None:
                data = self.synthesizer.generate(message, seed_number)
            else:
                provider = ProtoItemProvider(
                    shape.item_schema, self.synthesizer, self.state.settings.ids
                )
                request = self._request(body)
                data = _paginate(self.state, provider, shape, request, self.list_total, seed)
        return MockResponse(
            200,
            {"success": True, "service": service_name, "method": method_name, "data": data},
            meta,
        )

    def _request(self, body: Mapping[str, Any]) -> PaginationRequest:
        """Read pagination parameters from a request message."""
        query = dict(body)
        if "limit" not in query:
            query["limit"] = body.get("page_size", body.get("pageSize"))
        query["cursor"] = body.get("cursor") or body.get("page_token") or body.get("pageToken")
        backward_param = self.state.settings.cursor.backward_param
        if backward_param not in query:
            query[backward_param] = body.get("is_backward")
        return PaginationRequest.from_query(
            query, self.state.settings.pagination, self.state.settings.cursor
        )


def _paginate(
    state: MockState,
    provider: ItemProvider,
    shape: PaginationShape,
    request: PaginationRequest,
    total: int,
    seed: str,
) -> dict[str, Any]:
    """Serve a list shape page-wise, or cursor-wise when asked for or declared."""
    if request.cursor or request.is_backward or shape.is_cursor_based:
        window = state.cursor_manager.get_cursor_page(
            provider,
            cursor=request.cursor,
            limit=request.limit,
            total=total,
            seed=seed,
            is_backward=request.is_backward,
        )
        return build_cursor_response(shape, window)
    page = state.page_manager.get_paged_response(
        provider, page=request.page, limit=request.limit, total=total, seed=seed
    )
    return build_page_response(shape, page)

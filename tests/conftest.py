"""Pytest configuration and fixtures."""

import json
from pathlib import Path

import pytest

from mockseed.adapters.openapi import component_schemas
from mockseed.config import MockCursorConfig, MockIdConfig, MockPaginationConfig, Settings
from mockseed.pagination.snapshots import SnapshotStore
from mockseed.providers import OpenAPIItemProvider
from mockseed.synth.openapi import OpenAPISynthesizer


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Return a controllable clock."""
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Return settings that ignore the environment."""
    return Settings(
        _env_file=None,
        pagination=MockPaginationConfig(),
        cursor=MockCursorConfig(),
        ids=MockIdConfig(),
    )


# --- OpenAPI -----------------------------------------------------------------


@pytest.fixture
def openapi_document() -> dict[str, object]:
    """Return a small OpenAPI 3 document with records, an enum and a recursive type."""
    return {
        "openapi": "3.0.3",
        "info": {"title": "Demo", "version": "1.0.0"},
        "paths": {
            "/users": {
                "get": {
                    "operationId": "listUsers",
                    "parameters": [
                        {"name": "page", "in": "query", "schema": {"type": "integer"}},
                        {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                    ],
                    "responses": {
                        "200": {
                            "description": "A page of users",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/UserListResponse"}
                                }
                            },
                        }
                    },
                },
                "post": {
                    "operationId": "createUser",
                    "responses": {
                        201: {
                            "description": "Created",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/User"}
                                }
                            },
                        }
                    },
                },
            },
            "/users/me": {
                "get": {
                    "operationId": "getMe",
                    "responses": {
                        "200": {
                            "description": "The caller",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/User"},
                                    "example": {"id": "me", "name": "Current User"},
                                }
                            },
                        }
                    },
                }
            },
            "/users/{id}": {
                "get": {
                    "operationId": "getUser",
                    "responses": {
                        "200": {
                            "description": "One user",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/User"}
                                }
                            },
                        }
                    },
                },
                "delete": {
                    "operationId": "deleteUser",
                    "responses": {"204": {"description": "Deleted"}},
                },
            },
            "/feed": {
                "get": {
                    "operationId": "getFeed",
                    "responses": {
                        "200": {
                            "description": "Feed",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/PostFeed"}
                                }
                            },
                        }
                    },
                }
            },
            "/health": {"get": {"responses": {"200": {"description": "Healthy"}}}},
        },
        "components": {
            "schemas": {
                "Role": {"type": "string", "enum": ["admin", "member", "guest"]},
                "Profile": {
                    "type": "object",
                    "properties": {
                        "bio": {"type": "string"},
                        "website": {"type": "string", "format": "uri"},
                    },
                },
                "User": {
                    "type": "object",
                    "required": ["id", "name", "email", "role", "age"],
                    "properties": {
                        "id": {"type": "string", "format": "uuid"},
                        "name": {"type": "string"},
                        "email": {"type": "string", "format": "email"},
                        "role": {"$ref": "#/components/schemas/Role"},
                        "age": {"type": "integer", "minimum": 18, "maximum": 99},
                        "tags": {"type": "array", "items": {"type": "string"}},
                        "profile": {"$ref": "#/components/schemas/Profile"},
                        "createdAt": {"type": "string", "format": "date-time"},
                    },
                },
                "TreeNode": {
                    "type": "object",
                    "required": ["id", "value", "children", "parent"],
                    "properties": {
                        "id": {"type": "string"},
                        "value": {"type": "integer"},
                        "children": {
                            "type": "array",
                            "items": {"$ref": "#/components/schemas/TreeNode"},
                        },
                        "parent": {"$ref": "#/components/schemas/TreeNode"},
                    },
                },
                "Admin": {
                    "allOf": [
                        {"$ref": "#/components/schemas/User"},
                        {
                            "type": "object",
                            "required": ["permissions"],
                            "properties": {
                                "permissions": {"type": "array", "items": {"type": "string"}}
                            },
                        },
                    ]
                },
                "UserListResponse": {
                    "type": "object",
                    "properties": {
                        "items": {"type": "array", "items": {"$ref": "#/components/schemas/User"}},
                        "page": {"type": "integer"},
                        "limit": {"type": "integer"},
                        "total": {"type": "integer"},
                        "totalPages": {"type": "integer"},
                    },
                },
                "PostFeed": {
                    "type": "object",
                    "properties": {
                        "data": {"type": "array", "items": {"type": "object"}},
                        "nextCursor": {"type": "string"},
                        "hasMore": {"type": "boolean"},
                    },
                },
            }
        },
    }


@pytest.fixture
def user_provider(openapi_document: dict[str, object]) -> OpenAPIItemProvider:
    """Return a provider for the demo User schema."""
    synth = OpenAPISynthesizer(component_schemas(openapi_document))
    return OpenAPIItemProvider({"$ref": "#/components/schemas/User"}, synth, "User")


@pytest.fixture
def store(clock: FakeClock) -> SnapshotStore:
    """Return a snapshot store on the fake clock."""
    return SnapshotStore(MockPaginationConfig(), clock=clock)


# --- Protobuf ----------------------------------------------------------------


def _field(name: str, number: int, type_: str, **extra: object) -> dict[str, object]:
    return {"name": name, "number": number, "label": "LABEL_OPTIONAL", "type": type_, **extra}


@pytest.fixture
def proto_descriptor_set() -> dict[str, object]:
    """Return a FileDescriptorSet in JSON form for a ``demo`` package."""
    return {
        "file": [
            {
                "name": "demo.proto",
                "package": "demo",
                "enumType": [
                    {
                        "name": "Status",
                        "value": [
                            {"name": "STATUS_UNKNOWN", "number": 0},
                            {"name": "ACTIVE", "number": 1},
                            {"name": "INACTIVE", "number": 2},
                        ],
                    }
                ],
                "messageType": [
                    {
                        "name": "User",
                        "field": [
                            _field("id", 1, "TYPE_STRING"),
                            _field("name", 2, "TYPE_STRING"),
                            _field("age", 3, "TYPE_INT32"),
                            _field("balance", 4, "TYPE_INT64"),
                            _field("status", 5, "TYPE_ENUM", typeName=".demo.Status"),
                            _field("tags", 6, "TYPE_STRING", label="LABEL_REPEATED"),
                            _field(
                                "attributes",
                                7,
                                "TYPE_MESSAGE",
                                label="LABEL_REPEATED",
                                typeName=".demo.User.AttributesEntry",
                            ),
                            _field("email", 8, "TYPE_STRING", oneofIndex=0),
                            _field("phone", 9, "TYPE_STRING", oneofIndex=0),
                            _field("avatar", 10, "TYPE_BYTES"),
                        ],
                        "nestedType": [
                            {
                                "name": "AttributesEntry",
                                "field": [
                                    _field("key", 1, "TYPE_STRING"),
                                    _field("value", 2, "TYPE_STRING"),
                                ],
                                "options": {"mapEntry": True},
                            }
                        ],
                        "oneofDecl": [{"name": "contact"}],
                    },
                    {
                        "name": "TreeNode",
                        "field": [
                            _field("id", 1, "TYPE_STRING"),
                            _field(
                                "children",
                                2,
                                "TYPE_MESSAGE",
                                label="LABEL_REPEATED",
                                typeName=".demo.TreeNode",
                            ),
                            _field("parent", 3, "TYPE_MESSAGE", typeName=".demo.TreeNode"),
                        ],
                    },
                    {
                        "name": "ListUsersRequest",
                        "field": [
                            _field("page_size", 1, "TYPE_INT32"),
                            _field("page_token", 2, "TYPE_STRING"),
                        ],
                    },
                    {
                        "name": "ListUsersResponse",
                        "field": [
                            _field(
                                "users", 1, "TYPE_MESSAGE", label="LABEL_REPEATED", typeName="User"
                            ),
                            _field("next_page_token", 2, "TYPE_STRING"),
                            _field("total_size", 3, "TYPE_INT32"),
                        ],
                    },
                    {
                        "name": "PagedUsers",
                        "field": [
                            _field(
                                "users",
                                1,
                                "TYPE_MESSAGE",
                                label="LABEL_REPEATED",
                                typeName=".demo.User",
                            ),
                            _field("page", 2, "TYPE_INT32"),
                            _field("totalPages", 3, "TYPE_INT32"),
                        ],
                    },
                ],
                "service": [
                    {
                        "name": "UserService",
                        "method": [
                            {
                                "name": "ListUsers",
                                "inputType": ".demo.ListUsersRequest",
                                "outputType": ".demo.ListUsersResponse",
                            },
                            {
                                "name": "GetUser",
                                "inputType": ".demo.ListUsersRequest",
                                "outputType": ".demo.User",
                            },
                            {
                                "name": "PageUsers",
                                "inputType": ".demo.ListUsersRequest",
                                "outputType": ".demo.PagedUsers",
                            },
                            {
                                "name": "WatchUsers",
                                "inputType": ".demo.ListUsersRequest",
                                "outputType": ".demo.User",
                                "serverStreaming": True,
                            },
                        ],
                    }
                ],
            }
        ]
    }


# --- Client package sources --------------------------------------------------

USERS_API_TS = '''/* tslint:disable */
import * as runtime from '../runtime';

export interface GetUserRequest {
    id: string;
}

/**
 * Users API
 */
export class UsersApi extends runtime.BaseAPI {

    /**
     * List users
     * Returns a page of users
     */
    async listUsersRaw(requestParameters: ListUsersRequest, initOverrides?: RequestInit): Promise<runtime.ApiResponse<UserListResponse>> {
        const queryParameters: any = {};

        if (requestParameters['page'] != null) {
            queryParameters['page'] = requestParameters['page'];
        }

        if (requestParameters.limit !== undefined) {
            queryParameters['limit'] = requestParameters.limit;
        }

        const headerParameters: runtime.HTTPHeaders = {};

        let urlPath = `/users`;

        const response = await this.request({
            path: urlPath,
            method: 'GET',
            headers: headerParameters,
            query: queryParameters,
        }, initOverrides);

        return new runtime.JSONApiResponse(response, (jsonValue) => UserListResponseFromJSON(jsonValue));
    }

    /**
     * Get a user
     */
    async getUserRaw(requestParameters: GetUserRequest, initOverrides?: RequestInit): Promise<runtime.ApiResponse<User>> {
        const queryParameters: any = {};

        const headerParameters: runtime.HTTPHeaders = {};

        let urlPath = `/users/{id}`;
        urlPath = urlPath.replace(`{${"id"}}`, encodeURIComponent(String(requestParameters['id'])));

        const response = await this.request({
            path: urlPath,
            method: 'GET',
            headers: headerParameters,
            query: queryParameters,
        }, initOverrides);

        return new runtime.JSONApiResponse(response, (jsonValue) => UserFromJSON(jsonValue));
    }

    /**
     * Create a user
     */
    async createUserRaw(requestParameters: CreateUserOperationRequest, initOverrides?: RequestInit): Promise<runtime.ApiResponse<User>> {
        const queryParameters: any = {};

        const headerParameters: runtime.HTTPHeaders = {};

        let urlPath = `/users`;

        const response = await this.request({
            path: urlPath,
            method: 'POST',
            headers: headerParameters,
            query: queryParameters,
            body: CreateUserRequestToJSON(requestParameters['createUserRequest']),
        }, initOverrides);

        return new runtime.JSONApiResponse(response, (jsonValue) => UserFromJSON(jsonValue));
    }

    /**
     * Delete a user
     */
    async deleteUserRaw(requestParameters: DeleteUserRequest, initOverrides?: RequestInit): Promise<runtime.ApiResponse<void>> {
        const queryParameters: any = {};

        const headerParameters: runtime.HTTPHeaders = {};

        let urlPath = `/users/${requestParameters.id}`;

        const response = await this.request({
            path: urlPath,
            method: 'DELETE',
            headers: headerParameters,
            query: queryParameters,
        }, initOverrides);

        return new runtime.VoidApiResponse(response);
    }

    /**
     * Helper without a request path
     */
    async describeRaw(): Promise<runtime.ApiResponse<string>> {
        return this.describeLocally();
    }
}
'''

POSTS_API_TS = '''import * as runtime from '../runtime';

/**
 * Posts API
 */
export class PostsApi extends runtime.BaseAPI {

    /**
     * List posts with cursor pagination
     */
    async getPostsRaw(requestParameters: GetPostsRequest, initOverrides?: RequestInit | runtime.InitOverrideFunction): Promise<runtime.ApiResponse<PostListResponse>> {
        const queryParameters: any = {};

        if (requestParameters.cursor !== undefined) {
            queryParameters['cursor'] = requestParameters.cursor;
        }

        const headerParameters: runtime.HTTPHeaders = {};

        const response = await this.request({
            path: `/posts`,
            method: 'GET',
            headers: headerParameters,
            query: queryParameters,
        }, initOverrides);

        return new runtime.JSONApiResponse(response, (jsonValue) => PostListResponseFromJSON(jsonValue));
    }

    /**
     * Get a comment of a post
     */
    async getPostCommentRaw(requestParameters: GetPostCommentRequest, initOverrides?: RequestInit | runtime.InitOverrideFunction): Promise<runtime.ApiResponse<Post>> {
        const queryParameters: any = {};

        const headerParameters: runtime.HTTPHeaders = {};

        const response = await this.request({
            path: `/posts/{postId}/comments/{commentId}`.replace(`{${"postId"}}`, encodeURIComponent(String(requestParameters.postId))).replace(`{${"commentId"}}`, encodeURIComponent(String(requestParameters.commentId))),
            method: 'GET',
            headers: headerParameters,
            query: queryParameters,
        }, initOverrides);

        return new runtime.JSONApiResponse(response, (jsonValue) => PostFromJSON(jsonValue));
    }

    /**
     * List posts as a plain array
     */
    async getRecentPostsRaw(initOverrides?: RequestInit | runtime.InitOverrideFunction): Promise<runtime.ApiResponse<Array<Post>>> {
        const response = await this.request({
            path: `/posts/recent`,
            method: 'GET',
        }, initOverrides);

        return new runtime.JSONApiResponse(response, (jsonValue) => jsonValue.map(PostFromJSON));
    }

    /**
     * Health check
     */
    async healthRaw(initOverrides?: RequestInit | runtime.InitOverrideFunction): Promise<runtime.ApiResponse<object>> {
        const response = await this.request({
            path: `/health`,
            method: 'GET',
        }, initOverrides);

        return new runtime.JSONApiResponse<any>(response);
    }
}
'''

ORDERS_API_TS = """/**
 * Orders API
 */
import { BaseAPI, type ApiResponse } from '../runtime'

export class OrdersApi extends BaseAPI {
  /**
   * @summary List orders
   */
  async getOrdersRaw(requestParameters: GetOrdersRequest = {}): Promise<ApiResponse<OrderListResponse>> {
    const queryParams: string[] = []
    if (requestParameters.page !== undefined) {
      queryParams.push(`page=${requestParameters.page}`)
    }
    if (requestParameters.userId !== undefined) {
      queryParams.push(`user_id=${requestParameters.userId}`)
    }

    const queryString = queryParams.length > 0 ? `?${queryParams.join('&')}` : ''

    return this.request<OrderListResponse>({
      url: `${this.configuration.basePath}/orders${queryString}`,
      init: {
        method: 'GET',
        headers: this.configuration.headers,
      },
    })
  }

  /**
   * Update order status
   * @summary Update status
   */
  async updateOrderStatusRaw(requestParameters: UpdateOrderStatusRequest): Promise<ApiResponse<Order>> {
    const { id, ...body } = requestParameters
    return this.request<Order>({
      url: `${this.configuration.basePath}/orders/${id}/status`,
      init: {
        method: 'PATCH',
        headers: this.configuration.headers,
        body: JSON.stringify(body),
      },
    })
  }
}
"""

USER_MODEL_TS = """/* tslint:disable */
import { exists } from '../runtime';
import type { Role } from './Role';

export interface User {
    id: string;
    userName: string;
    email: string;
    role: Role;
    /**
     * Optional avatar
     */
    avatarUrl?: string;
    createdAt: Date;
}

export function UserFromJSONTyped(json: any, ignoreDiscriminator: boolean): User {
    if ((json === undefined) || (json === null)) {
        return json;
    }
    return {
        'id': json['id'],
        'userName': json['user_name'],
        'email': json['email'],
        'role': RoleFromJSON(json['role']),
        'avatarUrl': !exists(json, 'avatar_url') ? undefined : json['avatar_url'],
        'createdAt': (new Date(json['created_at'])),
    };
}

export function UserToJSON(value?: User | null): any {
    if (value === undefined) {
        return undefined;
    }
    return {
        'id': value.id,
        'user_name': value.userName,
        'email': value.email,
        'role': RoleToJSON(value.role),
        'avatar_url': value.avatarUrl,
        'created_at': (value.createdAt.toISOString()),
    };
}
"""

ROLE_MODEL_TS = """export const Role = {
    Admin: 'admin',
    Member: 'member',
    Guest: 'guest'
} as const;
export type Role = typeof Role[keyof typeof Role];

export function RoleFromJSON(json: any): Role {
    return json as Role;
}
"""

USER_LIST_MODEL_TS = """import type { User } from './User';

export interface UserListResponse {
    items: Array<User>;
    page: number;
    limit: number;
    total: number;
    totalPages: number;
}

export function UserListResponseFromJSONTyped(json: any, ignoreDiscriminator: boolean): UserListResponse {
    return {
        'items': ((json['items'] as Array<any>).map(UserFromJSON)),
        'page': json['page'],
        'limit': json['limit'],
        'total': json['total'],
        'totalPages': json['totalPages'],
    };
}
"""

POST_MODEL_TS = """export interface Post {
    id: string;
    title: string;
    authorId: string
    tags?: string[]
    publishedAt?: Date
}
"""

POST_LIST_MODEL_TS = """export interface PostListResponse {
  posts: Post[]
  nextCursor?: string | null
  hasMore: boolean
  total: number
  generatedBy: string
}

export function PostListResponseFromJSONTyped(json: unknown): PostListResponse {
  const obj = json as Record<string, unknown>
  return {
    posts: (obj['posts'] as unknown[]).map(PostFromJSON),
    nextCursor: obj['next_cursor'] as string,
    hasMore: obj['has_more'] as boolean,
    total: obj['total'] as number,
    generatedBy: obj['generated_by'] as string,
  }
}

export function PostListResponseToJSON(value: PostListResponse): Record<string, unknown> {
  return {
    posts: value.posts.map(PostToJSON),
    next_cursor: value.nextCursor,
    has_more: value.hasMore,
    total: value.total,
    generated_by: value.generatedBy,
  }
}
"""

ORDER_STATUS_MODEL_TS = """export enum OrderStatus {
  Pending = 'PENDING',
  Shipped = 'SHIPPED',
  Delivered = 'DELIVERED'
}
"""

ORDER_MODEL_TS = """import type { OrderStatus } from './OrderStatus'

export interface Order {
  /** Order ID */
  id: string
  orderNumber: string
  status: OrderStatus
  shippingAddress: {
    street: string
    city: string
  }
  notes?: string
}

export function OrderFromJSONTyped(json: unknown): Order {
  const obj = json as Record<string, unknown>
  return {
    id: obj['id'] as string,
    orderNumber: obj['order_number'] as string,
    status: OrderStatusFromJSON(obj['status']),
    shippingAddress: obj['shipping_address'] as Order['shippingAddress'],
    notes: exists(obj, 'notes') ? obj['notes'] as string : undefined,
  }
}

export function OrderToJSON(value: Order): Record<string, unknown> {
  if (value == null) {
    return value
  }
  return {
    id: value.id,
    order_number: value.orderNumber,
    status: OrderStatusToJSON(value.status),
    shipping_address: value.shippingAddress,
    notes: value.notes,
  }
}
"""

TREE_MODEL_TS = """export interface TreeNode {
    id: string;
    label: string;
    children: Array<TreeNode>;
    parent?: TreeNode;
}
"""


@pytest.fixture
def users_api_source() -> str:
    """Return an older-style API file (``let urlPath``)."""
    return USERS_API_TS


@pytest.fixture
def posts_api_source() -> str:
    """Return a newer-style API file (``path:`` inline with ``.replace``)."""
    return POSTS_API_TS


@pytest.fixture
def orders_api_source() -> str:
    """Return a fetch-wrapper style API file (``url:`` with basePath)."""
    return ORDERS_API_TS


@pytest.fixture
def model_sources() -> dict[str, str]:
    """Return model files keyed by file name."""
    return {
        "User.ts": USER_MODEL_TS,
        "Role.ts": ROLE_MODEL_TS,
        "UserListResponse.ts": USER_LIST_MODEL_TS,
        "Post.ts": POST_MODEL_TS,
        "PostListResponse.ts": POST_LIST_MODEL_TS,
        "OrderStatus.ts": ORDER_STATUS_MODEL_TS,
        "Order.ts": ORDER_MODEL_TS,
        "TreeNode.ts": TREE_MODEL_TS,
    }


@pytest.fixture
def client_package_dir(tmp_path: Path, model_sources: dict[str, str]) -> Path:
    """Write a generated client package to a temporary directory."""
    root = tmp_path / "demo-client"
    apis = root / "src" / "apis"
    models = root / "src" / "models"
    apis.mkdir(parents=True)
    models.mkdir(parents=True)
    (apis / "UsersApi.ts").write_text(USERS_API_TS, encoding="utf-8")
    (apis / "PostsApi.ts").write_text(POSTS_API_TS, encoding="utf-8")
    (apis / "OrdersApi.ts").write_text(ORDERS_API_TS, encoding="utf-8")
    (apis / "index.ts").write_text("export * from './UsersApi';\n", encoding="utf-8")
    for name, content in model_sources.items():
        (models / name).write_text(content, encoding="utf-8")
    (models / "index.ts").write_text("export * from './User';\n", encoding="utf-8")
    (root / "package.json").write_text(
        json.dumps({"name": "@demo/client", "version": "1.2.3", "description": "Demo"}),
        encoding="utf-8",
    )
    return root


V7_USER_MODEL_TS = """/* tslint:disable */
/* eslint-disable */
import { exists, mapValues } from '../runtime';

export interface User {
    id: string;
    name: string;
    email: string;
    status: UserStatusEnum;
    role: UserRoleEnum;
    createdAt?: Date;
}

export const UserStatusEnum = {
    Active: 'active',
    Inactive: 'inactive',
    Suspended: 'suspended'
} as const;
export type UserStatusEnum = typeof UserStatusEnum[keyof typeof UserStatusEnum];

export const UserRoleEnum = {
    Admin: 'admin',
    User: 'user',
    Guest: 'guest'
} as const;
export type UserRoleEnum = typeof UserRoleEnum[keyof typeof UserRoleEnum];

export function UserFromJSONTyped(json: any, ignoreDiscriminator: boolean): User {
    if ((json === undefined) || (json === null)) {
        return json;
    }
    return {
        'id': json['id'],
        'name': json['name'],
        'email': json['email'],
        'status': json['status'],
        'role': json['role'],
        'createdAt': !exists(json, 'createdAt') ? undefined : (new Date(json['createdAt'])),
    };
}

export function UserToJSON(value?: User | null): any {
    if (value === undefined) {
        return undefined;
    }
    return {
        'id': value.id,
        'name': value.name,
        'email': value.email,
        'status': value.status,
        'role': value.role,
        'createdAt': value.createdAt === undefined ? undefined : (value.createdAt.toISOString()),
    };
}
"""

V7_ERROR_MODEL_TS = """export interface ErrorResponse {
  error: string
  message: string
  errors?: Array<{
    field: string
    message: string
    code?: string
  }>
}
"""


@pytest.fixture
def v7_package_dir(tmp_path: Path) -> Path:
    """Write a model-only package with enums declared beside their records."""
    root = tmp_path / "v7-client"
    models = root / "src" / "models"
    models.mkdir(parents=True)
    (models / "User.ts").write_text(V7_USER_MODEL_TS, encoding="utf-8")
    (models / "ErrorResponse.ts").write_text(V7_ERROR_MODEL_TS, encoding="utf-8")
    return root

"""Configuration management for mockseed."""

from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IdFormat(str, Enum):
    """Shapes an identifier value can take."""

    SEQUENTIAL = "sequential"  # prefix + (index + 1)
    UUID = "uuid"
    ULID = "ulid"
    NANOID = "nanoid"
    NUMERIC = "numeric"  # index + 1 as an integer
    HASH = "hash"


class IdOverride(BaseModel):
    """Per-field identifier settings."""

    format: IdFormat | None = None
    prefix: str | None = None
    fixed_value: str | int | None = None


class MockIdConfig(BaseModel):
    """How identifier fields are recognised and filled."""

    field_patterns: list[str] = Field(
        default_factory=lambda: ["id", "uuid", "key", "_id"],
        description="Field names treated as identifiers on exact match",
    )
    field_suffixes: list[str] = Field(
        default_factory=lambda: ["_id", "Id", "_key", "Key", "_uuid", "Uuid"],
        description="Field name suffixes treated as identifiers",
    )
    format: IdFormat = Field(default=IdFormat.UUID, description="Default identifier format")
    prefix: str = Field(default="id-", description="Prefix for sequential identifiers")
    field_overrides: dict[str, IdFormat | IdOverride] = Field(
        default_factory=dict,
        description="Field name -> format, or full override with prefix/fixed value",
    )

    def override_for(self, field_name: str) -> IdOverride | None:
        """Normalize the override for a field, if one is configured."""
        override = self.field_overrides.get(field_name)
        if override is None:
            return None
        if isinstance(override, IdOverride):
            return override
        return IdOverride(format=override)


class MockPaginationConfig(BaseModel):
    """Snapshot and page window settings."""

    cache: bool = Field(default=True, description="Keep snapshots between requests")
    cache_ttl: float = Field(default=30 * 60, gt=0, description="Snapshot TTL (seconds)")
    default_total: int = Field(default=100, ge=0, description="Items per synthetic collection")
    default_limit: int = Field(default=20, ge=1, description="Page size when none is requested")
    include_snapshot_id: bool = Field(
        default=False,
        description="Expose the snapshot handle as _snapshotId in list responses",
    )


class MockCursorConfig(BaseModel):
    """Cursor encoding settings."""

    enable_expiry: bool = Field(default=True, description="Reject cursors older than cursor_ttl")
    cursor_ttl: float = Field(default=60 * 60, gt=0, description="Cursor TTL (seconds)")
    include_sort_info: bool = Field(
        default=False, description="Carry sortField/sortOrder inside cursors"
    )
    backward_param: str = Field(
        default="isBackward", description="Query parameter requesting backward paging"
    )


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MOCKSEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    default_seed: int = Field(default=1, description="Seed used when a request supplies none")

    # Synthesis limits
    max_openapi_depth: int = Field(default=5, ge=1, description="OpenAPI nesting limit")
    max_proto_depth: int = Field(default=3, ge=1, description="Protobuf message nesting limit")
    max_model_depth: int = Field(default=5, ge=1, description="Client model nesting limit")
    openapi_optional_omit_rate: float = Field(
        default=0.5,
        description="Probability that a non-required OpenAPI property is left out",
    )
    client_optional_omit_rate: float = Field(
        default=0.3,
        description="Probability that an optional client model field is left out",
    )

    snapshot_sweep_interval: float = Field(
        default=5 * 60, gt=0, description="Seconds between expired snapshot sweeps"
    )

    ids: MockIdConfig = Field(default_factory=MockIdConfig)
    pagination: MockPaginationConfig = Field(default_factory=MockPaginationConfig)
    cursor: MockCursorConfig = Field(default_factory=MockCursorConfig)

    @model_validator(mode="after")
    def validate_omit_rates(self) -> "Settings":
        """Omit rates are probabilities."""
        for name in ("openapi_optional_omit_rate", "client_optional_omit_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings loaded from the environment."""
    return Settings()

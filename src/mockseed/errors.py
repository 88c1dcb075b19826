"""Custom exceptions for mockseed."""


class MockSeedError(Exception):
    """Base exception for all mockseed errors."""

    def __init__(self, message: str, *, details: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SchemaLoadError(MockSeedError):
    """Raised when a schema document or client package cannot be read at all."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(
            f"Failed to load schema source {source}: {reason}",
            details={"source": source, "reason": reason},
        )


class UnknownModelError(MockSeedError):
    """Raised when a provider is requested for a model the schema does not declare."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(
            f"{kind} model not found: {name}",
            details={"kind": kind, "name": name},
        )


class CursorDecodeError(MockSeedError):
    """Raised by a single cursor decoder when the token is not in its encoding."""

"""mockseed - deterministic mock API responses.

Synthesizes reproducible responses from OpenAPI documents, Protobuf
descriptors and generated HTTP client packages, with stable page and
cursor pagination over data that is never stored.
"""

import logging

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog to print directly, dropping events below ``level``."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=True, pad_event=30),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


configure_logging()

logging.basicConfig(
    format="%(message)s",
    level=logging.INFO,
    handlers=[logging.StreamHandler()],
)

from mockseed.config import (  # noqa: E402 - must come after structlog config
    IdFormat,
    MockCursorConfig,
    MockIdConfig,
    MockPaginationConfig,
    Settings,
    get_settings,
)
from mockseed.providers import (  # noqa: E402
    ItemProvider,
    OpenAPIItemProvider,
    ProtoItemProvider,
    SchemaItemProvider,
)
from mockseed.state import MockState  # noqa: E402

__version__ = "0.1.0"
__all__ = [
    "configure_logging",
    # Config
    "IdFormat",
    "MockCursorConfig",
    "MockIdConfig",
    "MockPaginationConfig",
    "Settings",
    "get_settings",
    # Providers
    "ItemProvider",
    "OpenAPIItemProvider",
    "ProtoItemProvider",
    "SchemaItemProvider",
    # State
    "MockState",
    "__version__",
]

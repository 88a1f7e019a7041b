"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the lookup server needs to know at startup, in one dataclass.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION PRIORITY                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Command-line arguments (highest)                               │
    │      └── lookup-server -a s3cret -t 200                             │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── LOOKUP_AUTH_TOKEN=s3cret lookup-server                     │
    │                                                                      │
    │   3. Dataclass defaults (lowest)                                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAIL FAST
=============================================================================

validate() runs before a socket is opened. A route with two segments or a
missing token stops the process with a ConfigError; there is no partially
started server answering with half a configuration.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .lookup.counter import CONCURRENCY_LIMIT


DEFAULT_ROUTE = "/items/"
DEFAULT_CONTENT_TYPE = "text/json"
LOG_FORMATS = ("text", "json")


class ConfigError(ValueError):
    """Invalid startup configuration. Always fatal."""


def normalize_route(route: str) -> str:
    """
    Reduce a route option to its single path segment.

    The option may be given with or without slashes; it must name exactly
    one top-level segment.

        normalize_route("/items/")   → "items"
        normalize_route("items")     → "items"
        normalize_route(" /items ")  → "items"
        normalize_route("/a/b/")     → ConfigError
        normalize_route("/")         → ConfigError

    Raises:
        ConfigError: If the route has no segment or more than one.
    """
    route = route.strip()

    if not route.startswith("/"):
        route = "/" + route
    if not route.endswith("/"):
        route = route + "/"

    # "/items/".split("/") → ["", "items", ""]
    parts = route.split("/")
    if len(parts) > 3:
        raise ConfigError(
            "lookup-server routes must be top level routes with only one component"
        )

    segment = parts[1].strip()
    if not segment:
        raise ConfigError("route must name a path segment, e.g. /items/")

    return segment


@dataclass
class ServerConfig:
    """
    Configuration for the lookup server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    LOOKUP BEHAVIOUR
    - route, auth_token, processing_delay_ms, concurrency_limit,
      content_type

    NETWORK
    - host, port, backlog, buffer_size, timeout

    HTTP
    - keep_alive, keep_alive_timeout, max_request_size, server_name

    THREADING
    - min_workers, max_workers

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOOKUP BEHAVIOUR
    # ─────────────────────────────────────────────────────────────────────

    route: str = DEFAULT_ROUTE
    """
    Top-level path segment served, e.g. "/items/" serves /items/:id.
    Normalized to the bare segment ("items") by __post_init__.
    """

    auth_token: str = ""
    """
    Expected Authorization header value, compared verbatim. Required.
    """

    processing_delay_ms: int = 0
    """
    Simulated processing time per admitted, authorized request.
    """

    concurrency_limit: int = CONCURRENCY_LIMIT
    """
    Maximum simultaneously admitted requests. The command line keeps the
    fixed value of 5; embedders and tests may change it.
    """

    content_type: str = DEFAULT_CONTENT_TYPE
    """
    Content-Type on every response. "text/json" is not a registered media
    type but is what existing client fixtures expect; set
    "application/json" for strict clients.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    Bind address. "0.0.0.0" for containers.
    """

    port: int = 8080
    """
    Listen port. 0 lets the OS pick a free one (used by the tests).
    """

    backlog: int = 128
    buffer_size: int = 8192

    timeout: Optional[float] = 30.0
    """
    Socket read timeout in seconds for the first request on a connection.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024
    server_name: str = "lookup-server/1.0"

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 8
    """
    Worker threads started up front. Each in-flight request occupies one
    worker for the whole processing delay, so this should stay above
    concurrency_limit or clients will see queueing instead of 429s.
    """

    max_workers: int = 32

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"

    def __post_init__(self):
        self.route = normalize_route(self.route)
        self.auth_token = self.auth_token.strip()

    @property
    def processing_delay(self) -> float:
        """Processing delay in seconds."""
        return self.processing_delay_ms / 1000.0

    @classmethod
    def from_env(cls, **overrides) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        LOOKUP_HOST                 Bind address (default: 127.0.0.1)
        LOOKUP_PORT                 Listen port (default: 8080)
        LOOKUP_ROUTE                Served route (default: /items/)
        LOOKUP_AUTH_TOKEN           Expected Authorization value
        LOOKUP_PROCESSING_DELAY_MS  Processing delay (default: 0)
        LOOKUP_WORKERS              Max worker threads (default: 32)
        LOOKUP_LOG_LEVEL            Logging level (default: INFO)
        LOOKUP_LOG_FORMAT           text or json (default: text)

        =====================================================================

        Args:
            **overrides: Field values that win over the environment
                         (the CLI passes its explicit arguments here).

        Raises:
            ConfigError: If a numeric variable is not a number, or the
                         route is invalid.
        """
        try:
            values = dict(
                host=os.getenv("LOOKUP_HOST", "127.0.0.1"),
                port=int(os.getenv("LOOKUP_PORT", "8080")),
                route=os.getenv("LOOKUP_ROUTE", DEFAULT_ROUTE),
                auth_token=os.getenv("LOOKUP_AUTH_TOKEN", ""),
                processing_delay_ms=int(os.getenv("LOOKUP_PROCESSING_DELAY_MS", "0")),
                max_workers=int(os.getenv("LOOKUP_WORKERS", "32")),
                log_level=os.getenv("LOOKUP_LOG_LEVEL", "INFO"),
                log_format=os.getenv("LOOKUP_LOG_FORMAT", "text"),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid numeric environment value: {e}") from e

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: Describing the first problem found.
        """
        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not self.auth_token:
            raise ConfigError("An authorization token is required")

        if self.processing_delay_ms < 0:
            raise ConfigError("processing_delay_ms must be >= 0")

        if self.concurrency_limit < 1:
            raise ConfigError("concurrency_limit must be >= 1")

        if self.min_workers < 1:
            raise ConfigError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ConfigError("max_workers must be >= min_workers")

        if self.max_workers <= self.concurrency_limit:
            raise ConfigError(
                f"max_workers must be > concurrency_limit ({self.concurrency_limit})"
            )

        if self.buffer_size < 1024:
            raise ConfigError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be > 0")

        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"log_format must be one of {', '.join(LOG_FORMATS)}")

"""
=============================================================================
LOOKUPSERVER - Inventory Lookup Test Double
=============================================================================

A small HTTP/1.1 server that stands in for an inventory lookup service
while a client is being tested. It answers GET /<route>/:id and lets the
test decide three things from the outside:

    authorization    only one Authorization header value is accepted
    latency          every admitted request takes processing_delay_ms
    capacity         at most 5 requests are in flight; the 6th gets 429

    ┌─────────────────────────────────────────────────────────────────────┐
    │   request ──► route? ──► slot free? ──► token? ──► sleep ──► id?   │
    │                 │            │             │                  │     │
    │                404          429           403           200 / 404  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    lookupserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m lookupserver)
    ├── server.py            # LookupServer: transport + handler
    ├── config.py            # ServerConfig dataclass
    ├── lookup/              # The lookup behaviour
    │   ├── counter.py       # InFlightCounter (admission control)
    │   ├── paths.py         # Path segment parsing
    │   ├── outcomes.py      # Outcome → status mapping
    │   └── handler.py       # LookupHandler decision sequence
    ├── core/                # Sockets and threads
    │   ├── socket_server.py
    │   ├── connection.py
    │   └── thread_pool.py
    ├── http/                # HTTP/1.1 messages
    │   ├── request.py
    │   ├── response.py
    │   └── status_codes.py
    └── middleware/
        ├── base.py
        └── logging.py       # Access log

=============================================================================
QUICK START
=============================================================================

    from lookupserver import LookupServer, ServerConfig

    server = LookupServer(ServerConfig(
        route="/items/",
        auth_token="s3cret",
        processing_delay_ms=200,
    ))
    server.run()

    $ curl -H "Authorization: s3cret" localhost:8080/items/42
    {"result":"Item is in inventory."}

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig, ConfigError
from .lookup import LookupHandler, InFlightCounter, Outcome
from .server import LookupServer

__all__ = [
    "LookupServer",
    "ServerConfig",
    "ConfigError",
    "LookupHandler",
    "InFlightCounter",
    "Outcome",
    "__version__",
]

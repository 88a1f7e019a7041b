"""
=============================================================================
ADMISSION-CONTROLLED LOOKUP HANDLER
=============================================================================

This is the whole point of the server. Everything else in the package
exists to deliver parsed requests here and to write the answers back.

=============================================================================
DECISION ORDER
=============================================================================

Each step is a terminal exit; nothing falls through to the next step.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   1. ROUTE MATCH        first segment != route?  ──► 404            │
    │          │               (free: no slot taken)                       │
    │          ▼                                                           │
    │   2. ADMISSION          counter.try_acquire()?   ──► 429            │
    │          │               (increment undone inside try_acquire)       │
    │          ▼                                                           │
    │   ┌─── slot held ────────────────────────────────────────────────┐  │
    │   │                                                               │  │
    │   │  3. AUTHORIZATION   header != token?        ──► 403          │  │
    │   │          │                                                    │  │
    │   │          ▼                                                    │  │
    │   │  4. PROCESSING      sleep(processing_delay)                   │  │
    │   │          │           (this worker only)                       │  │
    │   │          ▼                                                    │  │
    │   │  5. COMPLETION      id present?  ──► 200 / 404               │  │
    │   │                                                               │  │
    │   └─── finally: counter.release()  (exactly once) ───────────────┘  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY THE DELAY DOES NOT BLOCK OTHER REQUESTS
=============================================================================

Each connection runs on its own worker thread from the ThreadPool. The
sleep in step 4 parks that thread only; the other workers keep admitting,
rejecting and answering requests. The counter lock is not held while
sleeping, so a sixth request arriving during the delay sees five held
slots and is answered 429 straight away.

=============================================================================
"""

import logging
import time
from typing import Callable, Optional, TYPE_CHECKING

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from .counter import InFlightCounter
from .outcomes import Outcome, ITEM_FOUND_MESSAGE
from .paths import split_path

if TYPE_CHECKING:
    from ..config import ServerConfig


logger = logging.getLogger(__name__)


class LookupHandler:
    """
    Classifies lookup requests and enforces the concurrency ceiling.

    One instance serves the whole process. Its InFlightCounter is the only
    state shared between requests; it is created here (or injected) and
    handed to nobody else.

    Usage:
        handler = LookupHandler(config)
        response = handler(request)        # or handler.handle(request)

    The instance is callable with the NextHandler signature, so it can sit
    at the end of a MiddlewarePipeline.
    """

    def __init__(
        self,
        config: "ServerConfig",
        counter: Optional[InFlightCounter] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            config: Validated server configuration (route, token, delay).
            counter: Shared admission counter. A fresh one sized from
                     config.concurrency_limit is created when omitted.
            sleep: Function used for the simulated processing delay.
                   Tests inject a fake to observe or control the wait.
        """
        self.config = config
        self.counter = counter or InFlightCounter(config.concurrency_limit)
        self._sleep = sleep

    @property
    def processing_delay(self) -> float:
        """Simulated processing time in seconds."""
        return self.config.processing_delay_ms / 1000.0

    @property
    def in_flight(self) -> int:
        """Requests currently holding a slot."""
        return self.counter.value

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    def classify(self, request: HTTPRequest) -> Outcome:
        """
        Run the five-step decision sequence for one request.

        This is where the counter is touched, and the only place: the
        slot taken in step 2 is released in the ``finally`` below, so it
        is returned exactly once on the 403, 404 and 200 paths alike.

        Args:
            request: Parsed request delivered by the transport.

        Returns:
            The terminal Outcome.
        """
        segments = split_path(request.path)

        # 1. Route match - costs nothing
        if segments.first != self.config.route:
            return Outcome.ROUTE_MISMATCH

        # 2. Admission
        if not self.counter.try_acquire():
            return Outcome.OVER_CAPACITY

        try:
            # 3. Authorization: verbatim comparison, missing header is ""
            if request.get_header("authorization") != self.config.auth_token:
                return Outcome.UNAUTHORIZED

            # 4. Simulated processing
            delay = self.processing_delay
            if delay > 0:
                self._sleep(delay)

            # 5. Completion
            if segments.second:
                return Outcome.FULFILLED
            return Outcome.MISSING_RESOURCE
        finally:
            self.counter.release()

    # =========================================================================
    # RESPONSE
    # =========================================================================

    def respond(self, outcome: Outcome) -> HTTPResponse:
        """Build the HTTP response for an outcome."""
        builder = (ResponseBuilder()
            .status(outcome.status)
            .content_type(self.config.content_type))

        if outcome.has_body:
            builder.json(
                {"result": ITEM_FOUND_MESSAGE},
                content_type=self.config.content_type,
            )

        return builder.build()

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Classify the request and answer it."""
        outcome = self.classify(request)
        logger.debug(
            f"{request.method} {request.path} -> {outcome.value} "
            f"({int(outcome.status)}), in flight: {self.in_flight}"
        )
        return self.respond(outcome)

    def __call__(self, request: HTTPRequest) -> HTTPResponse:
        return self.handle(request)

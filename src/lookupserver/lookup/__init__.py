"""
Lookup test-double: admission control, authorization and simulated latency.

    counter.py   InFlightCounter - the one piece of shared state
    paths.py     split_path() - explicit path segment parsing
    outcomes.py  Outcome - the five terminal answers and their statuses
    handler.py   LookupHandler - the decision sequence tying it together
"""

from .counter import InFlightCounter, CounterUnderflowError, CONCURRENCY_LIMIT
from .paths import PathSegments, split_path
from .outcomes import Outcome, ITEM_FOUND_MESSAGE
from .handler import LookupHandler

__all__ = [
    "InFlightCounter",
    "CounterUnderflowError",
    "CONCURRENCY_LIMIT",
    "PathSegments",
    "split_path",
    "Outcome",
    "ITEM_FOUND_MESSAGE",
    "LookupHandler",
]

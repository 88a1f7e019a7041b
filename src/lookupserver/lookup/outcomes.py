"""
Terminal outcomes of the lookup handler.

Every request ends in exactly one of these. None of them is an error in
the exception sense: they are the answers the test-double exists to give.

    ┌──────────────────┬────────┬──────────────────────────────────────────┐
    │ Outcome          │ Status │ Slot accounting                          │
    ├──────────────────┼────────┼──────────────────────────────────────────┤
    │ ROUTE_MISMATCH   │  404   │ never acquired                           │
    │ OVER_CAPACITY    │  429   │ increment undone immediately             │
    │ UNAUTHORIZED     │  403   │ released right after the token check     │
    │ MISSING_RESOURCE │  404   │ released after the processing delay      │
    │ FULFILLED        │  200   │ released after the processing delay      │
    └──────────────────┴────────┴──────────────────────────────────────────┘
"""

from enum import Enum

from ..http.status_codes import HTTPStatus


ITEM_FOUND_MESSAGE = "Item is in inventory."


class Outcome(Enum):
    """How a lookup request was classified."""

    ROUTE_MISMATCH = "route_mismatch"
    OVER_CAPACITY = "over_capacity"
    UNAUTHORIZED = "unauthorized"
    MISSING_RESOURCE = "missing_resource"
    FULFILLED = "fulfilled"

    @property
    def status(self) -> HTTPStatus:
        """HTTP status code sent for this outcome."""
        return _OUTCOME_STATUS[self]

    @property
    def has_body(self) -> bool:
        """Only a fulfilled lookup carries a JSON body."""
        return self is Outcome.FULFILLED

    @property
    def admitted(self) -> bool:
        """Whether a request with this outcome held a concurrency slot."""
        return self in (
            Outcome.UNAUTHORIZED,
            Outcome.MISSING_RESOURCE,
            Outcome.FULFILLED,
        )


_OUTCOME_STATUS = {
    Outcome.ROUTE_MISMATCH: HTTPStatus.NOT_FOUND,
    Outcome.OVER_CAPACITY: HTTPStatus.TOO_MANY_REQUESTS,
    Outcome.UNAUTHORIZED: HTTPStatus.FORBIDDEN,
    Outcome.MISSING_RESOURCE: HTTPStatus.NOT_FOUND,
    Outcome.FULFILLED: HTTPStatus.OK,
}

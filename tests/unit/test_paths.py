"""
Unit tests for path segment parsing and outcomes.
"""

import pytest

from lookupserver.http import HTTPStatus
from lookupserver.lookup import split_path, Outcome


class TestSplitPath:

    @pytest.mark.parametrize("path, first, second", [
        ("/items/123", "items", "123"),
        ("/items/", "items", ""),
        ("/items", "items", ""),
        ("/", "", ""),
        ("", "", ""),
        ("/items/123/extra", "items", "123"),
        ("//items/1", "", "items"),
    ])
    def test_segments(self, path, first, second):
        segments = split_path(path)

        assert segments.first == first
        assert segments.second == second

    def test_keeps_empty_segments(self):
        assert tuple(split_path("/items/")) == ("items", "")
        assert len(split_path("/items")) == 1

    def test_get_out_of_range(self):
        assert split_path("/items").get(5) == ""


class TestOutcome:

    @pytest.mark.parametrize("outcome, status", [
        (Outcome.ROUTE_MISMATCH, HTTPStatus.NOT_FOUND),
        (Outcome.OVER_CAPACITY, HTTPStatus.TOO_MANY_REQUESTS),
        (Outcome.UNAUTHORIZED, HTTPStatus.FORBIDDEN),
        (Outcome.MISSING_RESOURCE, HTTPStatus.NOT_FOUND),
        (Outcome.FULFILLED, HTTPStatus.OK),
    ])
    def test_status(self, outcome, status):
        assert outcome.status == status

    def test_only_fulfilled_has_body(self):
        assert [o for o in Outcome if o.has_body] == [Outcome.FULFILLED]

    def test_admitted(self):
        assert not Outcome.ROUTE_MISMATCH.admitted
        assert not Outcome.OVER_CAPACITY.admitted
        assert Outcome.UNAUTHORIZED.admitted
        assert Outcome.MISSING_RESOURCE.admitted
        assert Outcome.FULFILLED.admitted

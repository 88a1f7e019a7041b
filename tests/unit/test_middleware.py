"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from lookupserver.http import HTTPRequest, HTTPResponse, HTTPStatus, ResponseBuilder
from lookupserver.middleware import (
    Middleware,
    MiddlewarePipeline,
    LoggingMiddleware,
    RequestLog,
)

from conftest import make_request


def ok_handler(request: HTTPRequest) -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.OK).json({"ok": True}).build()


class Recorder(Middleware):
    def __init__(self, label: str, calls: list):
        self.label = label
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.label}:in")
        response = next(request)
        self.calls.append(f"{self.label}:out")
        return response


class ShortCircuit(Middleware):
    def __call__(self, request, next):
        return ResponseBuilder().status(HTTPStatus.FORBIDDEN).build()


class TestMiddlewarePipeline:

    def test_order(self):
        calls = []
        pipeline = MiddlewarePipeline()
        pipeline.add(Recorder("a", calls)).add(Recorder("b", calls))

        response = pipeline.wrap(ok_handler)(make_request("/items/1"))

        assert response.status == HTTPStatus.OK
        assert calls == ["a:in", "b:in", "b:out", "a:out"]

    def test_short_circuit(self):
        pipeline = MiddlewarePipeline().add(ShortCircuit())

        assert pipeline.wrap(ok_handler)(make_request("/")).status == HTTPStatus.FORBIDDEN

    def test_empty_pipeline(self):
        pipeline = MiddlewarePipeline()

        assert pipeline.wrap(ok_handler) is ok_handler
        assert len(pipeline) == 0

    def test_name(self):
        assert ShortCircuit().name == "ShortCircuit"


class TestLoggingMiddleware:

    def test_text_log_line(self, caplog):
        middleware = LoggingMiddleware()

        with caplog.at_level(logging.INFO, logger="lookupserver.access"):
            response = middleware(make_request("/items/1"), ok_handler)

        assert "X-Request-ID" in response.headers
        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert '"GET /items/1" 200 11' in message
        assert message.startswith("127.0.0.1 - - [")

    def test_json_log_line(self, caplog):
        middleware = LoggingMiddleware(log_format="json")

        with caplog.at_level(logging.INFO, logger="lookupserver.access"):
            response = middleware(make_request("/items/1"), ok_handler)

        entry = json.loads(caplog.records[0].getMessage())
        assert entry["path"] == "/items/1"
        assert entry["status_code"] == 200
        assert entry["request_id"] == response.headers["X-Request-ID"]

    def test_skip_paths(self, caplog):
        middleware = LoggingMiddleware(skip_paths=["/items/1"])

        with caplog.at_level(logging.INFO, logger="lookupserver.access"):
            middleware(make_request("/items/1"), ok_handler)

        assert caplog.records == []

    def test_no_request_id(self):
        middleware = LoggingMiddleware(include_request_id=False)

        response = middleware(make_request("/items/1"), ok_handler)

        assert "X-Request-ID" not in response.headers

    def test_handler_error_logged_and_reraised(self, caplog):
        def failing(request):
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="lookupserver.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(make_request("/items/1"), failing)

        assert "RuntimeError: boom" in caplog.records[0].getMessage()


class TestRequestLog:

    def test_to_dict_rounds_duration(self):
        entry = RequestLog(
            request_id="abc",
            method="GET",
            path="/items/1",
            client_ip="127.0.0.1",
            user_agent="-",
            status_code=429,
            content_length=0,
            duration_ms=1.23456,
            timestamp="19/Oct/2026:12:00:00 +0000",
        )

        assert entry.to_dict()["duration_ms"] == 1.23
        assert entry.to_text() == (
            '127.0.0.1 - - [19/Oct/2026:12:00:00 +0000] "GET /items/1" 429 0 1.23ms'
        )

"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from userapi.http import HTTPRequest, HTTPStatus, ResponseBuilder, ok
from userapi.middleware import LoggingMiddleware, Middleware, MiddlewarePipeline, RequestLog


def make_request(path: str = "/users/1") -> HTTPRequest:
    return HTTPRequest(method="GET", path=path, client_address=("10.0.0.5", 4242))


class Recorder(Middleware):
    """Appends its tag on the way in and out."""

    def __init__(self, tag: str, calls: list):
        self.tag = tag
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.tag}:in")
        response = next(request)
        self.calls.append(f"{self.tag}:out")
        return response


class ShortCircuit(Middleware):
    def __call__(self, request, next):
        return ResponseBuilder().status(HTTPStatus.SERVICE_UNAVAILABLE).build()


class TestMiddlewarePipeline:

    def test_order(self):
        calls = []
        pipeline = MiddlewarePipeline()
        pipeline.add(Recorder("a", calls)).add(Recorder("b", calls))

        def handler(request):
            calls.append("handler")
            return ok("done")

        response = pipeline.wrap(handler)(make_request())

        assert response.body == b"done"
        assert calls == ["a:in", "b:in", "handler", "b:out", "a:out"]
        assert len(pipeline) == 2
        assert [m.name for m in pipeline] == ["Recorder", "Recorder"]

    def test_empty_pipeline_is_handler(self):
        def handler(request):
            return ok("x")

        assert MiddlewarePipeline().wrap(handler) is handler

    def test_short_circuit(self):
        called = []
        pipeline = MiddlewarePipeline().add(ShortCircuit())

        response = pipeline.wrap(lambda r: called.append(r))(make_request())

        assert response.status == HTTPStatus.SERVICE_UNAVAILABLE
        assert called == []

    def test_middleware_is_abstract(self):
        with pytest.raises(TypeError):
            Middleware()


class TestLoggingMiddleware:

    def test_adds_request_id(self):
        response = LoggingMiddleware()(make_request(), lambda r: ok("x"))

        assert len(response.headers["X-Request-ID"]) == 8

    def test_request_id_can_be_disabled(self):
        response = LoggingMiddleware(include_request_id=False)(make_request(), lambda r: ok("x"))
        assert "X-Request-ID" not in response.headers

    def test_text_log_line(self, caplog):
        caplog.set_level(logging.INFO, logger="userapi.access")

        LoggingMiddleware()(make_request(), lambda r: ok("hello"))

        record = caplog.records[-1]
        assert record.name == "userapi.access"
        assert record.levelno == logging.INFO
        assert '10.0.0.5 "GET /users/1" 200 5B' in record.getMessage()

    def test_json_log_line(self, caplog):
        caplog.set_level(logging.INFO, logger="userapi.access")

        response = LoggingMiddleware(log_format="json")(make_request(), lambda r: ok("hello"))

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["method"] == "GET"
        assert entry["path"] == "/users/1"
        assert entry["status_code"] == 200
        assert entry["client_ip"] == "10.0.0.5"
        assert entry["request_id"] == response.headers["X-Request-ID"]

    def test_errors_logged_as_warning(self, caplog):
        caplog.set_level(logging.INFO, logger="userapi.access")

        def missing(request):
            return ResponseBuilder().status(HTTPStatus.NOT_FOUND).json({"error": "User not found"}).build()

        LoggingMiddleware()(make_request(), missing)

        assert caplog.records[-1].levelno == logging.WARNING

    def test_skip_paths(self, caplog):
        caplog.set_level(logging.INFO, logger="userapi.access")

        response = LoggingMiddleware(skip_paths=["/health"])(make_request("/health"), lambda r: ok("up"))

        assert caplog.records == []
        assert "X-Request-ID" in response.headers

    def test_exception_logged_and_reraised(self, caplog):
        caplog.set_level(logging.INFO, logger="userapi.access")

        def broken(request):
            raise RuntimeError("kaput")

        with pytest.raises(RuntimeError, match="kaput"):
            LoggingMiddleware()(make_request(), broken)

        assert caplog.records[-1].levelno == logging.ERROR
        assert "RuntimeError: kaput" in caplog.records[-1].getMessage()


class TestRequestLog:

    def test_to_dict_rounds_duration(self):
        entry = RequestLog(
            request_id="abc",
            method="GET",
            path="/health",
            client_ip="",
            status_code=200,
            content_length=0,
            duration_ms=1.23456,
            timestamp="2026-10-19T09:30:00+00:00",
        )
        assert entry.to_dict()["duration_ms"] == 1.23
        assert entry.to_text().startswith('- "GET /health" 200')

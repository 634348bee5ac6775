"""
Unit tests for HTTP request parsing.
"""

import pytest

from userapi.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/users/1"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.get_header("Host") == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == "application/json"
        assert request.is_keep_alive is True

    def test_parse_query_params(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.get_query("verbose") == "1"
        assert request.get_query("missing") is None
        assert request.get_query("missing", "x") == "x"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/users"
        assert request.content_type == "application/json"
        assert request.content_length == len(request.body)
        assert request.json == {"name": "Ann", "email": "ann@x.com"}
        assert request.is_keep_alive is False

    def test_body_limited_to_content_length(self):
        data = (
            b"POST /users HTTP/1.1\r\n"
            b"Content-Length: 2\r\n"
            b"\r\n"
            b"{}GET /health HTTP/1.1\r\n\r\n"
        )
        request = parse_request(data)
        assert request.body == b"{}"

    def test_duplicate_headers_are_joined(self):
        data = (
            b"GET /health HTTP/1.1\r\n"
            b"Accept: text/plain\r\n"
            b"accept: application/json\r\n"
            b"\r\n"
        )
        request = parse_request(data)
        assert request.headers["accept"] == "text/plain, application/json"

    def test_continuation_line(self):
        data = (
            b"GET /health HTTP/1.1\r\n"
            b"X-Note: first\r\n"
            b"\tsecond\r\n"
            b"\r\n"
        )
        request = parse_request(data)
        assert request.headers["x-note"] == "first second"

    def test_percent_encoded_path(self):
        request = parse_request(b"GET /users/%31 HTTP/1.1\r\n\r\n")
        assert request.path == "/users/1"

    def test_http10_defaults_to_close(self):
        request = parse_request(b"GET /health HTTP/1.0\r\n\r\n")
        assert request.is_keep_alive is False

        request = parse_request(b"GET /health HTTP/1.0\r\nConnection: keep-alive\r\n\r\n")
        assert request.is_keep_alive is True


class TestRequestParserErrors:
    """Malformed requests and the status codes they map to."""

    def test_missing_header_terminator(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET /health HTTP/1.1\r\nHost: x\r\n")
        assert exc_info.value.status_code == 400

    def test_invalid_request_line(self):
        with pytest.raises(HTTPParseError, match="Invalid request line"):
            parse_request(b"GARBAGE\r\n\r\n")

    def test_unknown_method(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"BREW /pot HTTP/1.1\r\n\r\n")
        assert exc_info.value.status_code == 405

    def test_unsupported_version(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET /health HTTP/2.0\r\n\r\n")
        assert exc_info.value.status_code == 505

    def test_path_traversal_rejected(self):
        with pytest.raises(HTTPParseError, match="contains .."):
            parse_request(b"GET /users/../etc HTTP/1.1\r\n\r\n")

    def test_invalid_content_length(self):
        with pytest.raises(HTTPParseError, match="Invalid Content-Length"):
            parse_request(b"POST /users HTTP/1.1\r\nContent-Length: abc\r\n\r\n")

    def test_negative_content_length(self):
        with pytest.raises(HTTPParseError, match="Invalid Content-Length"):
            parse_request(b"POST /users HTTP/1.1\r\nContent-Length: -1\r\n\r\n")

    def test_incomplete_body(self):
        with pytest.raises(HTTPParseError, match="Incomplete body"):
            parse_request(b"POST /users HTTP/1.1\r\nContent-Length: 10\r\n\r\n{}")

    def test_request_too_large(self):
        data = b"POST /users HTTP/1.1\r\nContent-Length: 100\r\n\r\n" + b"x" * 100
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(data, max_size=64)
        assert exc_info.value.status_code == 413


class TestHTTPRequest:
    """Tests for HTTPRequest convenience properties."""

    def test_json_empty_body_is_none(self):
        assert HTTPRequest(method="POST", path="/users").json is None

    def test_json_invalid_body(self):
        request = HTTPRequest(method="POST", path="/users", body=b"{not json")
        with pytest.raises(HTTPParseError, match="Invalid JSON body"):
            request.json

    def test_json_invalid_utf8(self):
        request = HTTPRequest(method="POST", path="/users", body=b"\xff\xfe")
        with pytest.raises(HTTPParseError):
            request.json

    def test_content_type_strips_parameters(self):
        request = HTTPRequest(
            method="POST",
            path="/users",
            headers={"content-type": "Application/JSON; charset=utf-8"},
        )
        assert request.content_type == "application/json"

    def test_content_length_defaults_to_zero(self):
        request = HTTPRequest(method="GET", path="/", headers={"content-length": "nope"})
        assert request.content_length == 0

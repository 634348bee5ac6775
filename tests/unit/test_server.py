"""
Unit tests for HTTPServer dispatch and the application factory (no sockets).
"""

import json

from userapi import ServerConfig, UserStore, create_app
from userapi.http import HTTPRequest, HTTPStatus, ok
from userapi.server import HTTPServer


def request(method: str, path: str, body: bytes = b"") -> HTTPRequest:
    return HTTPRequest(method=method, path=path, body=body)


class TestHTTPServer:

    def test_handler_exception_becomes_500(self, config):
        server = HTTPServer(config)

        @server.get("/boom")
        def boom(request):
            raise KeyError("secret detail")

        response = server.handle_request(request("GET", "/boom"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.json == {"error": "Internal Server Error"}
        assert b"secret" not in response.body

    def test_middleware_added_after_first_request(self, config):
        server = HTTPServer(config)
        server.get("/x")(lambda r: ok("x"))
        server.handle_request(request("GET", "/x"))

        class Tag:
            name = "Tag"

            def __call__(self, request, next):
                response = next(request)
                response.headers["X-Tag"] = "1"
                return response

        server.use(Tag())

        assert server.handle_request(request("GET", "/x")).headers["X-Tag"] == "1"


class TestCreateApp:

    def test_routes(self, config):
        server = create_app(config)

        assert server.router.describe() == [
            "GET      /health",
            "POST     /users",
            "GET      /users/:id",
        ]

    def test_create_and_fetch(self, config):
        store = UserStore()
        server = create_app(config, store=store)

        body = json.dumps({"name": "Ann", "email": "ann@x.com"}).encode()
        created = server.handle_request(request("POST", "/users", body))
        fetched = server.handle_request(request("GET", "/users/1"))

        assert created.status == HTTPStatus.CREATED
        assert "X-Request-ID" in created.headers
        assert fetched.json["name"] == "Ann"
        assert len(store) == 1

    def test_hostile_inputs_are_client_errors(self, config):
        server = create_app(config)

        nested = server.handle_request(request("POST", "/users", b"[" * 100000))
        long_id = server.handle_request(request("GET", "/users/" + "1" * 5000))

        assert nested.status == HTTPStatus.BAD_REQUEST
        assert long_id.status == HTTPStatus.NOT_FOUND

    def test_unrouted_paths(self, config):
        server = create_app(config)

        assert server.handle_request(request("GET", "/nope")).status == HTTPStatus.NOT_FOUND
        response = server.handle_request(request("DELETE", "/users/1"))
        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET"

    def test_each_app_has_its_own_store(self, config):
        first = create_app(config)
        second = create_app(ServerConfig(port=0))
        first.handle_request(request("POST", "/users", b'{"name": "Ann"}'))

        assert second.handle_request(request("GET", "/users/1")).status == HTTPStatus.NOT_FOUND

"""
Unit tests for the demo application routes.
"""

import io

import pytest

from httprouter.app import CodeHandler, build_router
from httprouter.http.errors import NoRouteMatched
from httprouter.http.request import parse_request


@pytest.fixture
def router():
    return build_router()


def respond(router, raw: bytes) -> tuple[str, str]:
    """Route a raw request; return (status line, body)."""
    stream = io.BytesIO()
    router.handle(parse_request(raw), stream)
    head, _, body = stream.getvalue().decode().partition("\r\n\r\n")
    return head.split("\r\n")[0], body


class TestDemoRoutes:
    """Tests for the routes served by ``python -m httprouter``."""

    def test_home(self, router):
        status, body = respond(router, b"GET / HTTP/1.1\r\n\r\n")

        assert status == "HTTP/1.1 200 OK"
        assert body == "Hello, World!"

    def test_message(self, router):
        status, body = respond(router, b"GET /api/v1/hello HTTP/1.1\r\n\r\n")

        assert status == "HTTP/1.1 200 OK"
        assert body == "Hello, hello!"

    def test_code_with_query(self, router, sample_get_request: bytes):
        """The literal /api/v1/code route beats /api/v1/{message}."""
        _, body = respond(router, sample_get_request)

        assert body == "Code is: 42, version: 2.0!"

    def test_code_defaults(self, router):
        _, body = respond(router, b"GET /api/v1/code HTTP/1.1\r\n\r\n")

        assert body == "Code is: default, version: 1.0!"

    def test_code_decodes_query(self, router):
        _, body = respond(router, b"GET /api/v1/code?code=a%20b HTTP/1.1\r\n\r\n")

        assert body == "Code is: a b, version: 1.0!"

    def test_code_post_echoes_body(self, router, sample_post_request: bytes):
        _, body = respond(router, sample_post_request)

        assert body == "Code is: 7, version: 1.0, body: hello!"

    def test_unknown_path(self, router):
        with pytest.raises(NoRouteMatched):
            respond(router, b"GET /api/v2/x HTTP/1.1\r\n\r\n")

    def test_post_to_get_only_route(self, router):
        with pytest.raises(NoRouteMatched):
            respond(router, b"POST / HTTP/1.1\r\n\r\n")

    def test_route_order(self, router):
        assert [(r.method, r.pattern) for r in router.routes] == [
            ("GET", "/api/v1/code"),
            ("POST", "/api/v1/code"),
            ("GET", "/api/v1/{message}"),
            ("GET", "/"),
        ]


class TestCodeHandler:
    """Tests for CodeHandler configuration."""

    def test_default_version_configurable(self):
        handler = CodeHandler(default_version="9.9")
        assert handler.default_version == "9.9"
        assert handler.echo_body is False

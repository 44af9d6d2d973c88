"""
=============================================================================
httprouter
=============================================================================

A minimal HTTP/1.1 request router over raw TCP sockets.

    bytes ──► RequestParser ──► HTTPRequest ──► Router ──► handler
                                                              │
    bytes ◄───────────────── HTTPResponse.to_bytes() ◄────────┘

=============================================================================
QUICK START
=============================================================================

    from httprouter import HTTPServer, RouterBuilder, text_response

    def hello(match, stream):
        name = match.path_params["name"]
        text_response(200, f"Hello, {name}!").write_to(stream)

    router = RouterBuilder().get("/hello/{name}", hello).build()
    HTTPServer(router).run()          # http://127.0.0.1:4221/hello/world

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .http import (
    HTTPRequest,
    HTTPResponse,
    RouteHandler,
    RouteMatch,
    Router,
    RouterBuilder,
    text_response,
)
from .server import HTTPServer


__all__ = [
    "HTTPServer",
    "ServerConfig",
    "HTTPRequest",
    "HTTPResponse",
    "RouteHandler",
    "RouteMatch",
    "Router",
    "RouterBuilder",
    "text_response",
    "__version__",
]

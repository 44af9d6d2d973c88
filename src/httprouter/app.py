"""
Demo application: the routes ``python -m httprouter`` serves.

    GET  /                   → "Hello, World!"
    GET  /api/v1/{message}   → "Hello, <message>!"
    GET  /api/v1/code        → "Code is: <code>, version: <version>!"
    POST /api/v1/code        → "Code is: <code>, version: <version>, body: <body>!"

``/api/v1/code`` wins over ``/api/v1/{message}`` for GET because the
literal route is more specific, regardless of registration order.
"""

from typing import BinaryIO

from .http import HTTPStatus, RouteHandler, RouteMatch, Router, RouterBuilder, text_response


def home_handler(match: RouteMatch, stream: BinaryIO) -> None:
    text_response(HTTPStatus.OK, "Hello, World!").write_to(stream)


def message_handler(match: RouteMatch, stream: BinaryIO) -> None:
    message = match.path_params.get("message", "default")
    text_response(HTTPStatus.OK, f"Hello, {message}!").write_to(stream)


class CodeHandler(RouteHandler):
    """
    Echoes the ``code`` and ``version`` query parameters.

    Args:
        default_version: Used when the query has no ``version``.
        echo_body: Also echo the request body (the POST variant).
    """

    def __init__(self, default_version: str = "1.0", echo_body: bool = False):
        self.default_version = default_version
        self.echo_body = echo_body

    def handle(self, match: RouteMatch, stream: BinaryIO) -> None:
        code = match.query_params.get("code", "default")
        version = match.query_params.get("version", self.default_version)

        if self.echo_body:
            body = f"Code is: {code}, version: {version}, body: {match.request.body}!"
        else:
            body = f"Code is: {code}, version: {version}!"

        text_response(HTTPStatus.OK, body).write_to(stream)


def build_router() -> Router:
    return (RouterBuilder()
        .get("/", home_handler)
        .get("/api/v1/{message}", message_handler)
        .get("/api/v1/code", CodeHandler())
        .post("/api/v1/code", CodeHandler(echo_body=True))
        .build())

"""
=============================================================================
ERROR KINDS
=============================================================================

Every failure the router can produce while handling one connection is
an exception carrying the HTTP status code the client should receive.

    ┌──────────────────────────┬────────┬─────────────────────────────────┐
    │  Exception               │ Status │ What happens to the connection  │
    ├──────────────────────────┼────────┼─────────────────────────────────┤
    │  MalformedRequestLine    │  400   │ error response, then close      │
    │  MalformedContentLength  │  400   │ NOT raised: recorded on request │
    │  TruncatedBody           │  400   │ error response, then close      │
    │  NoRouteMatched          │  404   │ 404 response, then close        │
    │  HandlerIOError          │  500   │ logged, closed (socket is dead) │
    └──────────────────────────┴────────┴─────────────────────────────────┘

None of these ever reach the accept loop. A bad client only ever hurts
its own connection.

=============================================================================
"""

from typing import Optional


class RouterError(Exception):
    """
    Base class for per-connection failures.

    Carries the status code to answer with, in the same way the parser
    errors always have.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class HTTPParseError(RouterError):
    """
    Raised when the raw bytes cannot be turned into a request.

        400 Bad Request                      - Malformed syntax
        413 Payload Too Large                - Declared body over the limit
        431 Request Header Fields Too Large  - Line over the limit
    """

    status_code = 400


class MalformedRequestLine(HTTPParseError):
    """The first line did not carry method, path and version."""

    def __init__(self, line: str):
        super().__init__(f"Malformed request line: {line!r}")
        self.line = line


class MalformedContentLength(HTTPParseError):
    """
    Content-Length is present but is not a non-negative integer.

    The parser does not raise this. It treats the body as empty and
    appends the error to ``HTTPRequest.parse_errors`` so handlers and
    logs can still see it.
    """

    def __init__(self, value: str):
        super().__init__(f"Malformed Content-Length: {value!r}")
        self.value = value


class TruncatedBody(HTTPParseError):
    """The peer closed the stream before sending the declared body."""

    def __init__(self, expected: int, received: int):
        super().__init__(
            f"Truncated body: expected {expected} bytes, got {received}"
        )
        self.expected = expected
        self.received = received


class NoRouteMatched(RouterError):
    """No registered route accepts the request's method and path."""

    status_code = 404

    def __init__(self, method: str, path: str):
        super().__init__(f"No route matches {method} {path}")
        self.method = method
        self.path = path


class HandlerIOError(RouterError):
    """A handler failed while writing its response to the connection."""

    status_code = 500

    def __init__(self, pattern: str, cause: OSError):
        super().__init__(f"Handler for {pattern} failed to write: {cause}")
        self.pattern = pattern
        self.__cause__ = cause

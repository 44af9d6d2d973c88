"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that understands HTTP, and nothing that touches a socket:

    decoder.py       Percent-escape decoding for query strings
    request.py       Byte stream → HTTPRequest
    response.py      HTTPResponse → bytes
    router.py        Pattern table, matching and dispatch
    errors.py        Error kinds with their HTTP status codes
    status_codes.py  Reason phrases

=============================================================================
"""

from .decoder import decode
from .errors import (
    RouterError,
    HTTPParseError,
    MalformedRequestLine,
    MalformedContentLength,
    TruncatedBody,
    NoRouteMatched,
    HandlerIOError,
)
from .request import HTTPRequest, RequestParser, parse_request, parse_query_string
from .response import (
    HTTPResponse,
    text_response,
    error_response,
    bad_request,
    not_found,
    internal_error,
)
from .router import (
    Route,
    RouteMatch,
    RouteHandler,
    FunctionHandler,
    Router,
    RouterBuilder,
    specificity,
)
from .status_codes import HTTPStatus, reason_phrase


__all__ = [
    # URL decoding
    "decode",
    # Errors
    "RouterError",
    "HTTPParseError",
    "MalformedRequestLine",
    "MalformedContentLength",
    "TruncatedBody",
    "NoRouteMatched",
    "HandlerIOError",
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_request",
    "parse_query_string",
    # Response building
    "HTTPResponse",
    "text_response",
    "error_response",
    "bad_request",
    "not_found",
    "internal_error",
    # Routing
    "Route",
    "RouteMatch",
    "RouteHandler",
    "FunctionHandler",
    "Router",
    "RouterBuilder",
    "specificity",
    # Status codes
    "HTTPStatus",
    "reason_phrase",
]

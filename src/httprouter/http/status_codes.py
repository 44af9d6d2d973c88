"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes the router emits on its own, plus the reason phrase rule
used for EVERY code, including the ones handlers pick.

=============================================================================
REASON PHRASES BY RANGE
=============================================================================

The reason phrase is derived from the numeric range, not looked up per
code. Per RFC 7230 the phrase is informational only; clients key off
the number.

    ┌───────────┬──────────────────────────┐
    │  Code     │  Phrase                  │
    ├───────────┼──────────────────────────┤
    │  200-299  │  OK                      │
    │  300-399  │  Redirect                │
    │  404      │  Not Found               │
    │  400-499  │  Client Error            │
    │  500-599  │  Internal Server Error   │
    │  other    │  Unknown Status          │
    └───────────┴──────────────────────────┘

    HTTP/1.1 201 OK               ← yes, "OK" for every 2xx
    HTTP/1.1 301 Redirect
    HTTP/1.1 413 Client Error

=============================================================================
"""

from enum import IntEnum


def reason_phrase(code: int) -> str:
    """Return the reason phrase for ``code`` using the range table above."""
    if 200 <= code <= 299:
        return "OK"
    if 300 <= code <= 399:
        return "Redirect"
    if code == 404:
        return "Not Found"
    if 400 <= code <= 499:
        return "Client Error"
    if 500 <= code <= 599:
        return "Internal Server Error"
    return "Unknown Status"


class HTTPStatus(IntEnum):
    """
    Named status codes used by the server itself.

    Members are plain ints, so they can be passed anywhere a status code
    is expected:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        return reason_phrase(self.value)

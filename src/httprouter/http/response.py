"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them to wire format.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    HTTP/1.1 200 OK\r\n                  ← Status line                │
    │    Content-Type: text/plain\r\n         ← Handler headers            │
    │    Content-Length: 13\r\n               ← Added iff body non-empty   │
    │    \r\n                                 ← ALWAYS exactly one blank   │
    │    Hello, World!                        ← Body                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

With an empty body there is no Content-Length and nothing follows the
blank line:

    HTTP/1.1 204 OK\r\n
    \r\n

=============================================================================
FLUENT INTERFACE
=============================================================================

Every setter returns ``self`` so a response reads top to bottom:

    response = (HTTPResponse()
        .set_status(200)
        .add_header("Content-Type", "text/plain")
        .set_body("Hello, World!"))

    stream.write(response.to_bytes())

Content-Length is owned by the response. Handlers never set it; a
Content-Length added by hand is dropped at serialization so the header
can never disagree with the body.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import BinaryIO

from .status_codes import HTTPStatus, reason_phrase


@dataclass
class HTTPResponse:
    """
    An HTTP response under construction.

    Attributes:
        status: Numeric status code. The reason phrase is derived from it.
        headers: Header name → value. Adding an existing name overwrites.
        body: Response text. Encoded as UTF-8 on the wire.
        version: Protocol token for the status line.
    """

    status: int = HTTPStatus.OK
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """``HTTP/1.1 404 Not Found``"""
        return f"{self.version} {int(self.status)} {reason_phrase(int(self.status))}"

    def set_status(self, status: int) -> "HTTPResponse":
        """Set the status code. Returns self for chaining."""
        self.status = status
        return self

    def add_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header, replacing any earlier value. Returns self."""
        self.headers[name] = value
        return self

    def set_body(self, body: str) -> "HTTPResponse":
        """Set the body text. Returns self."""
        self.body = body
        return self

    def serialize(self) -> str:
        """
        Render the response as wire-format text.

        =====================================================================
        SERIALIZATION ORDER
        =====================================================================

            1. Status line
            2. Handler headers, in insertion order
            3. Content-Length (only for a non-empty body), always last
            4. Blank line
            5. Body

        =====================================================================
        """
        lines = [self.status_line]

        for name, value in self.headers.items():
            if name.lower() == "content-length":
                continue
            lines.append(f"{name}: {value}")

        if self.body:
            # Byte length, not character length: "é" is 2 bytes in UTF-8
            lines.append(f"Content-Length: {len(self.body.encode('utf-8'))}")

        return "\r\n".join(lines) + "\r\n\r\n" + self.body

    def to_bytes(self) -> bytes:
        """Serialize and encode, ready for ``socket.sendall()``."""
        return self.serialize().encode("utf-8")

    def write_to(self, stream: BinaryIO) -> None:
        """
        Write the whole response to ``stream`` and flush it.

        Raises:
            OSError: If the peer went away mid-write.
        """
        stream.write(self.to_bytes())
        stream.flush()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for the responses the server produces itself and for the
# common "plain text" handler case.
#
# =============================================================================

def text_response(status: int, body: str, content_type: str = "text/plain") -> HTTPResponse:
    """Build a response with a text body and Content-Type."""
    return (HTTPResponse()
        .set_status(status)
        .add_header("Content-Type", content_type)
        .set_body(body))


def error_response(status: int, message: str) -> HTTPResponse:
    """
    Build an error response the client is told not to reuse.

    Every response closes the connection, so the header only makes
    that explicit for clients that default to keep-alive.
    """
    return text_response(status, message).add_header("Connection", "close")


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    """400 response."""
    return error_response(HTTPStatus.BAD_REQUEST, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    """404 response, sent when no route matches."""
    return error_response(HTTPStatus.NOT_FOUND, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500 response."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)

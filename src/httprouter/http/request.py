"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads one HTTP/1.1 request from a byte stream and turns it into a
structured HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  GET /api/v1/code?code=42&version=2.0 HTTP/1.1\r\n                   │
    │  ─┬─ ────────┬──── ──────────┬────── ────┬───                        │
    │   │          │               │           │                           │
    │ Method      Path        Query string   Version                       │
    │                                                                      │
    │  Host: localhost:4221\r\n           ┐                                │
    │  Content-Type: text/plain\r\n       ├─ Headers (kept in order)       │
    │  Content-Length: 5\r\n              ┘                                │
    │  \r\n                               ← Empty line = end of headers    │
    │  hello                              ← Exactly Content-Length bytes   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
STREAM-BASED PARSING
=============================================================================

The parser reads from a binary stream (a socket's ``makefile("rb")`` in
production, ``io.BytesIO`` in tests) instead of a pre-assembled buffer:

    readline()  → request line
    readline()  → header, header, ... until the empty line
    read(n)     → body, n taken from Content-Length

The stream's own buffering takes care of TCP delivering the request in
arbitrary chunks. We never read past the declared body, so nothing that
belongs to the peer is swallowed.

=============================================================================
WHAT IS (AND ISN'T) SUPPORTED
=============================================================================

    ✓ CRLF and bare LF line endings
    ✓ Repeated headers (stored as separate entries, in order)
    ✓ Query strings, decoded with the router's own URL decoder
    ✗ Chunked transfer-encoding
    ✗ Obsolete multi-line (folded) headers
    ✗ Bodies without a Content-Length

=============================================================================
"""

from dataclasses import dataclass, field
from typing import BinaryIO, Optional
import io
import logging
import re

from .decoder import decode
from .errors import (
    HTTPParseError,
    MalformedContentLength,
    MalformedRequestLine,
    TruncatedBody,
)


logger = logging.getLogger(__name__)


def parse_query_string(query_string: str) -> dict[str, str]:
    """
    Parse ``a=1&b=2`` into ``{"a": "1", "b": "2"}``.

    Pairs without ``=`` are dropped. On a repeated key the last value
    wins: ``a=1&a=2`` → ``{"a": "2"}``.
    """
    params: dict[str, str] = {}
    for pair in query_string.split("&"):
        key, sep, value = pair.partition("=")
        if not sep:
            continue
        params[decode(key)] = decode(value)
    return params


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         Verb exactly as sent ("GET", "POST", ...)

        path:           Request path WITHOUT the query string
                        "/api/v1/code" not "/api/v1/code?code=42"

        version:        Protocol token, carried through verbatim

        headers:        Ordered list of (name, value) pairs.
                        Names keep the case the client used; use
                        get_header() for case-insensitive lookup.

        body:           Body decoded as UTF-8 (invalid bytes replaced)

        query_params:   {"code": "42", "version": "2.0"}

        client_address: (ip, port) of the peer, for logging

        parse_errors:   Problems the parser recovered from, such as a
                        MalformedContentLength. Empty for clean requests.

    =========================================================================
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: list[tuple[str, str]] = field(default_factory=list)
    body: str = ""
    query_params: dict[str, str] = field(default_factory=dict)

    client_address: tuple[str, int] = ("", 0)
    parse_errors: list[HTTPParseError] = field(default_factory=list)

    def add_header(self, name: str, value: str) -> None:
        """Append a header, keeping arrival order and duplicates."""
        self.headers.append((name, value))

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get the first value of a header (case-insensitive lookup).

        Example:
            request.get_header("content-length")  # matches "Content-Length"
        """
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return default

    def get_headers(self, name: str) -> list[str]:
        """Get every value of a repeated header, in arrival order."""
        wanted = name.lower()
        return [value for key, value in self.headers if key.lower() == wanted]

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a query parameter or ``default``."""
        return self.query_params.get(name, default)

    @property
    def content_length(self) -> Optional[int]:
        """
        Declared Content-Length, or None if absent or not a valid number.
        """
        value = self.get_header("Content-Length")
        if value is None or not RequestParser.DIGITS_PATTERN.fullmatch(value.strip()):
            return None
        return int(value.strip())


class RequestParser:
    """
    Parses one HTTP request from a binary stream.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        stream
          │
          ▼
        1. Request line ──── < 3 tokens? → MalformedRequestLine (400)
          │
          ▼
        2. Split path on first "?" → path + query_params
          │
          ▼
        3. Headers until empty line ("Name: value", others skipped)
          │
          ▼
        4. Content-Length?
             absent        → empty body
             not a number  → empty body + MalformedContentLength recorded
             too large     → HTTPParseError (413)
             N             → read exactly N bytes
                               EOF first? → TruncatedBody (400)
          │
          ▼
        HTTPRequest

    ==========================================================================
    LIMITS
    ==========================================================================

    max_line_size caps the request line and every header line, line
    ending not included, so a client cannot make us buffer an endless
    line (431). max_headers caps the number of header lines (431).
    max_body_size caps the declared body before we allocate anything
    for it (413).

    ==========================================================================
    """

    # Runs of ASCII whitespace between request line tokens
    # (space, tab, LF, form feed, CR).
    WHITESPACE_PATTERN = re.compile(r"[ \t\n\r\f]+")
    # Content-Length must be plain ASCII digits (int() would accept "+5", "1_0").
    DIGITS_PATTERN = re.compile(r"[0-9]+")

    def __init__(
        self,
        max_line_size: int = 8192,
        max_body_size: int = 10 * 1024 * 1024,
        max_headers: int = 100,
    ):
        """
        Args:
            max_line_size: Longest accepted request/header line in bytes,
                excluding the line ending.
            max_body_size: Largest accepted Content-Length in bytes.
            max_headers: Most header lines accepted before the blank line.
        """
        self.max_line_size = max_line_size
        self.max_body_size = max_body_size
        self.max_headers = max_headers

    def parse(
        self,
        stream: BinaryIO,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Read and parse one request from ``stream``.

        Args:
            stream: Readable binary stream positioned at the request line.
            client_address: Peer (ip, port), stored on the request.

        Returns:
            The parsed HTTPRequest.

        Raises:
            MalformedRequestLine: Missing method, path or version.
            TruncatedBody: Stream ended before the declared body did.
            HTTPParseError: A line or the body exceeds the limits.
        """
        # ---------------------------------------------------------------------
        # STEP 1-2: Request line, path and query string
        # ---------------------------------------------------------------------
        line = self._read_line(stream)
        method, path, query_params, version = self._parse_request_line(line or "")

        request = HTTPRequest(
            method=method,
            path=path,
            version=version,
            query_params=query_params,
            client_address=client_address,
        )

        # ---------------------------------------------------------------------
        # STEP 3: Headers
        # ---------------------------------------------------------------------
        self._parse_headers(stream, request)

        # ---------------------------------------------------------------------
        # STEP 4: Body
        # ---------------------------------------------------------------------
        self._read_body(stream, request)

        return request

    def _read_line(self, stream: BinaryIO) -> Optional[str]:
        """
        Read one line without its line ending.

        Returns None at end of stream.
        """
        # +2 leaves room for a CRLF after a line of exactly max_line_size
        raw = stream.readline(self.max_line_size + 2)
        if not raw:
            return None

        content = raw
        if content.endswith(b"\n"):
            content = content[:-1]
            if content.endswith(b"\r"):
                content = content[:-1]

        if len(content) > self.max_line_size:
            raise HTTPParseError(
                f"Line exceeds {self.max_line_size} bytes",
                status_code=431,
            )

        return raw.decode("utf-8", errors="replace").rstrip("\r\n")

    def _parse_request_line(
        self,
        line: str,
    ) -> tuple[str, str, dict[str, str], str]:
        """
        Split ``METHOD SP PATH SP VERSION`` into its parts.

        Tokens after the third are ignored.

        Returns:
            Tuple of (method, path, query_params, version)
        """
        tokens = [t for t in self.WHITESPACE_PATTERN.split(line) if t]
        if len(tokens) < 3:
            raise MalformedRequestLine(line)

        method, full_path, version = tokens[:3]

        # "/api/v1/code?code=42" → "/api/v1/code", {"code": "42"}
        path, sep, query_string = full_path.partition("?")
        query_params = parse_query_string(query_string) if sep else {}

        return method, path, query_params, version

    def _parse_headers(self, stream: BinaryIO, request: HTTPRequest) -> None:
        """
        Read ``Name: value`` lines until the empty line (or end of stream).

        Both sides are trimmed. Lines without a colon are skipped, but
        still count towards max_headers.
        """
        count = 0
        while True:
            line = self._read_line(stream)
            if not line:
                break

            count += 1
            if count > self.max_headers:
                raise HTTPParseError(
                    f"More than {self.max_headers} header lines",
                    status_code=431,
                )

            name, sep, value = line.partition(":")
            if not sep:
                continue

            request.add_header(name.strip(), value.strip())

    def _read_body(self, stream: BinaryIO, request: HTTPRequest) -> None:
        """Read exactly Content-Length bytes into ``request.body``."""
        raw_length = request.get_header("Content-Length")
        if raw_length is None:
            return

        if not self.DIGITS_PATTERN.fullmatch(raw_length.strip()):
            error = MalformedContentLength(raw_length)
            logger.warning(f"{error}; treating body as empty")
            request.parse_errors.append(error)
            return

        length = int(raw_length.strip())
        if length > self.max_body_size:
            raise HTTPParseError(
                f"Body too large: {length} bytes",
                status_code=413,
            )

        # read(n) may return less than n on a socket; keep going until
        # we have everything or the peer hangs up.
        chunks: list[bytes] = []
        remaining = length
        while remaining > 0:
            chunk = stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)

        data = b"".join(chunks)
        if len(data) < length:
            raise TruncatedBody(expected=length, received=len(data))

        request.body = data.decode("utf-8", errors="replace")


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_line_size: int = 8192,
    max_body_size: int = 10 * 1024 * 1024,
    max_headers: int = 100,
) -> HTTPRequest:
    """
    Parse a complete request held in memory.

    Handy in tests and anywhere the bytes are already buffered.
    """
    parser = RequestParser(
        max_line_size=max_line_size,
        max_body_size=max_body_size,
        max_headers=max_headers,
    )
    return parser.parse(io.BytesIO(data), client_address)

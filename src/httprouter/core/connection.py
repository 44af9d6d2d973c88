"""
=============================================================================
CONNECTION HANDLING
=============================================================================

Wraps one accepted client socket and runs it through the router:

    read ONE request → route it → handler writes response → close

This is the only place (besides the accept loop) that touches sockets.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

    Client sends:   "GET /api/v1/hello HTTP/1.1\r\n\r\n"

    Server may get: recv() → "GET /api/v"
                    recv() → "1/hello HTTP/1.1\r\n\r\n"

The parser never calls recv() directly. The socket is wrapped in
buffered file objects (a DeadlineReader under io.BufferedReader for
reading, ``socket.makefile`` for writing), and the parser asks for whole
lines and exact byte counts. The buffering absorbs however TCP chose to
split the request.

=============================================================================
SLOW CLIENTS
=============================================================================

    accept ──────────────── timeout ────────────────► deadline
       │  recv  recv  recv ...                            │
       └──────────── all reads must finish ───────────────┘  else 408

The timeout is a deadline for reading the whole request, not an idle
timer per recv(), so trickling one byte at a time does not help.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

There is no keep-alive. Every connection goes through the same states
exactly once:

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
               │             │
               └─────────────┴──► (error response) ──► CLOSING

=============================================================================
ERROR ISOLATION
=============================================================================

Whatever goes wrong stays inside the connection:

    ┌────────────────────────────┬───────────────────────────────────────┐
    │  Failure                   │  Client sees                          │
    ├────────────────────────────┼───────────────────────────────────────┤
    │  Bad request line / body   │  400 (or 413 / 431 for limits)        │
    │  Read deadline exceeded    │  408                                  │
    │  No route matched          │  404                                  │
    │  Handler raised            │  500, if it had not started writing   │
    │  Handler could not write   │  nothing (the socket is gone)         │
    └────────────────────────────┴───────────────────────────────────────┘

=============================================================================
"""

import io
import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Optional

from ..http.errors import HandlerIOError, HTTPParseError, NoRouteMatched
from ..http.request import HTTPRequest, RequestParser
from ..http.response import HTTPResponse, error_response, internal_error, not_found
from ..http.router import Router
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("httprouter.access")

# close() drains what the client is still sending, up to these bounds
CLOSE_DRAIN_TIMEOUT = 1.0
CLOSE_DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states (for logging and debugging)."""

    NEW = "new"                # Just accepted
    READING = "reading"        # Parsing the request
    PROCESSING = "processing"  # Router/handler running
    WRITING = "writing"        # Server-generated response going out
    CLOSING = "closing"        # Shutting the socket down
    CLOSED = "closed"          # Done


class ResponseWriter:
    """
    Write side of a connection, as handed to route handlers.

    A thin pass-through over the socket's buffered writer that remembers
    what went out, so the server can tell afterwards whether a handler
    already started its response and which status it sent:

        writer.write(b"HTTP/1.1 200 OK\\r\\n...")
        writer.started       → True
        writer.status        → 200
        writer.bytes_written → 123
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._head = b""
        self.bytes_written = 0

    def write(self, data: bytes) -> int:
        self._stream.write(data)
        if len(self._head) < 64:
            self._head += data[:64]
        self.bytes_written += len(data)
        return len(data)

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        """Flush and close the buffered writer. The socket stays open."""
        self._stream.close()

    @property
    def started(self) -> bool:
        return self.bytes_written > 0

    @property
    def status(self) -> Optional[int]:
        """Status code from the status line written so far, if any."""
        parts = self._head.split(b"\r\n", 1)[0].split(b" ")
        if len(parts) >= 2 and parts[1].isdigit():
            return int(parts[1])
        return None


class DeadlineReader(io.RawIOBase):
    """
    Raw socket reader that enforces a deadline for the whole connection.

    socket.settimeout() alone only bounds each recv(): a client sending
    one byte just before every timeout would be read from forever. Here
    every recv() gets only the time left until ``deadline``, so the
    total time spent reading never exceeds it:

        deadline = accepted + timeout
        recv() #1  → timeout = deadline - now
        recv() #2  → timeout = deadline - now   (smaller)
        ...
        now >= deadline  → TimeoutError

    Wrapped in io.BufferedReader for readline()/read(n).
    """

    def __init__(
        self,
        sock: socket.socket,
        deadline: Optional[float],
        idle_timeout: Optional[float],
    ):
        self._sock = sock
        self.deadline = deadline
        self.idle_timeout = idle_timeout

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.deadline is None:
            return self._sock.recv_into(buffer)

        remaining = self.deadline - time.monotonic()
        if remaining <= 0:
            raise TimeoutError("Connection deadline exceeded")

        self._sock.settimeout(remaining)
        try:
            return self._sock.recv_into(buffer)
        finally:
            # Writes keep the plain per-call timeout
            self._sock.settimeout(self.idle_timeout)


@dataclass
class Connection:
    """
    An accepted client socket.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        timeout: Seconds from accept until reading the request must be
            done; also the timeout of each write (None = block forever).
        id: Short unique id used as a log prefix.
        state: Current lifecycle state.
        created_at: Accept timestamp.
    """

    socket: socket.socket
    address: tuple[str, int]
    timeout: Optional[float] = 30.0

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    _started: float = field(default_factory=time.monotonic, repr=False)
    _reader: Optional[BinaryIO] = field(default=None, repr=False)
    _writer: Optional[ResponseWriter] = field(default=None, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def deadline(self) -> Optional[float]:
        """time.monotonic() value after which reads fail, or None."""
        if self.timeout is None:
            return None
        return self._started + self.timeout

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def reader(self) -> BinaryIO:
        """Buffered, deadline-bound reader over the socket (created on first use)."""
        if self._reader is None:
            self._reader = io.BufferedReader(
                DeadlineReader(self.socket, self.deadline, self.timeout)
            )
        return self._reader

    @property
    def writer(self) -> ResponseWriter:
        """Buffered writer over the socket (created on first use)."""
        if self._writer is None:
            self._writer = ResponseWriter(self.socket.makefile("wb"))
        return self._writer

    def send_response(self, response: HTTPResponse) -> bool:
        """
        Send a server-generated response.

        Returns:
            True if sent, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING
        try:
            response.write_to(self.writer)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self) -> None:
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN so the client sees end of response
        2. Drain what the client may still be sending, so close() does
           not turn into a RST that could destroy the response in flight.
           At most CLOSE_DRAIN_LIMIT bytes within CLOSE_DRAIN_TIMEOUT.
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        for stream in (self._writer, self._reader):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError:
                pass

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self._drain()
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.1f}ms")

    def _drain(self) -> None:
        """Read and discard until EOF or the drain bounds are hit."""
        stop_at = time.monotonic() + CLOSE_DRAIN_TIMEOUT
        drained = 0
        while drained < CLOSE_DRAIN_LIMIT:
            remaining = stop_at - time.monotonic()
            if remaining <= 0:
                break
            self.socket.settimeout(remaining)
            chunk = self.socket.recv(4096)
            if not chunk:
                break
            drained += len(chunk)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ConnectionHandler:
    """
    Serves one request on a connection through a Router.

    Callable, so it can be handed straight to the accept loop or to a
    worker thread:

        handler = ConnectionHandler(router, RequestParser())
        handler(conn)          # parses, dispatches, responds, closes

    ==========================================================================
    FLOW
    ==========================================================================

        conn.reader ──► RequestParser.parse() ──► HTTPRequest
                                                      │
                                                      ▼
                                         Router.handle(request, conn.writer)
                                                      │
                    ┌──────────────────┬──────────────┼────────────────┐
                    ▼                  ▼              ▼                ▼
               handler wrote      NoRouteMatched  HandlerIOError   Exception
               its response         → 404          → log only     → 500
                    │                  │              │                │
                    └──────────────────┴──────┬───────┴────────────────┘
                                              ▼
                                     access log, close()

    ==========================================================================
    """

    def __init__(self, router: Router, parser: Optional[RequestParser] = None):
        self.router = router
        self.parser = parser or RequestParser()

    def __call__(self, conn: Connection) -> None:
        with conn:
            start_time = time.time()
            request = self._read_request(conn)
            if request is not None:
                self._dispatch(conn, request)
            self._log_access(conn, request, start_time)

    def _read_request(self, conn: Connection) -> Optional[HTTPRequest]:
        """Parse the request, answering the client ourselves on failure."""
        conn.state = ConnectionState.READING
        try:
            request = self.parser.parse(conn.reader, conn.address)
        except HTTPParseError as e:
            logger.warning(f"[{conn.id}] {type(e).__name__}: {e}")
            conn.send_response(error_response(e.status_code, str(e)))
            return None
        except TimeoutError:
            logger.warning(f"[{conn.id}] Timed out reading request")
            conn.send_response(error_response(HTTPStatus.REQUEST_TIMEOUT, "Request timeout"))
            return None
        except OSError as e:
            logger.debug(f"[{conn.id}] Connection lost while reading: {e}")
            return None

        for error in request.parse_errors:
            logger.info(f"[{conn.id}] Recovered from {type(error).__name__}: {error}")

        logger.debug(
            f"[{conn.id}] {request.method} {request.path} {request.version} "
            f"headers={len(request.headers)} body={len(request.body)}"
        )
        return request

    def _dispatch(self, conn: Connection, request: HTTPRequest) -> None:
        conn.state = ConnectionState.PROCESSING
        try:
            self.router.handle(request, conn.writer)
            conn.writer.flush()
        except NoRouteMatched as e:
            logger.info(f"[{conn.id}] {e}")
            conn.send_response(not_found(str(e)))
        except HandlerIOError as e:
            logger.error(f"[{conn.id}] {e}")
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            if not conn.writer.started:
                conn.send_response(internal_error())

    def _log_access(
        self,
        conn: Connection,
        request: Optional[HTTPRequest],
        start_time: float,
    ) -> None:
        """``127.0.0.1 "GET /api/v1/code" 200 26B 1.42ms``"""
        duration_ms = (time.time() - start_time) * 1000
        line = f"{request.method} {request.path}" if request else "-"
        status = conn.writer.status if conn._writer is not None else None
        bytes_written = conn.writer.bytes_written if conn._writer is not None else 0
        access_logger.info(
            f'{conn.client_ip} "{line}" {status or "-"} '
            f"{bytes_written}B {duration_ms:.2f}ms"
        )

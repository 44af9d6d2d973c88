"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together: configuration, listening socket, worker
threads and the (immutable) router.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                           │
    │                        │   HTTPServer    │                           │
    │                        └────────┬────────┘                           │
    │            ┌────────────────────┼────────────────────┐               │
    │            ▼                    ▼                    ▼               │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────────┐      │
    │    │ SocketServer │    │  ThreadPool  │    │ ConnectionHandler│      │
    │    │   (accept)   │───►│  (workers)   │───►│ parse → Router   │      │
    │    └──────────────┘    └──────────────┘    └──────────────────┘      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. SocketServer accepts a TCP connection
    2. Connection is queued on the ThreadPool (queue full → 503)
       (workers=0: handled right away on the accept thread)
    3. Worker parses the request
    4. Router picks the most specific matching route
    5. The route's handler writes the response
    6. Connection is closed

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import Connection, ConnectionHandler, SocketServer, ThreadPool
from .http import HTTPStatus, RequestParser, Router, error_response


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Serves a Router over TCP.

    Usage:
        router = (RouterBuilder()
            .get("/", home)
            .get("/api/v1/{message}", message)
            .build())

        server = HTTPServer(router, ServerConfig(port=4221))
        server.run()       # blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, router: Router, config: Optional[ServerConfig] = None):
        """
        Args:
            router: Route table to serve. Shared read-only by all workers.
            config: Server configuration. Defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.router = router
        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            workers=self.config.workers,
            queue_size=self.config.queue_size,
        )
        self._connection_handler = ConnectionHandler(
            router,
            RequestParser(
                max_line_size=self.config.max_line_size,
                max_body_size=self.config.max_body_size,
                max_headers=self.config.max_headers,
            ),
        )
        self._running = False

    @property
    def address(self) -> tuple[str, int]:
        """Bound (host, port), valid once the server is listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self):
        """
        Start serving (blocking).

        Raises:
            OSError: If the address cannot be bound.
        """
        self._setup_logging()
        self._running = True

        if self.config.workers > 0:
            self._thread_pool.start()

        logger.info(
            f"Starting HTTP server on {self.config.host}:{self.config.port} "
            f"({self.config.workers or 'no'} workers, {len(self.router)} routes)"
        )
        for line in self.router.describe():
            logger.debug(f"  route {line}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Stop accepting; run() then drains the pool and returns."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("httprouter").setLevel(level)

    def _shutdown(self):
        """Let in-flight connections finish, then stop the workers."""
        logger.info("Shutting down server...")
        self._running = False
        abandoned = self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        for task in abandoned:
            self._reject(task.args[0], "Server shutting down")
        logger.info("Server stopped")

    def _reject(self, conn: Connection, message: str):
        """Answer 503 without reading the request, then close."""
        conn.send_response(error_response(HTTPStatus.SERVICE_UNAVAILABLE, message))
        conn.close()

    def _handle_connection(self, conn: Connection):
        """
        Called by the accept loop for every new connection.

        Hands the connection to a worker; with no workers configured,
        serves it inline before the next accept().
        """
        if self.config.workers == 0:
            self._connection_handler(conn)
            return

        if not self._thread_pool.submit(self._connection_handler, args=(conn,)):
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._reject(conn, "Server overloaded")

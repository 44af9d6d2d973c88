"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. Each accepted client is
wrapped in a Connection and handed to a callback; what happens next
(thread pool, inline handling) is the callback's business.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. bind()      Reserve IP:PORT (port 0 = let the OS choose)
    3. listen()    Start queueing incoming connections (backlog)
    4. accept()    Take the next client; returns a NEW socket for it
    5. close()     Release the listening socket on shutdown

    ┌───────────────────────┐
    │   Listening Socket    │ ◄── Bound once, never sends/receives
    └───────────┬───────────┘
                │ accept()
        ┌───────┼───────────────┐
        ▼       ▼               ▼
    Client 1  Client 2  ...  Client N   (one Connection each)

=============================================================================
INTERRUPTIBLE ACCEPT
=============================================================================

accept() is given a 1 second timeout so the loop wakes up regularly to
check whether shutdown() was called:

    while running:
        try:
            accept()            ← at most 1s
        except timeout:
            continue            ← re-check running flag

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Low-level TCP server: bind, listen, accept, hand off.

    Usage:
        def on_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(on_connection)   # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready_event = threading.Event()
        self._shutdown_event = threading.Event()
        self._original_handlers: dict = {}
        self._bound_address: Optional[tuple[str, int]] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> tuple[str, int]:
        """
        Address actually bound, once listening.

        Differs from the config when port 0 asked the OS for a free port.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create the listening socket with its options set."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind right after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Responses are small and written at once; don't let Nagle hold them
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """
        Turn SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) into a
        graceful shutdown.

        Python only allows installing signal handlers from the main
        thread. When the server runs elsewhere (tests, embedding) the
        owner is expected to call shutdown() itself.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Args:
            connection_handler: Called with every accepted Connection.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()
        self._ready_event.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept until shutdown.

        A failure while handing off one connection is logged and the
        loop carries on; only a broken listening socket ends it.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.timeout,
            )

            try:
                connection_handler(conn)
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection handler failed: {e}")
                conn.close()

    def shutdown(self):
        """Ask the accept loop to stop. Safe to call more than once."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown() is called. Returns False on timeout."""
        return self._shutdown_event.wait(timeout)

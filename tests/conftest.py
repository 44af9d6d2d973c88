"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Optional

import pytest

from httprouter import HTTPServer, ServerConfig
from httprouter.app import build_router


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request with a query string."""
    return (
        b"GET /api/v1/code?code=42&version=2.0 HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a text body."""
    body = b"hello"
    return (
        b"POST /api/v1/code?code=7 HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Type: text/plain\r\n"
        b"Content-Length: %d\r\n"
        b"\r\n" % len(body)
    ) + body


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration on an OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        workers=2,
        queue_size=10,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def send_raw(address: tuple[str, int], data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes, half-close, and read until the server closes."""
    with socket.create_connection(address, timeout=timeout) as s:
        s.sendall(data)
        s.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> tuple[str, int]:
        return self.server.address

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def request(self, data: bytes) -> bytes:
        return send_raw(self.address, data)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """The demo application served on a free port."""
    test_srv = TestServer(HTTPServer(build_router(), config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def make_server():
    """Factory: start a server for any router/config, stopped at teardown."""
    started = []

    def factory(router, config: ServerConfig) -> TestServer:
        test_srv = TestServer(HTTPServer(router, config))
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield factory

    for test_srv in started:
        test_srv.stop()

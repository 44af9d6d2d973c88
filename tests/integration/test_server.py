"""
End-to-end tests: the demo application over a real TCP socket.
"""

import socket
import time
import threading

import pytest

from httprouter import HTTPServer, ServerConfig
from httprouter.app import build_router
from httprouter.http import RouterBuilder, text_response


class TestServerRoutes:
    """Requests against a running server."""

    def test_home(self, test_server):
        reply = test_server.request(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        assert reply == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 13\r\n"
            b"\r\n"
            b"Hello, World!"
        )

    def test_code_query(self, test_server, sample_get_request: bytes):
        reply = test_server.request(sample_get_request)

        assert reply.endswith(b"\r\n\r\nCode is: 42, version: 2.0!")

    def test_message(self, test_server):
        reply = test_server.request(b"GET /api/v1/world HTTP/1.1\r\n\r\n")

        assert reply.endswith(b"Hello, world!")

    def test_post_body(self, test_server, sample_post_request: bytes):
        reply = test_server.request(sample_post_request)

        assert reply.endswith(b"Code is: 7, version: 1.0, body: hello!")

    def test_unmatched_route_is_404(self, test_server):
        reply = test_server.request(b"GET /api/v1/a/b HTTP/1.1\r\n\r\n")

        assert reply.startswith(b"HTTP/1.1 404 Not Found\r\n")

    def test_malformed_request_is_400(self, test_server):
        reply = test_server.request(b"NONSENSE\r\n\r\n")

        assert reply.startswith(b"HTTP/1.1 400 Client Error\r\n")

    def test_request_sent_in_pieces(self, test_server):
        """The request may arrive split at any byte."""
        with socket.create_connection(test_server.address, timeout=5.0) as s:
            for piece in (b"GET /api/v", b"1/split HT", b"TP/1.1\r", b"\n\r\n"):
                s.sendall(piece)
            reply = b""
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                reply += chunk

        assert reply.endswith(b"Hello, split!")

    def test_concurrent_clients(self, test_server):
        replies = []
        lock = threading.Lock()

        def client(i: int):
            reply = test_server.request(f"GET /api/v1/c{i} HTTP/1.1\r\n\r\n".encode())
            with lock:
                replies.append(reply)

        threads = [threading.Thread(target=client, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert len(replies) == 10
        assert all(r.startswith(b"HTTP/1.1 200 OK") for r in replies)


class TestServerLifecycle:
    """Startup, configuration and shutdown."""

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            HTTPServer(build_router(), ServerConfig(port=70000))

    def test_bound_address(self, test_server):
        host, port = test_server.address

        assert host == "127.0.0.1"
        assert port > 0

    def test_inline_mode(self, config: ServerConfig):
        """workers=0 serves connections on the accept thread."""
        config.workers = 0
        server = HTTPServer(build_router(), config)
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        try:
            assert server.wait_until_ready(timeout=5.0)
            with socket.create_connection(server.address, timeout=5.0) as s:
                s.sendall(b"GET / HTTP/1.1\r\n\r\n")
                s.shutdown(socket.SHUT_WR)
                reply = s.recv(4096)
            assert reply.endswith(b"Hello, World!")
        finally:
            server.shutdown()
            thread.join(timeout=10.0)

        assert not thread.is_alive()
        assert not server.is_running

    def test_bind_failure_raises(self, config: ServerConfig):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            config.port = blocker.getsockname()[1]

            with pytest.raises(OSError):
                HTTPServer(build_router(), config).run()


def read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def wait_for(condition, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return False


class TestOverload:
    """One worker, tiny queue, a handler that holds the worker."""

    @pytest.fixture
    def gate(self):
        entered = threading.Event()
        release = threading.Event()
        yield entered, release
        release.set()

    @pytest.fixture
    def blocking_router(self, gate):
        entered, release = gate

        def block(match, stream):
            entered.set()
            release.wait(timeout=10.0)
            text_response(200, "released").write_to(stream)

        return (RouterBuilder()
            .get("/block", block)
            .get("/", lambda match, stream: text_response(200, "hi").write_to(stream))
            .build())

    def test_full_queue_answers_503(self, make_server, blocking_router, gate, config):
        """With the worker busy and the queue full, the next client gets 503."""
        entered, release = gate
        config.workers = 1
        config.queue_size = 1
        srv = make_server(blocking_router, config)

        with socket.create_connection(srv.address, timeout=5.0) as busy, \
                socket.create_connection(srv.address, timeout=5.0) as queued:
            try:
                busy.sendall(b"GET /block HTTP/1.1\r\n\r\n")
                assert entered.wait(timeout=5.0)

                queued.sendall(b"GET / HTTP/1.1\r\n\r\n")
                assert wait_for(lambda: srv.server._thread_pool.pending == 1)

                reply = srv.request(b"GET / HTTP/1.1\r\n\r\n")
            finally:
                release.set()

        assert reply.startswith(b"HTTP/1.1 503 Internal Server Error\r\n")
        assert reply.endswith(b"\r\n\r\nServer overloaded")

    def test_shutdown_rejects_abandoned_connections(self, make_server, blocking_router, gate, config):
        """Connections still queued when shutdown gives up get 503 and are closed."""
        entered, release = gate
        config.workers = 1
        config.queue_size = 5
        config.timeout = 0.5
        srv = make_server(blocking_router, config)

        with socket.create_connection(srv.address, timeout=10.0) as busy, \
                socket.create_connection(srv.address, timeout=10.0) as queued:
            try:
                busy.sendall(b"GET /block HTTP/1.1\r\n\r\n")
                assert entered.wait(timeout=5.0)

                queued.sendall(b"GET / HTTP/1.1\r\n\r\n")
                queued.shutdown(socket.SHUT_WR)
                assert wait_for(lambda: srv.server._thread_pool.pending == 1)

                srv.server.shutdown()
                reply = read_all(queued)
            finally:
                release.set()

        assert reply.startswith(b"HTTP/1.1 503 Internal Server Error\r\n")
        assert reply.endswith(b"Server shutting down")

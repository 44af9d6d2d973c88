"""
=============================================================================
CORE NETWORKING
=============================================================================

The socket-facing half of the server:

    socket_server.py   Listening socket and accept loop
    connection.py      One accepted client: read, route, respond, close
    thread_pool.py     Worker threads so slow clients don't block accept()

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionHandler, ConnectionState, ResponseWriter
from .thread_pool import ThreadPool


__all__ = [
    "SocketServer",       # Accepts connections
    "Connection",         # Wrapper for a client socket
    "ConnectionHandler",  # Parses, routes and answers one connection
    "ConnectionState",    # Connection lifecycle states
    "ResponseWriter",     # Write side handed to route handlers
    "ThreadPool",         # Worker threads
]

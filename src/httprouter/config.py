"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the router's server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m httprouter --port 3000                           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m httprouter                        │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK:    host, port, backlog, timeout
    PARSING:    max_line_size, max_body_size, max_headers
    THREADING:  workers, queue_size
    LOGGING:    log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind. "0.0.0.0" for every interface."""

    port: int = 4221
    """Port to listen on. 0 lets the OS pick one (handy in tests)."""

    backlog: int = 128
    """Pending connections the OS queues before refusing new ones."""

    timeout: Optional[float] = 30.0
    """
    Seconds a client gets, from accept, to deliver its whole request.

    This is a deadline, not an idle timer: a client trickling bytes is
    cut off after this long all the same (408). Each write is bounded by
    it too. None disables it.
    """

    # ─────────────────────────────────────────────────────────────────────
    # PARSING LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_line_size: int = 8192
    """Longest request line or header line, in bytes, line ending excluded."""

    max_body_size: int = 10 * 1024 * 1024  # 10 MB
    """Largest accepted Content-Length, in bytes."""

    max_headers: int = 100
    """Most header lines in one request before we answer 431."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 4
    """
    Worker threads handling connections.

    0 handles every connection on the accept thread, one at a time.
    """

    queue_size: int = 100
    """Accepted connections waiting for a worker before we answer 503."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST       Server host (default: 127.0.0.1)
        HTTP_PORT       Server port (default: 4221)
        HTTP_WORKERS    Worker threads (default: 4)
        HTTP_TIMEOUT    Connection timeout in seconds (default: 30)
        HTTP_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "4221")),
            workers=int(os.getenv("HTTP_WORKERS", "4")),
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at server construction so mistakes surface at startup,
        not on the first request.

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.workers < 0:
            raise ValueError("workers must be >= 0")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_line_size < 64:
            raise ValueError("max_line_size must be >= 64")

        if self.max_body_size < 0:
            raise ValueError("max_body_size must be >= 0")

        if self.max_headers < 0:
            raise ValueError("max_headers must be >= 0")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {self.log_level}")

"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the entry store server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    Priority (highest to lowest):

    1. Command-line arguments
       └── python -m entrystore --port 3000

    2. Environment variables
       └── ENTRYSTORE_PORT=3000 python -m entrystore

    3. Default values (in this dataclass)

The CLI builds its argparse defaults from ServerConfig.from_env(), so an
explicit flag always wins over the environment.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_FORMATS = ("text", "json")


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value else None


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value else None


@dataclass
class ServerConfig:
    """
    Configuration for the entry store server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog, buffer_size, timeout
    ADMISSION   max_connections
    STORAGE     data_file
    LOGGING     log_level, log_format
    IDENTITY    server_name

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. "0.0.0.0" listens on every interface."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick a free one (used by tests)."""

    backlog: int = 128
    """Maximum number of connections queued before accept()."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = None
    """
    Socket timeout for client reads, in seconds.
    None = block forever: a client that never finishes its request keeps
    its handler thread alive indefinitely.
    """

    # ─────────────────────────────────────────────────────────────────────
    # ADMISSION
    # ─────────────────────────────────────────────────────────────────────

    max_connections: Optional[int] = None
    """
    Cap on concurrently running connection handlers.
    None = unbounded (one thread per accepted connection, no limit).
    When set, connections over the cap are answered with 503.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE
    # ─────────────────────────────────────────────────────────────────────

    data_file: str = "data.json"
    """Path of the JSON file holding the whole collection."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    log_format: str = "text"
    """Access log format: "text" (one line per request) or "json"."""

    server_name: str = "EntryStore/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        ENTRYSTORE_HOST             Bind address (default: 0.0.0.0)
        ENTRYSTORE_PORT             Port (default: 8080)
        ENTRYSTORE_DATA_FILE        Data file path (default: data.json)
        ENTRYSTORE_MAX_CONNECTIONS  Handler cap (default: unbounded)
        ENTRYSTORE_TIMEOUT          Read timeout in seconds (default: none)
        ENTRYSTORE_LOG_LEVEL        Logging level (default: INFO)
        ENTRYSTORE_LOG_FORMAT       text or json (default: text)

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        return cls(
            host=os.getenv("ENTRYSTORE_HOST", "0.0.0.0"),
            port=int(os.getenv("ENTRYSTORE_PORT", "8080")),
            data_file=os.getenv("ENTRYSTORE_DATA_FILE", "data.json"),
            max_connections=_optional_int(os.getenv("ENTRYSTORE_MAX_CONNECTIONS")),
            timeout=_optional_float(os.getenv("ENTRYSTORE_TIMEOUT")),
            log_level=os.getenv("ENTRYSTORE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("ENTRYSTORE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails immediately instead of
        on the first request.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_connections is not None and self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")

        if not self.data_file:
            raise ValueError("data_file must not be empty")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")

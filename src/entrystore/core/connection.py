"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the two read operations the request
handler needs, buffered line reads and exact-length body reads, plus
sending and closing.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

recv() returns whatever the kernel has, not whatever the client wrote in
one go:

    Client sends:    "POST /data HTTP/1.1\r\nContent-Length: 2\r\n\r\n[]"

    Server might see:
        recv() → "POST /da"
        recv() → "ta HTTP/1.1\r\nContent-Le"
        recv() → "ngth: 2\r\n\r\n[]"

So everything goes through an internal buffer. read_line() pulls bytes
until it sees "\n"; read_exact(n) pulls until it has n bytes. Whatever was
received past the line or body stays in the buffer for the next read.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    AWAIT_REQUEST_LINE ──► AWAIT_HEADERS ──► DISPATCH ──► RESPOND ──► CLOSED
            │                    │               │                       ▲
            │  EOF: no response  │ EOF: 400      │ 400 / 404             │
            └────────────────────┴───────────────┴───────────────────────┘

The server moves the state forward; the connection just records it so
logs show where a request stopped.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in the one-request lifecycle."""

    AWAIT_REQUEST_LINE = "await_request_line"   # Accepted, nothing read yet
    AWAIT_HEADERS = "await_headers"             # Request line parsed
    DISPATCH = "dispatch"                       # Headers done, picking a route
    RESPOND = "respond"                         # Writing the response
    CLOSED = "closed"                           # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier, used as a log prefix.
        state: Current ConnectionState.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Bytes requested per recv() call.
        timeout: Socket timeout in seconds, None to block forever.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.AWAIT_REQUEST_LINE
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = None

    # Received but not yet consumed
    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        # Accepted sockets can inherit the listener's accept() poll timeout
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[bytes]:
        """
        Read one line, terminator included.

        Blocks until a "\\n" arrives. A line is only returned when it is
        complete: bytes received before the client closed the connection
        without a newline do not count as a line.

        Returns:
            The line as bytes ending in b"\\n", or None if the connection
            closed, reset or timed out first.
        """
        while True:
            newline = self._buffer.find(b"\n")
            if newline != -1:
                line = self._buffer[:newline + 1]
                self._buffer = self._buffer[newline + 1:]
                return line

            chunk = self._recv()
            if not chunk:
                return None
            self._buffer += chunk

    def read_exact(self, size: int) -> Optional[bytes]:
        """
        Read exactly `size` bytes.

        Blocks until that many bytes arrive. A short read is a failure,
        never a partial result.

        Returns:
            Exactly `size` bytes, or None if the connection ended first.
        """
        while len(self._buffer) < size:
            chunk = self._recv()
            if not chunk:
                logger.debug(
                    f"[{self.id}] Connection ended after {len(self._buffer)} "
                    f"of {size} body bytes"
                )
                return None
            self._buffer += chunk

        data = self._buffer[:size]
        self._buffer = self._buffer[size:]
        return data

    def _recv(self) -> bytes:
        """
        Receive data from the socket.

        Returns:
            Received bytes, or b"" if the peer closed, reset or timed out.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except socket.timeout:
            logger.debug(f"[{self.id}] Read timed out")
            return b""
        except OSError as e:
            # ConnectionResetError, BrokenPipeError, ...
            logger.debug(f"[{self.id}] Read failed: {e}")
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        sendall() keeps sending until every byte is out or the socket fails.

        Returns:
            True if the send succeeded, False if the client was gone.
        """
        self.state = ConnectionState.RESPOND
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self, drain: bool = True):
        """
        Close the connection.

        1. shutdown(SHUT_WR) sends FIN, so the client sees end-of-response.
        2. Optionally drain what the client still sends, briefly, so
           unread request bytes do not turn the close into a reset.
        3. close() releases the file descriptor.

        Args:
            drain: Skip step 2 when the caller must not block (the listener
                   thread rejecting a connection).
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        if drain:
            try:
                self.socket.settimeout(0.5)
                while self.socket.recv(1024):
                    pass
            except OSError:
                pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        """
        Allow `with conn:` so the socket is closed on every exit path.

            with conn:
                line = conn.read_line()
                conn.send_response(response)
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

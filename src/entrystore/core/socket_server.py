"""
=============================================================================
LISTENER LOOP
=============================================================================

Binds the listening socket, accepts connections forever, and starts one
handler thread per accepted connection.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    1. socket()    Create the TCP socket
    2. bind()      Reserve host:port (port 0 = let the OS pick)
    3. listen()    Start queueing incoming connections (backlog)
    4. accept()    Take one connection off the queue → new client socket
                   └─ hand it to a fresh thread, go back to accept()
    5. close()     Release the listening socket on shutdown

                    ┌───────────────────────┐
                    │   Listening Socket    │  accept() loop, never
                    └───────────┬───────────┘  waits on a handler
                                │
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ Thread 1  │         │ Thread 2  │         │ Thread 3  │
    │ conn a1f… │         │ conn 9c0… │         │ conn 77d… │
    └───────────┘         └───────────┘         └───────────┘

=============================================================================
CONCURRENCY
=============================================================================

Thread per connection, no pool. Handlers share nothing but the store.

By default the number of live handler threads is unbounded: every
accepted connection gets a thread immediately. Many slow or idle clients
therefore mean many threads, and nothing stops that growth.

Setting max_connections puts a BoundedSemaphore in front of the spawn.
When all slots are taken the new connection is answered with 503 and
closed right away, from the accept thread, without reading the request.

=============================================================================
SHUTDOWN
=============================================================================

accept() runs with a 1-second timeout so the loop can notice
shutdown(). SIGINT and SIGTERM call shutdown() when the server runs in the
main thread; signal handlers cannot be installed from other threads, so
embedded and test servers are stopped by calling shutdown() directly.

Handler threads are daemons; in-flight requests are not waited for.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from ..http.response import service_unavailable
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP listener.

    Usage:
        def handle_connection(conn: Connection):
            ...   # runs in its own thread

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        """
        Initialize the listener. The socket is created in start().

        Args:
            config: Server configuration (host, port, backlog, caps, ...).
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_address: Optional[Tuple[str, int]] = None

        self._ready_event = threading.Event()
        self._original_handlers: dict = {}

        # Admission control, only when a cap is configured
        self._slots: Optional[threading.BoundedSemaphore] = None
        if config.max_connections is not None:
            self._slots = threading.BoundedSemaphore(config.max_connections)

        self._active = 0
        self._active_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        """Check if the accept loop is running."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound.

        With port 0 in the config this is where the OS-assigned port shows
        up. Before the socket is bound it falls back to the configured one.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    @property
    def active_connections(self) -> int:
        """Number of handler threads currently running."""
        with self._active_lock:
            return self._active

    def _create_socket(self) -> socket.socket:
        """Create and configure the listening socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting right after a stop must not fail with "Address already in use"
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # accept() wakes up periodically to check the running flag
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)

        return sock

    def _setup_signals(self):
        """Route SIGINT/SIGTERM to shutdown() (main thread only)."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called once per accepted connection, in a
                                new thread. It owns the connection and
                                must close it.

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
        self._setup_signals()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """Accept connections until shutdown, one thread per connection."""
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Poll the running flag
            except OSError as e:
                if self._running:
                    # Transient accept failures (e.g. EMFILE) must not kill the loop
                    logger.error(f"Accept error: {e}")
                    continue
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address[:2],
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )
            self._dispatch(conn, connection_handler)

    def _dispatch(self, conn: Connection, connection_handler: Callable[[Connection], None]):
        """Start a handler thread for the connection, or reject it."""
        if self._slots is not None and not self._slots.acquire(blocking=False):
            logger.warning(
                f"[{conn.id}] {self.config.max_connections} connections active, "
                f"rejecting {conn.client_ip}"
            )
            response = service_unavailable(retry_after=1)
            conn.send_response(response.to_bytes(self.config.server_name))
            conn.close(drain=False)
            return

        thread = threading.Thread(
            target=self._run_handler,
            args=(conn, connection_handler),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as e:
            # Out of threads: release what we took and drop the connection
            logger.error(f"[{conn.id}] Cannot start handler thread: {e}")
            if self._slots is not None:
                self._slots.release()
            conn.close(drain=False)

    def _run_handler(self, conn: Connection, connection_handler: Callable[[Connection], None]):
        with self._active_lock:
            self._active += 1
        try:
            connection_handler(conn)
        except Exception as e:
            logger.exception(f"[{conn.id}] Unhandled error in connection handler: {e}")
            conn.close(drain=False)
        finally:
            # Free the slot first: active_connections == 0 means admission is open
            if self._slots is not None:
                self._slots.release()
            with self._active_lock:
                self._active -= 1

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the socket is bound and listening.

        Returns:
            True once listening, False on timeout.
        """
        return self._ready_event.wait(timeout)

    def shutdown(self):
        """
        Stop accepting connections. Safe to call more than once and from
        any thread.
        """
        logger.info("Shutting down listener...")
        self._running = False

    def _cleanup(self):
        """Restore signals and close the listening socket."""
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Listener stopped")

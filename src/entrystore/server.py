"""
=============================================================================
ENTRY STORE SERVER
=============================================================================

Ties the listener, the connection state machine, the handlers and the
store together.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           EntryServer                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    ┌──────────────┐   thread per    ┌────────────────────────┐      │
    │    │ SocketServer │ ──connection──► │ _process_connection()  │      │
    │    │  (listener)  │                 │  (state machine)       │      │
    │    └──────────────┘                 └───────────┬────────────┘      │
    │                                                 │                    │
    │                          parse_request_line()   │  route table       │
    │                          parse_headers()        ▼                    │
    │                                     ┌────────────────────────┐      │
    │                                     │      DataHandler       │      │
    │                                     └───────────┬────────────┘      │
    │                                                 │                    │
    │                                                 ▼                    │
    │                                     ┌────────────────────────┐      │
    │                                     │  EntryStore (1 lock)   │      │
    │                                     └────────────────────────┘      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE (one request per connection)
=============================================================================

    1. AWAIT_REQUEST_LINE
       └── read one "\n"-terminated line
           └── EOF / reset / timeout → close, NO response
       └── fewer than two tokens → 400

    2. AWAIT_HEADERS
       └── read lines until a blank one, "Name: value" each
           └── lines without ": " are dropped
           └── EOF / reset / timeout → 400

    3. DISPATCH on exact (method, path)
       └── ("GET",  "/data") → DataHandler.fetch_all
       └── ("POST", "/data") → read Content-Length bytes, DataHandler.append
           └── short body → 400, store untouched
       └── anything else → 404

    4. RESPOND
       └── write status line (+ headers + body), log an access record

    5. CLOSED
       └── always, whatever happened above

=============================================================================
"""

import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from .access_log import AccessLogger
from .config import ServerConfig
from .core import Connection, ConnectionState, SocketServer
from .handlers import DataHandler
from .http import (
    HTTPRequest,
    HTTPResponse,
    bad_request,
    decode_line,
    internal_error,
    is_blank_line,
    not_found,
    parse_headers,
    parse_request_line,
)
from .store import EntryStore, StoreError


logger = logging.getLogger(__name__)


class Route(NamedTuple):
    """A handler plus whether its requests carry a Content-Length body."""

    handler: Callable[[HTTPRequest], HTTPResponse]
    reads_body: bool = False


class EntryServer:
    """
    The entry store server.

    =========================================================================
    USAGE
    =========================================================================

        server = EntryServer(ServerConfig(port=8080, data_file="data.json"))
        server.run()   # Blocks until Ctrl+C / SIGTERM / shutdown()

    In tests, run it in a thread on port 0:

        server = EntryServer(ServerConfig(port=0, data_file=str(tmp_path / "d.json")))
        threading.Thread(target=server.run, daemon=True).start()
        server.wait_until_ready(5)
        host, port = server.address

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None, store: Optional[EntryStore] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration. Defaults are used if not provided.
            store:  Store to serve. Built from config.data_file if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.store = store or EntryStore(self.config.data_file)

        self._socket_server = SocketServer(self.config)
        self._access_log = AccessLogger(self.config.log_format)

        data = DataHandler(self.store)
        self._routes: Dict[Tuple[str, str], Route] = {
            ("GET", "/data"): Route(data.fetch_all),
            ("POST", "/data"): Route(data.append, reads_body=True),
        }

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once the server is listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    @property
    def active_connections(self) -> int:
        """Connection handler threads currently running."""
        return self._socket_server.active_connections

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: If the address cannot be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._log_store_state()

        try:
            self._socket_server.start(self._process_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listener is accepting. False on timeout."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Stop accepting connections; run() returns within about a second."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("entrystore").setLevel(level)

    def _log_store_state(self):
        try:
            logger.info(f"Serving {self.store.path} ({self.store.count()} entries)")
        except StoreError as e:
            # Not fatal: GET and POST will answer 500 until the file is fixed
            logger.warning(f"Data file {self.store.path} is not usable: {e}")

    # =========================================================================
    # CONNECTION STATE MACHINE (runs in the connection's own thread)
    # =========================================================================

    def _process_connection(self, conn: Connection):
        """
        Serve exactly one request on the connection, then close it.

        Args:
            conn: The accepted client connection.
        """
        with conn:
            # ─────────────────────────────────────────────────────────────
            # AWAIT_REQUEST_LINE
            # ─────────────────────────────────────────────────────────────
            conn.state = ConnectionState.AWAIT_REQUEST_LINE
            raw_line = conn.read_line()
            if raw_line is None:
                logger.debug(f"[{conn.id}] Closed before a request line arrived")
                return

            method, path = parse_request_line(decode_line(raw_line))
            if not method or not path:
                logger.debug(f"[{conn.id}] Malformed request line: {raw_line!r}")
                self._respond(conn, bad_request(), method, path)
                return

            # ─────────────────────────────────────────────────────────────
            # AWAIT_HEADERS
            # ─────────────────────────────────────────────────────────────
            conn.state = ConnectionState.AWAIT_HEADERS
            headers = self._read_headers(conn)
            if headers is None:
                logger.debug(f"[{conn.id}] Connection ended inside the headers")
                self._respond(conn, bad_request(), method, path)
                return

            # ─────────────────────────────────────────────────────────────
            # DISPATCH
            # ─────────────────────────────────────────────────────────────
            conn.state = ConnectionState.DISPATCH
            request = HTTPRequest(
                method=method,
                path=path,
                headers=headers,
                client_address=conn.address,
            )

            route = self._routes.get(request.route)
            if route is None:
                self._respond(conn, not_found(), method, path)
                return

            if route.reads_body:
                # No lock is held here: a slow body only stalls this thread
                body = conn.read_exact(request.content_length)
                if body is None:
                    self._respond(conn, bad_request(), method, path)
                    return
                request.body = body

            try:
                response = route.handler(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                response = internal_error()

            # ─────────────────────────────────────────────────────────────
            # RESPOND → CLOSED (via the with block)
            # ─────────────────────────────────────────────────────────────
            self._respond(conn, response, method, path)

    def _read_headers(self, conn: Connection) -> Optional[Dict[str, str]]:
        """
        Read header lines up to the blank line.

        Returns:
            Header mapping, or None if the connection ended first.
        """
        lines: List[str] = []
        while True:
            raw_line = conn.read_line()
            if raw_line is None:
                return None

            line = decode_line(raw_line)
            if is_blank_line(line):
                return parse_headers(lines)
            lines.append(line)

    def _respond(self, conn: Connection, response: HTTPResponse, method: str, path: str):
        """Write the response and record it in the access log."""
        conn.send_response(response.to_bytes(self.config.server_name))
        self._access_log.log(
            connection_id=conn.id,
            method=method,
            path=path,
            client_ip=conn.client_ip,
            status=response.status,
            content_length=len(response.body),
            duration_ms=conn.age * 1000,
        )

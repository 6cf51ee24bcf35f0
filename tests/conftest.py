"""
pytest configuration and fixtures.
"""

import json
import socket
import threading
import time
from pathlib import Path
from typing import Dict, Generator, Optional, Tuple

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from entrystore import EntryServer, EntryStore, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample GET /data request."""
    return (
        b"GET /data HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"\r\n"
    )


def post_request(body: bytes, content_length: Optional[int] = None, path: str = "/data") -> bytes:
    """Build a POST request; content_length defaults to the real body size."""
    if content_length is None:
        content_length = len(body)
    return (
        f"POST {path} HTTP/1.1\r\n"
        f"Host: localhost:8080\r\n"
        f"Content-Type: application/json\r\n"
        f"Content-Length: {content_length}\r\n"
        f"\r\n"
    ).encode() + body


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    """Path of a data file that does not exist yet."""
    return tmp_path / "data.json"


@pytest.fixture
def store(data_file: Path) -> EntryStore:
    """Store backed by a fresh, missing data file."""
    return EntryStore(data_file)


# =============================================================================
# RAW CLIENT HELPERS
# =============================================================================

def send_raw(
    address: Tuple[str, int],
    data: bytes,
    half_close: bool = False,
    timeout: float = 5.0,
) -> bytes:
    """
    Send raw bytes and read until the server closes the connection.

    Args:
        half_close: Shut down our write side after sending, so the server
                    sees end-of-stream while we can still read the answer.
    """
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        if half_close:
            sock.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def parse_response(raw: bytes) -> Tuple[int, Dict[str, str], bytes]:
    """Split a raw response into (status code, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    status_code = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return status_code, headers, body


class LiveServer:
    """EntryServer running in a background thread on an OS-assigned port."""

    def __init__(self, server: EntryServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, data: bytes, half_close: bool = False) -> Tuple[int, Dict[str, str], bytes]:
        return parse_response(send_raw(self.address, data, half_close=half_close))

    def get_entries(self) -> list:
        status, _, body = self.request(b"GET /data HTTP/1.1\r\n\r\n")
        assert status == 200
        return json.loads(body)

    def post_entries(self, entries: list) -> int:
        status, _, _ = self.request(post_request(json.dumps(entries).encode()))
        return status

    def wait_for_active(self, count: int, timeout: float = 5.0):
        deadline = time.time() + timeout
        while self.server.active_connections != count:
            if time.time() > deadline:
                raise RuntimeError(f"Expected {count} active connections")
            time.sleep(0.01)


def make_server(data_file: Path, **overrides) -> EntryServer:
    options = dict(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        data_file=str(data_file),
        log_level="WARNING",
    )
    options.update(overrides)
    return EntryServer(ServerConfig(**options))


@pytest.fixture
def live_server(data_file: Path) -> Generator[LiveServer, None, None]:
    """A running server with an empty store."""
    live = LiveServer(make_server(data_file))
    live.start()

    yield live

    live.stop()


@pytest.fixture
def make_post():
    """The post_request() builder, for tests outside this module."""
    return post_request


@pytest.fixture
def server_factory(data_file: Path) -> Generator:
    """Start servers with config overrides; all are stopped at teardown."""
    started = []

    def factory(**overrides) -> LiveServer:
        live = LiveServer(make_server(data_file, **overrides))
        live.start()
        started.append(live)
        return live

    yield factory

    for live in started:
        live.stop()

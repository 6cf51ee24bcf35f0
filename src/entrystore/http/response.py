"""
=============================================================================
HTTP RESPONSE
=============================================================================

Builds the bytes the server writes back before closing a connection.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    HTTP/1.1 200 OK\r\n                        ← Status line
    Content-Type: application/json\r\n         ← Only when there is a body
    Content-Length: 58\r\n                     ← Auto-calculated
    Date: Sat, 17 Oct 2026 12:00:00 GMT\r\n    ← Auto-added
    Server: EntryStore/1.0\r\n                 ← Auto-added
    Connection: close\r\n                      ← Always: one request per connection
    \r\n                                       ← Empty line (separator)
    [{"id": 1, "item": "a", ...}]              ← Body bytes

Error responses (400, 404, 500, 503) carry no body at all; the status line
is the whole message for the client.

Every connection serves exactly one request, so there is no keep-alive
negotiation and no chunked encoding. Content-Length is still sent so that
well-behaved clients do not have to rely on the connection closing.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from .status_codes import HTTPStatus


JSON_CONTENT_TYPE = "application/json"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Handlers return one of these; the server serializes it with to_bytes()
    and hands the bytes to Connection.send_response().
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 201 Created"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "EntryStore/1.0") -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        Content-Length, Date, Server and Connection are added unless the
        handler already set them.

        Args:
            server_name: Value for the Server header.

        Returns:
            Complete HTTP response ready for socket.sendall().
        """
        # Copy headers to avoid modifying the original
        response_headers = dict(self.headers)

        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)
        response_headers.setdefault("Connection", "close")

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sat, 17 Oct 2026 12:00:00 GMT

    HTTP dates are always GMT, never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One function per response the server can produce.
#
#     return ok_json(encode_collection(entries))
#     return created()
#     return bad_request()
#
# =============================================================================

def ok_json(body: bytes) -> HTTPResponse:
    """Create a 200 OK response carrying an already-encoded JSON body."""
    return HTTPResponse(
        status=HTTPStatus.OK,
        headers={"Content-Type": JSON_CONTENT_TYPE},
        body=body,
    )


def created() -> HTTPResponse:
    """Create a 201 Created response with an empty body."""
    return HTTPResponse(status=HTTPStatus.CREATED)


def bad_request() -> HTTPResponse:
    """Create a 400 Bad Request response."""
    return HTTPResponse(status=HTTPStatus.BAD_REQUEST)


def not_found() -> HTTPResponse:
    """Create a 404 Not Found response."""
    return HTTPResponse(status=HTTPStatus.NOT_FOUND)


def internal_error() -> HTTPResponse:
    """Create a 500 Internal Server Error response."""
    return HTTPResponse(status=HTTPStatus.INTERNAL_SERVER_ERROR)


def service_unavailable(retry_after: Optional[int] = None) -> HTTPResponse:
    """
    Create a 503 Service Unavailable response.

    Sent by the listener when the connection cap is reached.

    Args:
        retry_after: Optional Retry-After hint in seconds.
    """
    response = HTTPResponse(status=HTTPStatus.SERVICE_UNAVAILABLE)
    if retry_after is not None:
        response.set_header("Retry-After", str(retry_after))
    return response

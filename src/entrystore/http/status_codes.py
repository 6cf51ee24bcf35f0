"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes the entry store can answer with, and their reason phrases.

The protocol is deliberately tiny, so only a handful of codes exist:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  Code  │ When                                                      │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  200   │ GET /data succeeded, body is the whole collection         │
    │  201   │ POST /data appended the batch, empty body                 │
    │  400   │ Bad request line, unreadable headers, short body,         │
    │        │ body that is not a JSON batch                             │
    │  404   │ Any (method, path) other than GET/POST on /data           │
    │  500   │ The data file could not be read, parsed or written        │
    │  503   │ Connection cap reached (only when max_connections is set) │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the server.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.CREATED == 201
        True
        >>> HTTPStatus.CREATED.phrase
        'Created'
    """

    # 2xx SUCCESS
    OK = 200                        # Collection returned
    CREATED = 201                   # Batch appended

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400               # Protocol error
    NOT_FOUND = 404                 # Routing error

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500     # Persistence error
    SERVICE_UNAVAILABLE = 503       # Admission cap reached

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 201 Created
                     ─── ───────
                      │     └── Reason phrase
                      └──────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx status code."""
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        """Check if this is a 4xx status code."""
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        """
        Check if this is a 5xx status code.

        The access log uses this to raise the record level to WARNING.
        """
        return 500 <= self < 600


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}

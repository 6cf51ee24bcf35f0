"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the request line and header lines read off a connection into
structured values. The parser never touches the socket: the server reads
one line at a time and feeds each line through these functions.

=============================================================================
WHAT A REQUEST LOOKS LIKE
=============================================================================

    POST /data HTTP/1.1\r\n              ← Request line
    Host: localhost:8080\r\n             ← Header lines ("Name: value")
    Content-Length: 37\r\n
    \r\n                                 ← Blank line ends the headers
    [{"item":"a","completed":false}]     ← Content-Length bytes of body

=============================================================================
PARSING RULES
=============================================================================

1. REQUEST LINE
   Split on any run of whitespace. The first token is the method, the
   second the path; anything after (usually the version) is ignored.
   Fewer than two tokens means the request is malformed and BOTH values
   come back empty, never a half-parsed pair.

2. HEADER LINES
   Each line is stripped, then split ONCE on the literal ": ".
       "Content-Length: 37"  → ("Content-Length", "37")
       "X-Note: a: b"        → ("X-Note", "a: b")
       "Content-Length:37"   → dropped (no ": " separator)
       "garbage"             → dropped
   Dropped lines are not errors. Parsing stops at the first blank line.

3. CASE SENSITIVITY
   Header names are stored exactly as received. A client that sends
   "content-length" instead of "Content-Length" gets no body read.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple


HEADER_SEPARATOR = ": "
CONTENT_LENGTH = "Content-Length"


def decode_line(raw: bytes) -> str:
    """Decode one raw request line. Invalid UTF-8 becomes U+FFFD."""
    return raw.decode("utf-8", errors="replace")


def parse_request_line(line: str) -> Tuple[str, str]:
    """
    Extract method and path from a request line.

    Args:
        line: The request line, with or without its line terminator.

    Returns:
        (method, path), or ("", "") if the line has fewer than two tokens.

    Example:
        >>> parse_request_line("GET /data HTTP/1.1\\r\\n")
        ('GET', '/data')
        >>> parse_request_line("GET\\n")
        ('', '')
    """
    parts = line.split()
    if len(parts) < 2:
        return "", ""
    return parts[0], parts[1]


def is_blank_line(line: str) -> bool:
    """Check if a header line is the blank line that ends the headers."""
    return line.strip() == ""


def parse_header_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Parse one header line into a (name, value) pair.

    Returns:
        The pair, or None when the line has no ": " separator.
    """
    name, sep, value = line.strip().partition(HEADER_SEPARATOR)
    if not sep:
        return None
    return name, value


def parse_headers(lines: Iterable[str]) -> Dict[str, str]:
    """
    Parse header lines up to the first blank line.

    Lines after the blank line are not looked at. Later duplicates of a
    header name overwrite earlier ones.

    Args:
        lines: Header lines in the order received.

    Returns:
        Mapping of header name (case as received) to value.
    """
    headers: Dict[str, str] = {}
    for line in lines:
        if is_blank_line(line):
            break
        pair = parse_header_line(line)
        if pair is not None:
            name, value = pair
            headers[name] = value
    return headers


def parse_content_length(headers: Dict[str, str]) -> int:
    """
    Get the declared body length.

    The lookup is exact-case. The value must be ASCII digits only; a
    missing header or anything else ("-5", "+5", "1_0", "12abc") means 0.
    """
    value = headers.get(CONTENT_LENGTH)
    if value is None:
        return 0
    value = value.strip()
    # int() alone would take signs, underscores and non-ASCII digits
    if not value.isascii() or not value.isdigit():
        return 0
    return int(value)


@dataclass
class HTTPRequest:
    """
    A request as seen by the handlers.

    Attributes:
        method:         Exactly as sent ("GET", "POST", ...). No case folding.
        path:           Exactly as sent, query string included.
        headers:        Header name → value, names as received.
        body:           Raw body bytes (empty for GET).
        client_address: (ip, port) of the client, for logging.
    """

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    client_address: Tuple[str, int] = ("", 0)

    @property
    def content_length(self) -> int:
        """Declared body length, 0 when absent or unusable."""
        return parse_content_length(self.headers)

    @property
    def route(self) -> Tuple[str, str]:
        """The (method, path) pair the server dispatches on."""
        return self.method, self.path

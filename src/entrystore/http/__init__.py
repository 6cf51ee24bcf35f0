"""
HTTP protocol pieces: request-line and header parsing, response building,
and status codes.
"""

from .status_codes import HTTPStatus
from .request import (
    HTTPRequest,
    decode_line,
    is_blank_line,
    parse_content_length,
    parse_header_line,
    parse_headers,
    parse_request_line,
)
from .response import (
    HTTPResponse,
    bad_request,
    created,
    internal_error,
    not_found,
    ok_json,
    service_unavailable,
)

__all__ = [
    "HTTPStatus",
    "HTTPRequest",
    "HTTPResponse",
    "decode_line",
    "is_blank_line",
    "parse_content_length",
    "parse_header_line",
    "parse_headers",
    "parse_request_line",
    "bad_request",
    "created",
    "internal_error",
    "not_found",
    "ok_json",
    "service_unavailable",
]

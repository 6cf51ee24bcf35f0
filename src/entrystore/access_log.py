"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log record per response written, on the "entrystore.access" logger.

    text:  127.0.0.1 - - [17/Oct/2026:12:00:00 +0000] "POST /data" 201 0 1.84ms conn=a1f3c2d9
    json:  {"connection_id": "a1f3c2d9", "method": "POST", "path": "/data", ...}

5xx responses are logged at WARNING so they stand out; everything else is
INFO. Connections abandoned before a request line arrived produce no
access record (there is nothing to describe), only a DEBUG line from the
server.

The logger is namespaced so it can be routed on its own:

    logging.getLogger("entrystore.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone

from .http.status_codes import HTTPStatus


logger = logging.getLogger("entrystore.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one request.

    Attributes:
        connection_id:  Connection.id, ties the record to DEBUG lines.
        method:         Method as sent, "-" if the request line was malformed.
        path:           Path as sent, "-" if the request line was malformed.
        client_ip:      Client's IP address.
        status_code:    Status written back.
        content_length: Response body size in bytes.
        duration_ms:    Time from accept to response written.
        timestamp:      When the response was written (UTC, ISO 8601).
    """

    connection_id: str
    method: str
    path: str
    client_ip: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        record = asdict(self)
        record["duration_ms"] = round(self.duration_ms, 2)
        return record

    def to_text(self) -> str:
        """Apache-like single line."""
        stamp = datetime.fromisoformat(self.timestamp).strftime("%d/%b/%Y:%H:%M:%S %z")
        return (
            f'{self.client_ip} - - [{stamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms conn={self.connection_id}'
        )


class AccessLogger:
    """
    Emits RequestLog records in the configured format.

    Args:
        log_format: "text" or "json".
    """

    def __init__(self, log_format: str = "text"):
        self.log_format = log_format

    def log(
        self,
        connection_id: str,
        method: str,
        path: str,
        client_ip: str,
        status: HTTPStatus,
        content_length: int,
        duration_ms: float,
    ) -> RequestLog:
        """Build the record, emit it, and return it."""
        record = RequestLog(
            connection_id=connection_id,
            method=method or "-",
            path=path or "-",
            client_ip=client_ip,
            status_code=int(status),
            content_length=content_length,
            duration_ms=duration_ms,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        level = logging.WARNING if status.is_server_error else logging.INFO
        if self.log_format == "json":
            logger.log(level, json.dumps(record.to_dict()))
        else:
            logger.log(level, record.to_text())

        return record

"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Binds host:port, runs the accept() loop                          │
    │  • Starts one thread per accepted connection                        │
    │  • Optional cap on concurrent handlers (503 when full)              │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ One Connection per client socket
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Buffered line reads and exact-length body reads                  │
    │  • Records the state machine position for logs                      │
    │  • Sends the response and closes                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
]

"""
=============================================================================
ENTRYSTORE - A Minimal Network Data-Entry Store
=============================================================================

Clients append entries {id, item, completed} over a small HTTP/1.1-shaped
protocol and fetch the whole collection back. The collection lives in one
JSON file, guarded by one lock.

    POST /data   [{"item": "milk", "completed": false}]   → 201
    GET  /data                                            → 200 [{"id": 1, ...}]

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    entrystore/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m entrystore)
    ├── server.py            # EntryServer: per-connection state machine
    ├── config.py            # ServerConfig dataclass
    ├── store.py             # EntryStore: locked read-modify-write on the file
    ├── codec.py             # JSON encoding/decoding of collections and batches
    ├── models.py            # Entry, NewEntry
    ├── access_log.py        # One record per response
    ├── core/
    │   ├── socket_server.py # Listener: accept loop, thread per connection
    │   └── connection.py    # Buffered line / exact-length reads
    ├── http/
    │   ├── request.py       # Request line and header parsing
    │   ├── response.py      # Response serialization
    │   └── status_codes.py  # HTTPStatus
    └── handlers/
        └── data.py          # GET /data, POST /data

=============================================================================
QUICK START
=============================================================================

    from entrystore import EntryServer, ServerConfig

    server = EntryServer(ServerConfig(port=8080, data_file="data.json"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import EntryServer
from .config import ServerConfig
from .store import EntryStore, StoreError
from .models import Entry, NewEntry

__all__ = [
    "EntryServer",
    "ServerConfig",
    "EntryStore",
    "StoreError",
    "Entry",
    "NewEntry",
    "__version__",
]

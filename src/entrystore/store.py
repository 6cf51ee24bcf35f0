"""
=============================================================================
RECORD STORE
=============================================================================

The persisted collection of entries, guarded by one exclusive lock.

=============================================================================
READ-MODIFY-WRITE UNDER ONE LOCK
=============================================================================

There is no in-memory copy of the collection. Every operation goes to disk:

    read_all()                        append_batch(batch)
    ──────────                        ───────────────────
    acquire lock                      acquire lock
      read data file                    read data file
      decode                            decode
    release lock                        assign ids last_id+1, last_id+2, …
                                        encode whole collection
                                        rewrite data file
                                      release lock

Because the lock spans the whole cycle, two appends can never read the
same "before" state, so no update is lost and the ids of one batch are
always contiguous. Appends are applied in lock-acquisition order.

The lock is only held for the file work. Handlers read the request body
off the network BEFORE calling append_batch(), so a slow client cannot
stall everyone else.

=============================================================================
FAILURE POLICY
=============================================================================

    missing data file       → empty collection (not an error)
    unreadable data file    → StoreError
    malformed data file     → StoreError, for read_all() AND append_batch()
    unwritable data file    → StoreError

A malformed data file is never silently replaced: appending on top of it
would throw away whatever it held. The file must be repaired by hand.

The rewrite is a plain overwrite, not write-to-temp-and-rename, so a crash
mid-write can leave a truncated file behind. Other requests in the same
process never observe a half-written file because of the lock.

=============================================================================
"""

import logging
import threading
from pathlib import Path
from typing import List, Sequence, Union

from .codec import CodecError, decode_collection, encode_collection
from .models import Entry, NewEntry


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """
    Raised when the data file cannot be read, parsed or written.

    Attributes:
        path: The data file involved.
    """

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


class EntryStore:
    """
    File-backed collection of entries.

    One instance is created at startup and shared by reference with every
    connection handler. The instance owns its lock; nothing else does.

    Usage:
        store = EntryStore("data.json")
        store.append_batch([NewEntry(item="milk")])   # → [Entry(id=1, ...)]
        store.read_all()                              # → [Entry(id=1, ...)]
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def read_all(self) -> List[Entry]:
        """
        Load the full collection.

        Returns:
            All entries in insertion order; empty if nothing was stored yet.

        Raises:
            StoreError: If the data file is unreadable or malformed.
        """
        with self._lock:
            return self._load()

    def append_batch(self, new_entries: Sequence[NewEntry]) -> List[Entry]:
        """
        Append a batch and persist the resulting collection.

        Ids continue from the highest id on file: last_id + 1, last_id + 2,
        … in batch order. For a file written only by this store that is
        the entry count, and a hand-edited file with gaps never gets an id
        reused.
        An empty batch still rewrites the file.

        Args:
            new_entries: Entries to append, in submission order.

        Returns:
            The appended entries with their assigned ids.

        Raises:
            StoreError: If the current collection cannot be loaded or the
                        new one cannot be written. The file is left as it was
                        in the load case and in the encode case.
        """
        with self._lock:
            entries = self._load()

            last_id = max((entry.id for entry in entries), default=0)
            appended = [
                new_entry.with_id(last_id + offset + 1)
                for offset, new_entry in enumerate(new_entries)
            ]
            entries.extend(appended)

            # Encode before opening the file so an encoding failure
            # cannot truncate it.
            self._save(encode_collection(entries))

            logger.debug(
                f"Appended {len(appended)} entries to {self.path} "
                f"(total {len(entries)})"
            )
            return appended

    def count(self) -> int:
        """Number of persisted entries."""
        return len(self.read_all())

    # =========================================================================
    # FILE ACCESS (caller holds the lock)
    # =========================================================================

    def _load(self) -> List[Entry]:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error(f"Cannot read {self.path}: {e}")
            raise StoreError(f"Cannot read data file: {e}", self.path) from e

        try:
            return decode_collection(data)
        except CodecError as e:
            logger.error(f"Malformed data file {self.path}: {e}")
            raise StoreError(f"Malformed data file: {e}", self.path) from e

    def _save(self, data: bytes) -> None:
        try:
            self.path.write_bytes(data)
        except OSError as e:
            logger.error(f"Cannot write {self.path}: {e}")
            raise StoreError(f"Cannot write data file: {e}", self.path) from e

"""
Data model for the entry store.

    Entry     {id, item, completed}   one persisted record
    NewEntry  {item, completed}       one element of a submitted batch

A NewEntry only becomes an Entry inside EntryStore.append_batch(), which is
the one place ids are handed out.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class NewEntry:
    """An entry as submitted by a client, before it has an id."""

    item: str = ""
    completed: bool = False

    def with_id(self, entry_id: int) -> "Entry":
        """Promote to a persisted Entry."""
        return Entry(id=entry_id, item=self.item, completed=self.completed)


@dataclass(frozen=True)
class Entry:
    """
    One persisted record.

    Attributes:
        id:        Positive, unique within the collection, assigned by the store.
        item:      Free text.
        completed: Completion flag.
    """

    id: int
    item: str
    completed: bool

    def to_dict(self) -> Dict[str, Any]:
        """Key order here is the key order in the data file."""
        return {
            "id": self.id,
            "item": self.item,
            "completed": self.completed,
        }

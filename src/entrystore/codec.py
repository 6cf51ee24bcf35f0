"""
=============================================================================
JSON CODEC
=============================================================================

Encoding and decoding for the two JSON documents the server deals with:

    ┌──────────────────┬──────────────────────────────────────────────────┐
    │ Document         │ Shape                                            │
    ├──────────────────┼──────────────────────────────────────────────────┤
    │ Collection       │ [{"id": 1, "item": "a", "completed": false}, …]  │
    │ (data file,      │ every field required, ids positive and unique    │
    │  GET response)   │                                                  │
    ├──────────────────┼──────────────────────────────────────────────────┤
    │ Batch            │ [{"item": "a", "completed": false}, …]           │
    │ (POST body)      │ missing or null item → "", completed → false,    │
    │                  │ "id" and unknown keys are ignored                │
    └──────────────────┴──────────────────────────────────────────────────┘

A JSON `null` decodes to an empty list for both documents, and an empty or
whitespace-only data file is an empty collection. An empty POST body is not
valid JSON and is rejected.

Everything else that does not match the shape raises CodecError.

=============================================================================
"""

import json
from typing import Any, List, Sequence

from .models import Entry, NewEntry


class CodecError(ValueError):
    """Raised when bytes are not a valid collection or batch."""


def encode_collection(entries: Sequence[Entry]) -> bytes:
    """
    Serialize a collection for the data file and for GET responses.

    Two-space indentation keeps the data file readable by hand.
    """
    return json.dumps(
        [entry.to_dict() for entry in entries],
        indent=2,
        ensure_ascii=False,
    ).encode("utf-8")


def _load_json(data: bytes) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise CodecError(f"Not UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise CodecError(f"Invalid JSON: {e}") from e


def _require_list(document: Any, what: str) -> List[Any]:
    if not isinstance(document, list):
        raise CodecError(f"{what} must be a JSON array, got {type(document).__name__}")
    return document


def _is_int(value: Any) -> bool:
    # bool is a subclass of int; true/false are not ids
    return isinstance(value, int) and not isinstance(value, bool)


def decode_collection(data: bytes) -> List[Entry]:
    """
    Parse a persisted collection.

    Args:
        data: Raw contents of the data file.

    Returns:
        Entries in file order.

    Raises:
        CodecError: If the contents are not a well-formed collection.
    """
    if not data.strip():
        return []

    document = _load_json(data)
    if document is None:
        return []

    entries: List[Entry] = []
    seen_ids = set()
    for index, record in enumerate(_require_list(document, "Collection")):
        if not isinstance(record, dict):
            raise CodecError(f"Record {index} is not an object")

        entry_id = record.get("id")
        item = record.get("item")
        completed = record.get("completed")

        if not _is_int(entry_id) or entry_id <= 0:
            raise CodecError(f"Record {index} has invalid id: {entry_id!r}")
        if entry_id in seen_ids:
            raise CodecError(f"Record {index} repeats id {entry_id}")
        if not isinstance(item, str):
            raise CodecError(f"Record {index} has invalid item: {item!r}")
        if not isinstance(completed, bool):
            raise CodecError(f"Record {index} has invalid completed flag: {completed!r}")

        seen_ids.add(entry_id)
        entries.append(Entry(id=entry_id, item=item, completed=completed))

    return entries


def decode_batch(data: bytes) -> List[NewEntry]:
    """
    Parse a POST body into the entries to append.

    Args:
        data: Raw request body.

    Returns:
        New entries in submission order (possibly empty).

    Raises:
        CodecError: If the body is not a JSON array of entry objects.
    """
    document = _load_json(data)
    if document is None:
        return []

    batch: List[NewEntry] = []
    for index, record in enumerate(_require_list(document, "Batch")):
        if not isinstance(record, dict):
            raise CodecError(f"Batch element {index} is not an object")

        # null counts as missing
        item = record.get("item")
        if item is None:
            item = ""
        completed = record.get("completed")
        if completed is None:
            completed = False

        if not isinstance(item, str):
            raise CodecError(f"Batch element {index} has invalid item: {item!r}")
        if not isinstance(completed, bool):
            raise CodecError(f"Batch element {index} has invalid completed flag: {completed!r}")

        batch.append(NewEntry(item=item, completed=completed))

    return batch

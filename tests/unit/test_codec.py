"""
Unit tests for the JSON codec.
"""

import json

import pytest

from entrystore.codec import CodecError, decode_batch, decode_collection, encode_collection
from entrystore.models import Entry, NewEntry


class TestEncodeCollection:
    """Tests for encode_collection()."""

    def test_empty(self):
        assert json.loads(encode_collection([])) == []

    def test_field_order_and_values(self):
        data = encode_collection([Entry(id=1, item="milk", completed=False)])

        assert json.loads(data) == [{"id": 1, "item": "milk", "completed": False}]
        text = data.decode("utf-8")
        assert text.index('"id"') < text.index('"item"') < text.index('"completed"')

    def test_non_ascii_kept_as_utf8(self):
        data = encode_collection([Entry(id=1, item="café", completed=True)])
        assert "café".encode("utf-8") in data


class TestDecodeCollection:
    """Tests for decode_collection()."""

    def test_decode_records(self):
        data = b'[{"id": 1, "item": "a", "completed": false}, {"id": 2, "item": "b", "completed": true}]'

        assert decode_collection(data) == [
            Entry(id=1, item="a", completed=False),
            Entry(id=2, item="b", completed=True),
        ]

    @pytest.mark.parametrize("data", [b"", b"   \n", b"null", b"[]"])
    def test_empty_collections(self, data: bytes):
        assert decode_collection(data) == []

    def test_extra_keys_ignored(self):
        data = b'[{"id": 3, "item": "x", "completed": false, "note": "hi"}]'
        assert decode_collection(data) == [Entry(id=3, item="x", completed=False)]

    @pytest.mark.parametrize("data", [
        b"not json",
        b"[{",
        b"\xff\xfe",
        b'{"id": 1}',
        b'"text"',
        b"[1, 2]",
        b'[{"item": "a", "completed": false}]',
        b'[{"id": 0, "item": "a", "completed": false}]',
        b'[{"id": -1, "item": "a", "completed": false}]',
        b'[{"id": true, "item": "a", "completed": false}]',
        b'[{"id": "1", "item": "a", "completed": false}]',
        b'[{"id": 1, "item": 5, "completed": false}]',
        b'[{"id": 1, "item": "a"}]',
        b'[{"id": 1, "item": "a", "completed": 0}]',
        b'[{"id": 1, "item": "a", "completed": false}, {"id": 1, "item": "b", "completed": false}]',
    ])
    def test_malformed(self, data: bytes):
        with pytest.raises(CodecError):
            decode_collection(data)

    def test_codec_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_collection(b"{")


class TestDecodeBatch:
    """Tests for decode_batch()."""

    def test_decode_batch(self):
        batch = decode_batch(b'[{"item": "a", "completed": true}, {"item": "b", "completed": false}]')

        assert batch == [NewEntry(item="a", completed=True), NewEntry(item="b", completed=False)]

    def test_defaults_for_missing_fields(self):
        assert decode_batch(b'[{}, {"item": "x"}, {"completed": true}]') == [
            NewEntry(item="", completed=False),
            NewEntry(item="x", completed=False),
            NewEntry(item="", completed=True),
        ]

    def test_null_fields_take_defaults(self):
        assert decode_batch(b'[{"item": null, "completed": null}, {"item": "x", "completed": null}]') == [
            NewEntry(item="", completed=False),
            NewEntry(item="x", completed=False),
        ]

    def test_client_ids_ignored(self):
        """Ids are assigned by the store, never taken from the client."""
        assert decode_batch(b'[{"id": 99, "item": "a", "completed": false}]') == [
            NewEntry(item="a", completed=False),
        ]

    @pytest.mark.parametrize("data", [b"[]", b"null"])
    def test_empty_batch(self, data: bytes):
        assert decode_batch(data) == []

    @pytest.mark.parametrize("data", [
        b"",
        b"[{",
        b"not json",
        b'{"item": "a"}',
        b'["a"]',
        b"[null]",
        b'[{"item": 1}]',
        b'[{"item": "a", "completed": "yes"}]',
        b"\xc3\x28",
    ])
    def test_invalid_batch(self, data: bytes):
        with pytest.raises(CodecError):
            decode_batch(data)


class TestModels:
    """Tests for Entry and NewEntry."""

    def test_with_id(self):
        assert NewEntry(item="a", completed=True).with_id(7) == Entry(id=7, item="a", completed=True)

    def test_to_dict(self):
        assert Entry(id=1, item="a", completed=False).to_dict() == {
            "id": 1,
            "item": "a",
            "completed": False,
        }

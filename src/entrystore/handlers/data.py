"""
=============================================================================
DATA ENDPOINT HANDLERS
=============================================================================

The two operations behind /data.

    GET  /data   fetch_all()   store.read_all()      → 200 + collection
                                                     → 500 on StoreError

    POST /data   append()      decode_batch(body)    → 400 on CodecError
                               store.append_batch()  → 201, empty body
                                                     → 500 on StoreError

The body of a POST has already been read off the socket by the time
append() runs, so the store lock is never held across network I/O.

=============================================================================
"""

import logging

from ..codec import CodecError, decode_batch, encode_collection
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, bad_request, created, internal_error, ok_json
from ..store import EntryStore, StoreError


logger = logging.getLogger(__name__)


class DataHandler:
    """
    Handlers for the /data endpoint.

    Usage:
        handler = DataHandler(store)
        response = handler.fetch_all(request)
    """

    def __init__(self, store: EntryStore):
        self.store = store

    def fetch_all(self, request: HTTPRequest) -> HTTPResponse:
        """Return the whole collection as JSON."""
        try:
            entries = self.store.read_all()
        except StoreError as e:
            logger.error(f"GET {request.path} failed: {e}")
            return internal_error()

        return ok_json(encode_collection(entries))

    def append(self, request: HTTPRequest) -> HTTPResponse:
        """
        Append the batch carried in the request body.

        A body that does not decode never reaches the store.
        """
        try:
            batch = decode_batch(request.body)
        except CodecError as e:
            logger.info(f"Rejected POST {request.path} body: {e}")
            return bad_request()

        try:
            appended = self.store.append_batch(batch)
        except StoreError as e:
            logger.error(f"POST {request.path} failed: {e}")
            return internal_error()

        if appended:
            logger.info(f"Stored entries {appended[0].id}-{appended[-1].id}")
        return created()

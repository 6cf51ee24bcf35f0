"""
Request handlers.

Each handler takes an HTTPRequest and returns an HTTPResponse; none of them
see the socket.
"""

from .data import DataHandler

__all__ = ["DataHandler"]

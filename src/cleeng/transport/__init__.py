"""
Transport Layer.

Moves serialized JSON-RPC batches to the Cleeng servers and back.
"""

from cleeng.transport.interface import Transport, TransportError
from cleeng.transport.http import HttpxTransport

__all__ = [
    "Transport",
    "TransportError",
    "HttpxTransport",
]

"""
Cleeng Python SDK

Client for the Cleeng JSON-RPC API. API calls can be sent one at a time or
queued and sent together in a single JSON-RPC batch request.
"""

__version__ = "0.1.0"

from cleeng.config import CleengConfig
from cleeng.core.errors import (
    ApiError,
    ArgumentError,
    CleengError,
    PreconditionError,
    ProtocolError,
    StateError,
)
from cleeng.core.entity import Collection, Entity
from cleeng.transport.interface import Transport, TransportError
from cleeng.client import CleengApi

__all__ = [
    "CleengApi",
    "CleengConfig",
    "Collection",
    "Entity",
    "Transport",
    "TransportError",
    "ApiError",
    "ArgumentError",
    "CleengError",
    "PreconditionError",
    "ProtocolError",
    "StateError",
]

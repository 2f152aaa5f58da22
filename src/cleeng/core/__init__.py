"""
Core client components.

This module contains the call ledger, the batch dispatcher and the
result entities they populate.
"""

from cleeng.core.errors import (
    ApiError,
    ArgumentError,
    CleengError,
    PreconditionError,
    ProtocolError,
    StateError,
    UnknownFieldError,
)
from cleeng.core.entity import Collection, Entity, EntityStatus
from cleeng.core.ledger import CallLedger, PendingCall
from cleeng.core.dispatcher import BatchDispatcher

__all__ = [
    "ApiError",
    "ArgumentError",
    "CleengError",
    "PreconditionError",
    "ProtocolError",
    "StateError",
    "UnknownFieldError",
    "Collection",
    "Entity",
    "EntityStatus",
    "CallLedger",
    "PendingCall",
    "BatchDispatcher",
]

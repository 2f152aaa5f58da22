"""
Call Ledger - holds API calls waiting to be dispatched.

Each call gets a correlation id when it is queued. Ids run 1..N within one
dispatch cycle and restart at 1 once the ledger is cleared.
"""

import json
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from cleeng.core.entity import Entity
from cleeng.core.errors import ArgumentError

logger = structlog.get_logger(__name__)

JSONRPC_VERSION = "2.0"


@dataclass
class PendingCall:
    """
    One queued API call.

    Attributes:
        id: Correlation id, unique within the current ledger cycle
        method: Remote procedure name
        params: Named parameters, in the order they were given
        entity: Placeholder populated when the response arrives
    """

    id: int
    method: str
    params: Dict[str, Any] = field(default_factory=dict)
    entity: Entity = field(default_factory=Entity)

    def to_request(self) -> dict:
        """Build the JSON-RPC 2.0 request object for this call."""
        return {
            "method": self.method,
            "params": self.params,
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
        }

    def to_json(self) -> str:
        """
        Serialize the request object.

        Raises:
            ArgumentError: If params contain values JSON cannot represent
        """
        try:
            return json.dumps(self.to_request())
        except (TypeError, ValueError) as e:
            raise ArgumentError(
                f"Parameters of '{self.method}' are not JSON-serializable: {e}"
            ) from e


class CallLedger:
    """
    Ordered set of calls awaiting dispatch.

    A ledger belongs to a single client instance and is meant to be driven
    by one caller at a time; the lock only keeps the id counter and the
    mapping consistent with each other.
    """

    def __init__(self, batch_mode: bool = False):
        """
        Initialize the ledger.

        Args:
            batch_mode: Hold calls until an explicit flush
        """
        self.batch_mode = batch_mode
        self._calls: Dict[int, PendingCall] = {}
        self._last_id = 0
        self._lock = threading.Lock()

    def set_batch_mode(self, enabled: bool) -> None:
        """Toggle batch mode. Calls already queued are left as they are."""
        self.batch_mode = bool(enabled)
        logger.debug("batch_mode_changed", enabled=self.batch_mode)

    def enqueue(
        self,
        method: str,
        params: Optional[Mapping] = None,
        entity: Optional[Entity] = None,
    ) -> PendingCall:
        """
        Queue a call.

        Args:
            method: Remote procedure name
            params: Named parameters (empty if omitted)
            entity: Placeholder to populate (a plain Entity if omitted)

        Returns:
            The queued call

        Raises:
            ArgumentError: If method is empty or params is not a mapping
        """
        if not isinstance(method, str) or not method:
            raise ArgumentError("Method name must be a non-empty string.")
        if params is None:
            params = {}
        elif not isinstance(params, Mapping):
            raise ArgumentError(f"Parameters of '{method}' must be a mapping.")
        if entity is None:
            entity = Entity()

        with self._lock:
            self._last_id += 1
            call = PendingCall(
                id=self._last_id,
                method=method,
                params=dict(params),
                entity=entity,
            )
            self._calls[call.id] = call

        logger.debug("call_enqueued", method=method, call_id=call.id)
        return call

    def get(self, call_id: Any) -> Optional[PendingCall]:
        """Get a pending call by id."""
        if isinstance(call_id, bool) or not isinstance(call_id, int):
            return None
        with self._lock:
            return self._calls.get(call_id)

    def calls(self) -> List[PendingCall]:
        """Get pending calls in ascending id order."""
        with self._lock:
            return [self._calls[call_id] for call_id in sorted(self._calls)]

    def clear(self) -> int:
        """
        Drop every pending call and restart ids at 1.

        Returns:
            Number of calls dropped
        """
        with self._lock:
            dropped = len(self._calls)
            self._calls = {}
            self._last_id = 0
        return dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)

    def __bool__(self) -> bool:
        return True

"""
Batch Dispatcher - sends queued calls and reconciles the responses.

All calls in the ledger travel as a single JSON-RPC 2.0 batch. Response
elements are matched to calls by id, never by position. The first failing
element aborts the whole batch.
"""

import json
from typing import Any, Optional

import structlog

from cleeng.core.errors import ApiError, ArgumentError, ProtocolError, StateError
from cleeng.core.ledger import CallLedger
from cleeng.transport.interface import Transport

logger = structlog.get_logger(__name__)


def _normalize_id(value: Any) -> Any:
    """Map ids echoed back as numeric strings onto the integer ids we send."""
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or "Unknown API error")
    return str(error)


class BatchDispatcher:
    """
    Transmits the ledger and applies the results to its placeholders.

    The last request and response bodies are kept on ``raw_request`` and
    ``raw_response`` for debugging.
    """

    def __init__(self, transport: Transport):
        """
        Initialize the dispatcher.

        Args:
            transport: Transport used for the round trip
        """
        self.transport = transport
        self.raw_request: Optional[str] = None
        self.raw_response: Optional[str] = None

    def flush(self, ledger: CallLedger, endpoint: str) -> None:
        """
        Send every pending call and reconcile the response.

        The ledger is cleared afterwards whether the dispatch succeeded or
        not, so a failed batch is never replayed with stale ids.

        Args:
            ledger: Ledger holding the calls to send
            endpoint: JSON-RPC endpoint URL

        Raises:
            ArgumentError: If call parameters cannot be serialized
            TransportError: If the transport fails
            ProtocolError: If the response is not a usable JSON-RPC batch
            ApiError: If the server reports an error for any call
        """
        try:
            calls = ledger.calls()
            body = "[" + ",".join(call.to_json() for call in calls) + "]"
            self.raw_request = body

            logger.debug("rpc_batch_sending", endpoint=endpoint, calls=len(calls))
            raw = self.transport.send(endpoint, body)
            self.raw_response = raw

            self._reconcile(ledger, raw)
            logger.debug("rpc_batch_reconciled", calls=len(calls))
        finally:
            ledger.clear()

    def _reconcile(self, ledger: CallLedger, raw: str) -> None:
        try:
            responses = json.loads(raw)
        except (TypeError, ValueError):
            responses = None

        if not isinstance(responses, list):
            raise ProtocolError(
                ProtocolError.INVALID_JSON,
                f"Expected valid JSON array, received: {raw!r}",
            )

        if not responses:
            raise ProtocolError(ProtocolError.EMPTY_RESPONSE, "Empty response received.")

        # No entity is populated unless every element in the batch is valid.
        resolved = []
        for response in responses:
            if not isinstance(response, dict) or response.get("id") is None:
                raise ProtocolError(
                    ProtocolError.MISSING_ID,
                    "Invalid response from API - missing JSON-RPC ID.",
                )

            call_id = _normalize_id(response["id"])
            call = ledger.get(call_id)
            if call is None:
                logger.warning("rpc_unknown_response_id", response_id=response["id"])
                continue

            error = response.get("error")
            if error:
                message = _error_message(error)
                logger.warning(
                    "rpc_call_failed",
                    method=call.method,
                    call_id=call.id,
                    error=message,
                )
                if isinstance(error, dict):
                    raise ApiError(message, code=error.get("code"), data=error.get("data"))
                raise ApiError(message)

            result = response.get("result")
            if not isinstance(result, (dict, list)):
                raise ApiError(
                    ApiError.INVALID_RESULT_TYPE,
                    data={"method": call.method, "type": type(result).__name__},
                )

            try:
                parsed = call.entity.parse(result)
            except (ArgumentError, StateError) as e:
                raise ApiError(
                    ApiError.INVALID_RESULT_TYPE,
                    data={"method": call.method, "reason": str(e)},
                ) from e

            resolved.append((call, parsed))

        for call, parsed in resolved:
            call.entity.apply(parsed)

"""
Exceptions raised by the Cleeng client.

None of these are retried internally. Protocol and API errors raised
while dispatching a batch discard every call that was still pending.
"""

from typing import Any, Optional


class CleengError(Exception):
    """Base class for all Cleeng client errors."""
    pass


class ArgumentError(CleengError, ValueError):
    """Raised when a caller supplies malformed input."""
    pass


class UnknownFieldError(ArgumentError, AttributeError):
    """Raised when reading a field a populated entity does not have."""

    def __init__(self, entity_name: str, field_name: str):
        super().__init__(f"Property '{field_name}' does not exist on {entity_name}")
        self.field_name = field_name


class StateError(CleengError, RuntimeError):
    """Raised when an entity is read before it was populated from the API."""
    pass


class PreconditionError(CleengError, RuntimeError):
    """Raised when an API method is called before the token it needs is set."""
    pass


class ProtocolError(CleengError):
    """
    Raised when the server response is not a usable JSON-RPC batch.

    The ``code`` attribute is one of ``invalid-json``, ``empty-response``
    or ``missing-id``.
    """

    INVALID_JSON = "invalid-json"
    EMPTY_RESPONSE = "empty-response"
    MISSING_ID = "missing-id"

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(message or code)
        self.code = code


class ApiError(CleengError):
    """Raised when the server reports a failure for a call in the batch."""

    INVALID_RESULT_TYPE = "invalid-result-type"

    def __init__(
        self,
        message: str,
        code: Optional[Any] = None,
        data: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

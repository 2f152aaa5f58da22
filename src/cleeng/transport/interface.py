"""
Abstract interface for the wire transport.

Defines the contract the batch dispatcher uses to reach the Cleeng servers.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cleeng.core.errors import CleengError


class Transport(ABC):
    """
    Abstract transport.

    A transport moves one request body to an endpoint and returns the raw
    response body. It does not interpret JSON-RPC.
    """

    @abstractmethod
    def send(self, endpoint: str, body: str) -> str:
        """
        Send a request body and return the response body.

        Args:
            endpoint: URL of the JSON-RPC endpoint
            body: Serialized JSON-RPC batch

        Returns:
            Raw response body

        Raises:
            TransportError: If the endpoint cannot be reached
        """
        pass

    def close(self) -> None:
        """Release any resources held by the transport."""
        pass


class TransportError(CleengError):
    """Raised when the transport cannot complete a round trip."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

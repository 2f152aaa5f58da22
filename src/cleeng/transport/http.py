"""
HTTP transport backed by httpx.

Posts JSON-RPC batches to the Cleeng endpoint.
"""

from typing import Optional

import httpx
import structlog

from cleeng.config import CleengConfig, get_config
from cleeng.transport.interface import Transport, TransportError

logger = structlog.get_logger(__name__)


class HttpxTransport(Transport):
    """
    Synchronous httpx transport.

    The underlying client is created on first use and reused until close().
    """

    def __init__(
        self,
        config: Optional[CleengConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Client configuration. Uses global config if not provided.
            client: Preconfigured httpx client (created lazily if not provided)
        """
        self.config = config or get_config()
        self._client = client

    @property
    def headers(self) -> dict:
        """Get request headers."""
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers=self.headers,
                timeout=self.config.http_timeout_seconds,
            )
        return self._client

    def send(self, endpoint: str, body: str) -> str:
        """Post a request body and return the response text."""
        client = self._get_client()

        try:
            response = client.post(
                endpoint,
                content=body.encode("utf-8"),
                headers=self.headers,
            )
        except httpx.HTTPError as e:
            logger.error("http_request_error", endpoint=endpoint, error=str(e))
            raise TransportError(f"Request to {endpoint} failed: {e}") from e

        if not response.is_success:
            logger.error(
                "http_request_failed",
                endpoint=endpoint,
                status=response.status_code,
            )
            raise TransportError(
                f"Unexpected HTTP status {response.status_code} from {endpoint}",
                status_code=response.status_code,
            )

        return response.text

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

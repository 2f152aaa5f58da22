"""
Pytest configuration and shared fixtures for the test suite.
"""

import json
from typing import Callable, List, Tuple, Union

import pytest

from cleeng.client import CleengApi
from cleeng.config import CleengConfig
from cleeng.transport.interface import Transport


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> CleengConfig:
    """Create a test configuration."""
    return CleengConfig(
        endpoint="https://test.cleeng.local/json-rpc",
        publisher_token="publisher_token_123",
        distributor_token="distributor_token_456",
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def rpc_result(call_id: int, result) -> dict:
    """Build a successful JSON-RPC response element."""
    return {"id": call_id, "result": result, "error": None, "jsonrpc": "2.0"}


def rpc_error(call_id: int, message: str, code: int = -1) -> dict:
    """Build a failed JSON-RPC response element."""
    return {"id": call_id, "error": {"code": code, "message": message}, "jsonrpc": "2.0"}


def echo_results(body: str) -> str:
    """Answer every request in a batch with its own method name and params."""
    requests = json.loads(body)
    return json.dumps([
        rpc_result(req["id"], {"method": req["method"], **req["params"]})
        for req in requests
    ])


# ============================================================================
# Stub Transport
# ============================================================================

Reply = Union[str, Exception, Callable[[str], str]]


class StubTransport(Transport):
    """Transport returning canned bodies and recording what was sent."""

    def __init__(self):
        self.replies: List[Reply] = []
        self.sent: List[Tuple[str, str]] = []
        self.closed = False

    def reply_with(self, reply: Reply) -> "StubTransport":
        """Queue a reply: a body, an exception to raise or a function of the body."""
        self.replies.append(reply)
        return self

    def reply_json(self, payload) -> "StubTransport":
        return self.reply_with(json.dumps(payload))

    def send(self, endpoint: str, body: str) -> str:
        self.sent.append((endpoint, body))
        if not self.replies:
            raise AssertionError("StubTransport received an unexpected request")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(body)
        return reply

    def close(self) -> None:
        self.closed = True

    @property
    def last_request(self) -> list:
        """Decoded body of the last request."""
        return json.loads(self.sent[-1][1])


@pytest.fixture
def stub_transport() -> StubTransport:
    """Create a stub transport."""
    return StubTransport()


@pytest.fixture
def api(test_config, stub_transport) -> CleengApi:
    """Create a client wired to the stub transport."""
    return CleengApi(test_config, transport=stub_transport)

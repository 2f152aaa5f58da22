"""
Test suite for the batch dispatcher.

Tests transmission of the ledger and reconciliation of JSON-RPC batch
responses, including every failure path.
"""

import json
import random

import pytest

from cleeng.core.dispatcher import BatchDispatcher
from cleeng.core.entity import Collection
from cleeng.core.errors import ApiError, ArgumentError, ProtocolError, StateError
from cleeng.core.ledger import CallLedger
from cleeng.entities import Customer, SingleOffer
from cleeng.transport.interface import TransportError

from conftest import echo_results, rpc_error, rpc_result


ENDPOINT = "https://test.cleeng.local/json-rpc"


@pytest.fixture
def ledger() -> CallLedger:
    return CallLedger(batch_mode=True)


@pytest.fixture
def dispatcher(stub_transport) -> BatchDispatcher:
    return BatchDispatcher(stub_transport)


# ============================================================================
# Test Transmission
# ============================================================================

class TestTransmission:
    """Tests for the request payload."""

    def test_payload_contains_all_calls_in_order(self, ledger, dispatcher, stub_transport):
        for i in range(4):
            ledger.enqueue("getSingleOffer", {"offerId": f"S{i}"})
        stub_transport.reply_with(echo_results)

        dispatcher.flush(ledger, ENDPOINT)

        endpoint, _ = stub_transport.sent[0]
        assert endpoint == ENDPOINT
        request = stub_transport.last_request
        assert len(request) == 4
        assert [req["id"] for req in request] == [1, 2, 3, 4]
        assert all(req["jsonrpc"] == "2.0" for req in request)

    def test_raw_request_and_response_recorded(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("getCustomer", {"customerToken": "t1"})
        body = json.dumps([rpc_result(1, {"id": "c1"})])
        stub_transport.reply_with(body)

        dispatcher.flush(ledger, ENDPOINT)

        assert dispatcher.raw_request == stub_transport.sent[0][1]
        assert dispatcher.raw_request.startswith("[") and dispatcher.raw_request.endswith("]")
        assert dispatcher.raw_response == body

    def test_empty_ledger_still_sends_empty_array(self, ledger, dispatcher, stub_transport):
        stub_transport.reply_with("[]")

        with pytest.raises(ProtocolError):
            dispatcher.flush(ledger, ENDPOINT)

        assert stub_transport.sent[0][1] == "[]"

    def test_unserializable_params_fail_at_dispatch(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("getCustomer", {"token": object()})

        with pytest.raises(ArgumentError):
            dispatcher.flush(ledger, ENDPOINT)

        assert stub_transport.sent == []
        assert len(ledger) == 0


# ============================================================================
# Test Reconciliation
# ============================================================================

class TestReconciliation:
    """Tests for matching response elements to pending calls."""

    def test_single_call_populated(self, ledger, dispatcher, stub_transport):
        customer = Customer()
        ledger.enqueue("getCustomer", {"customerToken": "t1"}, customer)
        stub_transport.reply_json([{"id": 1, "result": {"id": "c1", "displayName": "Jane"}}])

        dispatcher.flush(ledger, ENDPOINT)

        assert customer.pending is False
        assert customer.displayName == "Jane"
        assert len(ledger) == 0

    def test_reconciliation_is_order_independent(self, ledger, stub_transport):
        entities = [ledger.enqueue("getSingleOffer", {"offerId": f"S{i}"}).entity for i in range(6)]
        responses = [rpc_result(i + 1, {"id": f"S{i}"}) for i in range(6)]
        random.Random(7).shuffle(responses)
        stub_transport.reply_json(responses)

        BatchDispatcher(stub_transport).flush(ledger, ENDPOINT)

        assert [entity.id for entity in entities] == [f"S{i}" for i in range(6)]

    def test_string_ids_are_matched(self, ledger, dispatcher, stub_transport):
        entity = ledger.enqueue("getCustomer").entity
        stub_transport.reply_json([{"id": "1", "result": {"id": "c1"}}])

        dispatcher.flush(ledger, ENDPOINT)

        assert entity.id == "c1"

    def test_unknown_id_is_ignored(self, ledger, dispatcher, stub_transport):
        first = ledger.enqueue("a").entity
        second = ledger.enqueue("b").entity
        stub_transport.reply_json([
            rpc_result(2, {"n": 2}),
            rpc_result(99, {"n": 99}),
            rpc_result(1, {"n": 1}),
        ])

        dispatcher.flush(ledger, ENDPOINT)

        assert first.n == 1
        assert second.n == 2

    def test_list_result_is_accepted(self, ledger, dispatcher, stub_transport):
        entity = ledger.enqueue("a").entity
        stub_transport.reply_json([rpc_result(1, [["key", "value"]])])

        dispatcher.flush(ledger, ENDPOINT)

        assert entity.key == "value"

    def test_missing_response_leaves_entity_pending(self, ledger, dispatcher, stub_transport):
        first = ledger.enqueue("a").entity
        second = ledger.enqueue("b").entity
        stub_transport.reply_json([rpc_result(1, {})])

        dispatcher.flush(ledger, ENDPOINT)

        assert first.pending is False
        assert second.pending is True
        assert len(ledger) == 0


# ============================================================================
# Test Failures
# ============================================================================

class TestFailures:
    """Tests for protocol, API and transport errors."""

    def test_invalid_json(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("a")
        stub_transport.reply_with("not json")

        with pytest.raises(ProtocolError) as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert exc_info.value.code == "invalid-json"
        assert len(ledger) == 0
        assert dispatcher.raw_response == "not json"

    def test_json_object_instead_of_array(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("a")
        stub_transport.reply_json(rpc_result(1, {}))

        with pytest.raises(ProtocolError) as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert exc_info.value.code == ProtocolError.INVALID_JSON

    def test_empty_response(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("a")
        stub_transport.reply_with("[]")

        with pytest.raises(ProtocolError) as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert exc_info.value.code == "empty-response"
        assert len(ledger) == 0

    def test_missing_id(self, ledger, dispatcher, stub_transport):
        entity = ledger.enqueue("a").entity
        ledger.enqueue("b")
        stub_transport.reply_json([{"result": {}}, rpc_result(1, {"x": 1})])

        with pytest.raises(ProtocolError) as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert exc_info.value.code == "missing-id"
        assert entity.pending is True
        assert len(ledger) == 0

    def test_non_object_element_is_missing_id(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("a")
        stub_transport.reply_json([1])

        with pytest.raises(ProtocolError) as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert exc_info.value.code == ProtocolError.MISSING_ID

    def test_error_aborts_whole_batch(self, ledger, dispatcher, stub_transport):
        first = ledger.enqueue("a").entity
        second = ledger.enqueue("b").entity
        stub_transport.reply_json([{"id": 2, "result": {}}, {"id": 1, "error": {"message": "boom"}}])

        with pytest.raises(ApiError, match="boom"):
            dispatcher.flush(ledger, ENDPOINT)

        assert first.pending is True
        assert second.pending is True
        assert len(ledger) == 0

    def test_error_code_and_data_are_kept(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("a")
        stub_transport.reply_json([
            {"id": 1, "error": {"code": 4, "message": "Offer not found", "data": {"offerId": "X"}}}
        ])

        with pytest.raises(ApiError) as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert exc_info.value.message == "Offer not found"
        assert exc_info.value.code == 4
        assert exc_info.value.data == {"offerId": "X"}

    def test_null_error_is_success(self, ledger, dispatcher, stub_transport):
        entity = ledger.enqueue("a").entity
        stub_transport.reply_json([{"id": 1, "result": {"ok": True}, "error": None}])

        dispatcher.flush(ledger, ENDPOINT)

        assert entity.ok is True

    @pytest.mark.parametrize("result", ["text", 5, None, True])
    def test_invalid_result_type(self, ledger, dispatcher, stub_transport, result):
        entity = ledger.enqueue("a").entity
        stub_transport.reply_json([{"id": 1, "result": result}])

        with pytest.raises(ApiError, match="invalid-result-type"):
            dispatcher.flush(ledger, ENDPOINT)

        assert entity.pending is True
        assert len(ledger) == 0

    def test_malformed_collection_leaves_batch_pending(self, ledger, dispatcher, stub_transport):
        offer = ledger.enqueue("getSingleOffer", entity=SingleOffer()).entity
        offers = ledger.enqueue("listSingleOffers", entity=Collection(SingleOffer)).entity
        stub_transport.reply_json([
            rpc_result(1, {"id": "S1", "title": "Film"}),
            rpc_result(2, {"foo": 1}),
        ])

        with pytest.raises(ApiError, match="invalid-result-type") as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert isinstance(exc_info.value.__cause__, StateError)
        assert exc_info.value.data["method"] == "listSingleOffers"
        assert offer.pending is True
        assert offers.pending is True
        assert len(ledger) == 0

    def test_list_result_that_is_not_pairs(self, ledger, dispatcher, stub_transport):
        first = ledger.enqueue("a").entity
        second = ledger.enqueue("b").entity
        stub_transport.reply_json([rpc_result(1, {}), rpc_result(2, [1, 2])])

        with pytest.raises(ApiError, match="invalid-result-type") as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert isinstance(exc_info.value.__cause__, ArgumentError)
        assert first.pending is True
        assert second.pending is True

    def test_transport_error_propagates_unwrapped(self, ledger, dispatcher, stub_transport):
        error = TransportError("connection refused")
        ledger.enqueue("a")
        stub_transport.reply_with(error)

        with pytest.raises(TransportError) as exc_info:
            dispatcher.flush(ledger, ENDPOINT)

        assert exc_info.value is error
        assert len(ledger) == 0

    def test_ids_restart_after_failure(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("a")
        ledger.enqueue("b")
        stub_transport.reply_with("not json")
        with pytest.raises(ProtocolError):
            dispatcher.flush(ledger, ENDPOINT)

        assert ledger.enqueue("c").id == 1

    def test_error_message_fallback(self, ledger, dispatcher, stub_transport):
        ledger.enqueue("a")
        stub_transport.reply_json([rpc_error(1, "")])

        with pytest.raises(ApiError, match="Unknown API error"):
            dispatcher.flush(ledger, ENDPOINT)

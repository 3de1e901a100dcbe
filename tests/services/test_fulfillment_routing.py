# tests/services/test_fulfillment_routing.py
import pytest

from app.services.remote_orders.fulfillment_routing import FulfillmentRouter, RequestFulfillment
from app.services.remote_orders.types import RemoteOrderError
from tests.helpers.fake_remote import FakeRemoteOrderService

pytestmark = pytest.mark.asyncio


class AlreadyAtLocation(FakeRemoteOrderService):
    async def get_fulfillment_orders(self, order_id):
        return [{"id": 77, "assigned_location_id": 105521053971}]


class NoFulfillmentOrders(FakeRemoteOrderService):
    async def get_fulfillment_orders(self, order_id):
        raise RemoteOrderError(500, "down")


async def test_first_strategy_wins():
    remote = FakeRemoteOrderService()
    outcome = await FulfillmentRouter(remote).route(100, "om-bbh")

    assert outcome.routed
    assert outcome.strategy == "move_to_location"
    assert outcome.attempts == ["move_to_location"]
    assert remote.moves == [(101, 105521053971)]
    assert remote.fulfillment_requests == []


async def test_already_at_location_needs_no_move():
    remote = AlreadyAtLocation()
    outcome = await FulfillmentRouter(remote).route(100, "om-bbh")
    assert outcome.routed
    assert remote.moves == []


async def test_all_strategies_failing_is_reported_not_raised():
    remote = FakeRemoteOrderService(fulfillment_errors=True)
    outcome = await FulfillmentRouter(remote).route(100, "om-bbh")

    assert not outcome.routed
    assert outcome.attempts == ["move_to_location", "request_fulfillment"]
    assert "cannot request" in outcome.error
    assert outcome.as_dict()["routed"] is False


async def test_unmapped_warehouse_and_lookup_error():
    unmapped = await FulfillmentRouter(FakeRemoteOrderService()).route(1, "nowhere")
    assert not unmapped.routed
    assert "nowhere" in unmapped.error

    broken = await FulfillmentRouter(NoFulfillmentOrders()).route(1, "om-bbh")
    assert not broken.routed
    assert "down" in broken.error


async def test_custom_strategy_list():
    remote = FakeRemoteOrderService()
    outcome = await FulfillmentRouter(remote, strategies=[RequestFulfillment("go")]).route(100, "om-bbl")
    assert outcome.strategy == "request_fulfillment"
    assert remote.fulfillment_requests == [101]

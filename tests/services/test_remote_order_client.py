# tests/services/test_remote_order_client.py
import json

import httpx
import pytest

from app.services.remote_orders.client import ShopAdminClient
from app.services.remote_orders.types import RemoteOrderError, RemoteOrderNotFound

pytestmark = pytest.mark.asyncio

PRODUCTS = {
    "products": [
        {"id": 11, "title": "Kibble 4lb", "variants": [{"id": 111, "sku": "KIBBLE-4LB", "price": "12.50"}]},
        {"id": 22, "title": "Treat Pack", "variants": [{"id": 221, "sku": "TREATS-3"}, {"id": 222, "sku": "TREATS-6"}]},
    ]
}


def _client(handler) -> ShopAdminClient:
    return ShopAdminClient(
        domain="qa-test.myshopify.com",
        access_token="shpat_x",
        api_version="2024-01",
        transport=httpx.MockTransport(handler),
    )


async def test_create_order_posts_wrapped_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["token"] = request.headers.get("X-Shopify-Access-Token")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            201,
            json={"order": {"id": 42, "order_number": 1042, "name": "#1042", "tags": "qa-generator", "financial_status": "paid"}},
        )

    client = _client(handler)
    try:
        order = await client.create_order({"line_items": [], "tags": "qa-generator"})
    finally:
        await client.aclose()

    assert seen["url"] == "https://qa-test.myshopify.com/admin/api/2024-01/orders.json"
    assert seen["token"] == "shpat_x"
    assert seen["body"] == {"order": {"line_items": [], "tags": "qa-generator"}}
    assert order.id == 42
    assert order.name == "#1042"
    assert order.tags == "qa-generator"


async def test_non_2xx_raises_remote_error():
    client = _client(lambda r: httpx.Response(422, text='{"errors":"bad"}'))
    try:
        with pytest.raises(RemoteOrderError) as ei:
            await client.create_order({})
    finally:
        await client.aclose()
    assert ei.value.status == 422
    assert "bad" in str(ei.value)


async def test_transport_error_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    try:
        with pytest.raises(RemoteOrderError) as ei:
            await client.list_products()
    finally:
        await client.aclose()
    assert ei.value.status == 0


async def test_delete_treats_404_as_already_gone():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        if request.url.path.endswith("/orders/1.json"):
            return httpx.Response(200)
        return httpx.Response(404, json={"errors": "Not Found"})

    client = _client(handler)
    try:
        ok = await client.delete_order("1")
        gone = await client.delete_order("2")
    finally:
        await client.aclose()

    assert ok.success and not ok.already_gone
    assert gone.success and gone.already_gone


async def test_delete_other_errors_propagate():
    client = _client(lambda r: httpx.Response(500, text="boom"))
    try:
        with pytest.raises(RemoteOrderError) as ei:
            await client.delete_order("1")
    finally:
        await client.aclose()
    assert not isinstance(ei.value, RemoteOrderNotFound)


async def test_search_product_by_sku_scans_variants():
    client = _client(lambda r: httpx.Response(200, json=PRODUCTS))
    try:
        hit = await client.search_product_by_sku("TREATS-6")
        miss = await client.search_product_by_sku("NOPE")
    finally:
        await client.aclose()

    assert hit.variant_id == 222
    assert hit.product_id == 22
    assert hit.title == "Treat Pack"
    assert hit.price == "0.00"
    assert miss is None


async def test_fulfillment_calls_hit_expected_paths():
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append((request.method, request.url.path))
        if request.url.path.endswith("fulfillment_orders.json"):
            return httpx.Response(200, json={"fulfillment_orders": [{"id": 7}]})
        return httpx.Response(200, json={})

    client = _client(handler)
    try:
        fos = await client.get_fulfillment_orders(5)
        await client.move_fulfillment_order(7, 105521053971)
        await client.request_fulfillment(7, "please")
    finally:
        await client.aclose()

    assert fos == [{"id": 7}]
    assert paths == [
        ("GET", "/admin/api/2024-01/orders/5/fulfillment_orders.json"),
        ("POST", "/admin/api/2024-01/fulfillment_orders/7/move.json"),
        ("POST", "/admin/api/2024-01/fulfillment_orders/7/fulfillment_request.json"),
    ]

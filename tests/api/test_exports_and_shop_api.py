# tests/api/test_exports_and_shop_api.py
import csv
import io

import pytest

from app.services.remote_orders.types import RemoteOrderError

pytestmark = pytest.mark.asyncio


async def test_configuration_export_sheet(client):
    payload = {
        "name": "Two line kibble",
        "warehouse": "om-bbp",
        "address": "us-columbus",
        "line_items": [{"productId": "KIBBLE-4LB", "quantity": 1}, {"productId": "TREATS-6", "quantity": 2}],
        "custom_tags": ["vip"],
        "customer_first_name": "Test",
        "customer_last_name": "Buyer",
        "customer_email": "qa@example.com",
        "order_count": 2,
    }
    cid = (await client.post("/api/configurations", json=payload)).json()["id"]

    r = await client.get(f"/api/configurations/{cid}/export.csv", params={"start_number": 500})
    assert r.status_code == 200
    assert "attachment" in r.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(r.text)))
    assert len(rows) == 4
    assert [row["Name"] for row in rows] == ["#TEST-500", "#TEST-500", "#TEST-501", "#TEST-501"]
    assert [row["Line: SKU"] for row in rows[:2]] == ["KIBBLE-4LB", "TREATS-6"]
    assert rows[0]["Tags"] == "vip, qa-generator, warehouse_om-bbp"
    assert rows[0]["Shipping: City"] == "Columbus"
    assert rows[0]["Line: Fulfillment Service"] == "68309319955"

    r = await client.get("/api/configurations/999/export.csv")
    assert r.status_code == 404


async def test_next_order_number(client, fake_remote):
    fake_remote.recent_orders = [{"name": "TEST-271020"}, {"name": "#1001"}]
    r = await client.get("/api/shop/next-order-number")
    assert r.json() == {
        "next_order_number": 271021,
        "formatted_order_number": "TEST-271021",
        "last_order_number": 271020,
    }


async def test_next_order_number_falls_back_on_remote_error(client, fake_remote):
    async def broken(limit=50):
        raise RemoteOrderError(503, "unavailable")

    fake_remote.list_recent_orders = broken
    r = await client.get("/api/shop/next-order-number")
    assert r.status_code == 200
    assert r.json()["next_order_number"] == 271008


async def test_shop_helpers(client, fake_remote):
    r = await client.get("/api/shop/test")
    body = r.json()
    assert body["success"] is True
    assert body["product_count"] == 2
    assert body["store"] == "qa-test.myshopify.com"

    r = await client.get("/api/shop/products", params={"limit": 1})
    assert len(r.json()["products"]) == 1

    r = await client.get("/api/shop/locations")
    assert r.json()["locations"][0]["id"] == 105521053971


async def test_remote_failure_maps_to_502(client, fake_remote):
    async def broken(limit=50):
        raise RemoteOrderError(401, "Invalid API key")

    fake_remote.list_products = broken
    r = await client.get("/api/shop/products")
    assert r.status_code == 502
    body = r.json()
    assert body["error_code"] == "remote_shop_error"
    assert body["details"][0]["remote_status"] == 401


async def test_health_and_metrics(client):
    assert (await client.get("/ping")).json() == {"status": "ok"}
    assert (await client.get("/healthz")).status_code == 200

    await client.post("/api/orders/create", json={
        "configuration": {
            "warehouse": "om-bbh",
            "address": "us-columbus",
            "line_items": [{"productId": "KIBBLE-4LB", "quantity": 1}],
            "customer_first_name": "Test",
            "customer_last_name": "Buyer",
            "customer_email": "qa@example.com",
        }
    })
    r = await client.get("/metrics")
    assert r.status_code == 200
    assert "qa_orders_created_total" in r.text
    assert "http_requests_total" in r.text

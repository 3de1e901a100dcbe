# tests/api/test_order_configurations_api.py
import pytest

pytestmark = pytest.mark.asyncio


def _payload(**kw):
    data = {
        "name": "BBH weekly",
        "warehouse": "om-bbh",
        "address": "us-columbus",
        "line_items": [{"productId": "KIBBLE-4LB", "quantity": 2}],
        "custom_tags": ["contains_kibble"],
        "customer_first_name": "Test",
        "customer_last_name": "Buyer",
        "customer_email": "qa@example.com",
        "order_count": 3,
        "order_delay": 0,
    }
    data.update(kw)
    return data


async def test_crud_roundtrip(client):
    r = await client.post("/api/configurations", json=_payload())
    assert r.status_code == 201, r.text
    created = r.json()
    cid = created["id"]
    assert created["line_items"] == [{"productId": "KIBBLE-4LB", "quantity": 2}]

    r = await client.get(f"/api/configurations/{cid}")
    assert r.status_code == 200
    assert r.json()["name"] == "BBH weekly"

    r = await client.put(f"/api/configurations/{cid}", json=_payload(order_count=7))
    assert r.status_code == 200
    assert r.json()["order_count"] == 7

    r = await client.get("/api/configurations")
    assert [c["id"] for c in r.json()] == [cid]

    r = await client.delete(f"/api/configurations/{cid}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Template deleted successfully", "unlinked_batches": 0}

    r = await client.get(f"/api/configurations/{cid}")
    assert r.status_code == 404
    assert r.json()["error_code"] == "configuration_not_found"


async def test_duplicate_name_conflict(client):
    assert (await client.post("/api/configurations", json=_payload())).status_code == 201
    r = await client.post("/api/configurations", json=_payload(name="bbh WEEKLY"))
    assert r.status_code == 409
    body = r.json()
    assert body["error_code"] == "configuration_name_taken"
    assert "already exists" in body["message"]


async def test_invalid_payload_is_422_problem(client):
    r = await client.post("/api/configurations", json=_payload(line_items=[], customer_email="nope"))
    assert r.status_code == 422
    body = r.json()
    assert body["error_code"] == "request_validation_error"
    paths = {d["path"] for d in body["details"]}
    assert "line_items" in paths
    assert "customer_email" in paths


async def test_delete_unlinks_batches(client):
    cid = (await client.post("/api/configurations", json=_payload())).json()["id"]
    r = await client.post("/api/batches", json={"order_count": 3, "configuration_id": cid})
    assert r.status_code == 201
    batch_id = r.json()["batch_id"]

    r = await client.delete(f"/api/configurations/{cid}")
    assert r.json()["unlinked_batches"] == 1

    r = await client.get(f"/api/batches/{batch_id}")
    assert r.status_code == 200
    assert r.json()["configuration_id"] is None


async def test_validate_configuration(client):
    r = await client.post("/api/validate-configuration", json=_payload())
    assert r.status_code == 200
    assert r.json()["valid"] is True
    assert r.json()["errors"] == []

    r = await client.post(
        "/api/validate-configuration",
        json=_payload(line_items=[{"productId": "K", "quantity": 11}], order_count=0, order_delay=61),
    )
    assert r.status_code == 400
    body = r.json()
    assert body["valid"] is False
    fields = {e["field"] for e in body["errors"]}
    assert {"line_items.0.quantity", "order_count", "order_delay"} <= fields

# tests/unit/test_order_payload.py
import random
from types import SimpleNamespace

from app.services.remote_orders import payload as p
from app.services.remote_orders.types import ProductInfo


def _config(**kw):
    base = dict(
        warehouse="om-bbh",
        address="us-columbus",
        custom_tags=["contains_kibble"],
        customer_first_name="Test",
        customer_last_name="Buyer",
        customer_email="qa@example.com",
        state_province=None,
    )
    base.update(kw)
    return SimpleNamespace(**base)


def test_build_tags_dedupes_and_appends_source_and_warehouse():
    tags = p.build_tags(["vip", " vip ", "", "qa-generator"], "om-bbl", "qa-generator")
    assert tags == "vip, qa-generator, warehouse_om-bbl"


def test_line_item_falls_back_to_bare_sku():
    li = p.build_line_item("MISSING-1", 3, None, fulfillment_service="manual")
    assert li == {
        "title": "MISSING-1",
        "sku": "MISSING-1",
        "quantity": 3,
        "price": "0.00",
        "fulfillment_service": "manual",
    }


def test_line_item_uses_resolved_variant():
    info = ProductInfo(variant_id=7, product_id=70, title="Kibble", price="12.50", sku="K")
    li = p.build_line_item("K", 2, info, fulfillment_service=69071995155)
    assert li["variant_id"] == 7
    assert li["product_id"] == 70
    assert li["price"] == "12.50"
    assert li["fulfillment_service"] == 69071995155


def test_unknown_warehouse_uses_manual_fulfillment_and_no_location():
    assert p.fulfillment_service_for("elsewhere") == "manual"
    assert p.warehouse_location_id("elsewhere") is None
    assert p.warehouse_location_id("OM-BBH") == 105521053971


def test_address_book_and_fallback():
    known = p.resolve_address("ca-ottawa", first_name="A", last_name="B")
    assert known["city"] == "Ottawa"
    assert known["first_name"] == "A"

    fallback = p.resolve_address("mars-base", first_name="A", last_name="B", state_province="TX")
    assert fallback["city"] == "Test City"
    assert fallback["province"] == "TX"


def test_order_template_shape():
    tpl = p.build_order_template(
        _config(),
        [p.build_line_item("K", 1, None, fulfillment_service="manual")],
        source_tag="qa-generator",
    )
    assert tpl["financial_status"] == "paid"
    assert tpl["location_id"] == 105521053971
    assert tpl["customer"]["email"] == "qa@example.com"
    assert tpl["shipping_address"] == tpl["billing_address"]
    assert tpl["tags"] == "contains_kibble, qa-generator, warehouse_om-bbh"
    assert "OM-BBH" in tpl["note"]

    no_loc = p.build_order_template(_config(warehouse="elsewhere"), [], source_tag="qa-generator")
    assert "location_id" not in no_loc


def test_random_customer_is_deterministic_per_seed_and_plus_addressed():
    a = p.random_customer(random.Random("BATCH-1"), "qa+old@example.com")
    b = p.random_customer(random.Random("BATCH-1"), "qa+old@example.com")
    assert a == b
    first, last, email = a
    assert first and last
    assert email.startswith("qa+qa")
    assert email.endswith("@example.com")


def test_personalize_does_not_touch_template():
    tpl = p.build_order_template(_config(), [], source_tag="qa-generator")
    out = p.personalize(tpl, first_name="Riley", last_name="Silva", email="x@example.com")
    assert out["shipping_address"]["first_name"] == "Riley"
    assert out["customer"]["email"] == "x@example.com"
    assert tpl["customer"]["email"] == "qa@example.com"
    assert tpl["shipping_address"]["first_name"] == "Test"


def test_next_order_number():
    orders = [{"name": "#1001"}, {"name": "TEST-271010"}, {"name": "TEST-abc"}, {"name": "TEST-271008"}]
    assert p.next_order_number(orders, prefix="TEST", floor=271007) == (271010, 271011)
    assert p.next_order_number([], prefix="TEST", floor=271007) == (271007, 271008)

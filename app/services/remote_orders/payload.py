# app/services/remote_orders/payload.py
"""
订单 payload 组装：地址簿、仓映射、标签、行项目。

这里只做纯数据变换，不发请求；SKU → 变体的解析由 ProductResolutionCache 负责，
解析结果以 ProductInfo / None 的形式传进来。
"""

from __future__ import annotations

import copy
import random
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from app.services.remote_orders.types import ProductInfo

# 仓编码 → 远端 location id
WAREHOUSE_LOCATIONS: Dict[str, int] = {
    "om-bbl": 96010764563,
    "om-bbh": 105521053971,
    "om-bbp": 101212520723,
}

# 仓编码 → 远端 fulfillment service id（未知仓走 manual）
WAREHOUSE_FULFILLMENT_SERVICES: Dict[str, int] = {
    "om-bbl": 67412590867,
    "om-bbh": 69071995155,
    "om-bbp": 68309319955,
}

ADDRESS_BOOK: Dict[str, Dict[str, str]] = {
    "us-columbus": {
        "address1": "500 W Broad St",
        "city": "Columbus",
        "province": "OH",
        "country": "United States",
        "zip": "43215",
        "phone": "+1-614-555-0123",
    },
    "ca-ottawa": {
        "address1": "123 Maple Grove Rd",
        "city": "Ottawa",
        "province": "ON",
        "country": "Canada",
        "zip": "K2P 1L4",
        "phone": "+1-613-555-0123",
    },
}

FALLBACK_ADDRESS: Dict[str, str] = {
    "address1": "123 Test Street",
    "city": "Test City",
    "province": "Test Province",
    "country": "United States",
    "zip": "12345",
}

FALLBACK_PRICE = "0.00"

_FIRST_NAMES = ("Avery", "Jordan", "Riley", "Casey", "Morgan", "Quinn", "Skyler", "Rowan", "Emerson", "Harper")
_LAST_NAMES = ("Walker", "Nguyen", "Patel", "Garcia", "Kowalski", "Okafor", "Schmidt", "Larsen", "Moreau", "Silva")


def warehouse_location_id(warehouse: str) -> Optional[int]:
    return WAREHOUSE_LOCATIONS.get((warehouse or "").strip().lower())


def fulfillment_service_for(warehouse: str) -> int | str:
    return WAREHOUSE_FULFILLMENT_SERVICES.get((warehouse or "").strip().lower(), "manual")


def resolve_address(
    key: str,
    *,
    first_name: str,
    last_name: str,
    state_province: Optional[str] = None,
) -> Dict[str, str]:
    known = ADDRESS_BOOK.get((key or "").strip().lower())
    if known is not None:
        base = dict(known)
    else:
        base = dict(FALLBACK_ADDRESS)
        if state_province:
            base["province"] = state_province
    return {"first_name": first_name, "last_name": last_name, **base}


def build_tags(custom_tags: Iterable[str], warehouse: str, source_tag: str) -> str:
    """自定义标签 + 来源标签 + warehouse_<code>，去重保序。"""
    seen: set[str] = set()
    out: List[str] = []
    for t in [*custom_tags, source_tag, f"warehouse_{warehouse}"]:
        t = (t or "").strip()
        if t and t not in seen:
            seen.add(t)
            out.append(t)
    return ", ".join(out)


def build_line_item(
    sku: str,
    quantity: int,
    product: Optional[ProductInfo],
    *,
    fulfillment_service: int | str,
) -> Dict[str, Any]:
    """
    product=None（查不到 / 查询失败）时退化成“裸 SKU 行”：title 与 sku 都是原始 SKU，价格 0.00，
    下单照常进行。
    """
    if product is None:
        return {
            "title": sku,
            "sku": sku,
            "quantity": int(quantity),
            "price": FALLBACK_PRICE,
            "fulfillment_service": fulfillment_service,
        }
    return {
        "variant_id": product.variant_id,
        "product_id": product.product_id,
        "title": product.title,
        "sku": sku,
        "quantity": int(quantity),
        "price": product.price,
        "fulfillment_service": fulfillment_service,
    }


def build_order_template(
    config: Any,
    line_items: Sequence[Dict[str, Any]],
    *,
    source_tag: str,
    source_name: str = "QA Test Generator",
) -> Dict[str, Any]:
    """
    按模板组装一次 payload（整批复用；randomize_data 时再用 personalize() 换客户信息）。
    config 只需具备 OrderConfigurationBase 的属性。
    """
    address = resolve_address(
        config.address,
        first_name=config.customer_first_name,
        last_name=config.customer_last_name,
        state_province=getattr(config, "state_province", None),
    )
    payload: Dict[str, Any] = {
        "line_items": [dict(li) for li in line_items],
        "customer": {
            "first_name": config.customer_first_name,
            "last_name": config.customer_last_name,
            "email": str(config.customer_email),
        },
        "billing_address": dict(address),
        "shipping_address": dict(address),
        "tags": build_tags(config.custom_tags or [], config.warehouse, source_tag),
        "note": f"Created by QA order generator - Warehouse: {config.warehouse.upper()}",
        "source_name": source_name,
        "financial_status": "paid",
    }
    location_id = warehouse_location_id(config.warehouse)
    if location_id is not None:
        payload["location_id"] = location_id
    return payload


def random_customer(rng: random.Random, base_email: str) -> Tuple[str, str, str]:
    """随机客户：姓名从固定名单里抽，邮箱用 plus 地址（仍投递到模板邮箱）。"""
    first = rng.choice(_FIRST_NAMES)
    last = rng.choice(_LAST_NAMES)
    local, _, domain = str(base_email).partition("@")
    local = local.split("+", 1)[0]
    email = f"{local}+qa{rng.getrandbits(32):08x}@{domain}"
    return first, last, email


def personalize(template: Dict[str, Any], *, first_name: str, last_name: str, email: str) -> Dict[str, Any]:
    out = copy.deepcopy(template)
    out["customer"] = {"first_name": first_name, "last_name": last_name, "email": email}
    for key in ("billing_address", "shipping_address"):
        if isinstance(out.get(key), dict):
            out[key]["first_name"] = first_name
            out[key]["last_name"] = last_name
    return out


def next_order_number(orders: Iterable[Dict[str, Any]], *, prefix: str, floor: int) -> Tuple[int, int]:
    """
    从最近订单的 name 里找 <prefix>-<n> 的最大 n（不低于 floor），返回 (last, next)。
    """
    last = int(floor)
    head = f"{prefix}-"
    for o in orders:
        name = str(o.get("name") or "")
        if not name.startswith(head):
            continue
        tail = name[len(head) :]
        if tail.isdigit() and int(tail) > last:
            last = int(tail)
    return last, last + 1

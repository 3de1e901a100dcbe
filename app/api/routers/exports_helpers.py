# app/api/routers/exports_helpers.py
from __future__ import annotations

import csv
from datetime import datetime
from io import StringIO
from typing import Any, Dict, Iterable, Tuple

from app.services.remote_orders.payload import build_tags, fulfillment_service_for, resolve_address

CONFIGURATION_SHEET_COLUMNS = [
    "Name",
    "Command",
    "Email",
    "Tags",
    "Note",
    "Financial: Status",
    "Line: Type",
    "Line: SKU",
    "Line: Quantity",
    "Line: Fulfillment Service",
    "Shipping: First Name",
    "Shipping: Last Name",
    "Shipping: Address 1",
    "Shipping: City",
    "Shipping: Province Code",
    "Shipping: Country",
    "Shipping: Zip",
    "Shipping: Phone",
]

BATCH_RESULT_COLUMNS = [
    "order_index",
    "result",
    "id",
    "order_number",
    "name",
    "total_price",
    "financial_status",
    "fulfillment_status",
    "admin_url",
    "message",
]


def build_configuration_csv(
    config: Any,
    *,
    prefix: str,
    start_number: int,
    source_tag: str,
) -> Tuple[StringIO, str]:
    """
    批量导入表：每单每行项目一行，同一单的多行共用 Name。
    order_count 行数按模板上的请求单量展开。
    """
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(CONFIGURATION_SHEET_COLUMNS)

    address = resolve_address(
        config.address,
        first_name=config.customer_first_name,
        last_name=config.customer_last_name,
        state_province=config.state_province,
    )
    tags = build_tags(config.custom_tags or [], config.warehouse, source_tag)
    service = fulfillment_service_for(config.warehouse)
    note = f"Created by QA order generator - Warehouse: {config.warehouse.upper()}"

    for i in range(int(config.order_count)):
        name = f"#{prefix}-{start_number + i}"
        for li in config.line_items:
            writer.writerow(
                [
                    name,
                    "NEW",
                    str(config.customer_email),
                    tags,
                    note,
                    "paid",
                    "Line Item",
                    li.product_id,
                    li.quantity,
                    service,
                    address["first_name"],
                    address["last_name"],
                    address["address1"],
                    address["city"],
                    address["province"],
                    address["country"],
                    address["zip"],
                    address.get("phone", ""),
                ]
            )

    buf.seek(0)
    slug = "".join(c if c.isalnum() else "_" for c in config.name.lower()).strip("_") or "configuration"
    filename = f"{slug}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
    return buf, filename


def build_batch_results_csv(batch_id: str, entries: Iterable[Dict[str, Any]]) -> Tuple[StringIO, str]:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(BATCH_RESULT_COLUMNS)

    for n, e in enumerate(entries, start=1):
        if e.get("error"):
            writer.writerow([e.get("orderIndex", n), "failed", "", "", "", "", "", "", "", e.get("message", "")])
            continue
        writer.writerow(
            [
                n,
                "created",
                e.get("id", ""),
                e.get("order_number", ""),
                e.get("name", ""),
                e.get("total_price", ""),
                e.get("financial_status", ""),
                e.get("fulfillment_status") or "",
                e.get("admin_url", ""),
                "",
            ]
        )

    buf.seek(0)
    return buf, f"{batch_id}_results.csv"

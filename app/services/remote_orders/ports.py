# app/services/remote_orders/ports.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from app.services.remote_orders.types import DeleteOutcome, ProductInfo, RemoteOrder


class RemoteOrderService(Protocol):
    """
    远端电商平台的下单能力（编排器 / 删除器只依赖这个协议）：

    - create_order：非 2xx 抛 RemoteOrderError
    - delete_order：404 视为成功（already_gone=True）
    - search_product_by_sku：找不到返回 None
    - get_fulfillment_orders / move_fulfillment_order / request_fulfillment：履约路由
    """

    async def create_order(self, payload: Dict[str, Any]) -> RemoteOrder: ...

    async def delete_order(self, order_id: str) -> DeleteOutcome: ...

    async def search_product_by_sku(self, sku: str) -> Optional[ProductInfo]: ...

    async def get_fulfillment_orders(self, order_id: int) -> List[Dict[str, Any]]: ...

    async def move_fulfillment_order(self, fulfillment_order_id: int, location_id: int) -> Dict[str, Any]: ...

    async def request_fulfillment(self, fulfillment_order_id: int, message: str) -> Dict[str, Any]: ...

    async def list_products(self, limit: int = 50) -> List[Dict[str, Any]]: ...

    async def list_locations(self) -> List[Dict[str, Any]]: ...

    async def list_recent_orders(self, limit: int = 50) -> List[Dict[str, Any]]: ...

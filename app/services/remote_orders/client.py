# app/services/remote_orders/client.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import AppSettings, get_settings
from app.services.remote_orders.types import (
    DeleteOutcome,
    ProductInfo,
    RemoteOrder,
    RemoteOrderError,
    RemoteOrderNotFound,
)

log = logging.getLogger("qaorders.remote")


class ShopAdminClient:
    """
    远端店铺 Admin REST API 客户端（RemoteOrderService 的 httpx 实现）：

    - 一个实例持有一个 httpx.AsyncClient（连接复用），用完 aclose()
    - 非 2xx → RemoteOrderError（404 → RemoteOrderNotFound）
    - 传输层异常（超时 / 连接失败）同样包成 RemoteOrderError(status=0)
    """

    def __init__(
        self,
        *,
        domain: str,
        access_token: str,
        api_version: str = "2024-01",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.domain = domain.strip().rstrip("/")
        self.api_version = api_version
        self._client = httpx.AsyncClient(
            base_url=f"https://{self.domain}/admin/api/{api_version}",
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Optional[AppSettings] = None) -> "ShopAdminClient":
        s = settings or get_settings()
        return cls(
            domain=s.SHOP_DOMAIN,
            access_token=s.SHOP_ACCESS_TOKEN,
            api_version=s.SHOP_API_VERSION,
            timeout=s.SHOP_HTTP_TIMEOUT,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def admin_url(self, order_id: int | str) -> str:
        return f"https://{self.domain}/admin/orders/{order_id}"

    # ------------ 底层请求 ------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            raise RemoteOrderError(0, str(exc), message=f"Remote API transport error: {exc}") from exc

        if resp.status_code == 404:
            raise RemoteOrderNotFound(404, resp.text)
        if not resp.is_success:
            raise RemoteOrderError(resp.status_code, resp.text)
        if not resp.content:
            return {}
        return resp.json()

    # ------------ 订单 ------------

    async def create_order(self, payload: Dict[str, Any]) -> RemoteOrder:
        data = await self._request("POST", "/orders.json", json={"order": payload})
        return RemoteOrder.from_payload(data.get("order") or {})

    async def delete_order(self, order_id: str) -> DeleteOutcome:
        try:
            await self._request("DELETE", f"/orders/{order_id}.json")
        except RemoteOrderNotFound:
            log.info("order %s already gone on remote, treating delete as success", order_id)
            return DeleteOutcome(success=True, message="Order already deleted", already_gone=True)
        return DeleteOutcome(success=True, message="Order deleted from remote shop")

    async def list_recent_orders(self, limit: int = 50) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/orders.json", params={"limit": limit, "status": "any"})
        return list(data.get("orders") or [])

    # ------------ 商品 ------------

    async def list_products(self, limit: int = 50) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/products.json", params={"limit": limit})
        return list(data.get("products") or [])

    async def search_product_by_sku(self, sku: str) -> Optional[ProductInfo]:
        for product in await self.list_products(limit=250):
            for variant in product.get("variants") or []:
                if variant.get("sku") == sku:
                    return ProductInfo(
                        variant_id=int(variant["id"]),
                        product_id=int(product["id"]),
                        title=str(product.get("title") or sku),
                        price=str(variant.get("price") or "0.00"),
                        sku=sku,
                    )
        return None

    # ------------ 库位 / 履约 ------------

    async def list_locations(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/locations.json")
        return list(data.get("locations") or [])

    async def get_fulfillment_orders(self, order_id: int) -> List[Dict[str, Any]]:
        data = await self._request("GET", f"/orders/{order_id}/fulfillment_orders.json")
        return list(data.get("fulfillment_orders") or [])

    async def move_fulfillment_order(self, fulfillment_order_id: int, location_id: int) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/fulfillment_orders/{fulfillment_order_id}/move.json",
            json={"fulfillment_order": {"new_location_id": location_id}},
        )

    async def request_fulfillment(self, fulfillment_order_id: int, message: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/fulfillment_orders/{fulfillment_order_id}/fulfillment_request.json",
            json={"fulfillment_request": {"message": message}},
        )

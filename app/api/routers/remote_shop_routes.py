# app/api/routers/remote_shop_routes.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_remote_service
from app.api.problem import raise_502
from app.core.config import AppSettings, get_settings
from app.services.remote_orders.payload import next_order_number
from app.services.remote_orders.ports import RemoteOrderService
from app.services.remote_orders.types import RemoteOrderError


def _upstream_failed(what: str, exc: RemoteOrderError) -> None:
    raise_502(
        "remote_shop_error",
        f"Failed to {what}: {exc}",
        details=[{"type": "remote", "remote_status": exc.status, "reason": exc.body[:500]}],
    )


def register(router: APIRouter) -> None:
    @router.get("/test")
    async def test_connection(
        remote: RemoteOrderService = Depends(get_remote_service),
        settings: AppSettings = Depends(get_settings),
    ) -> Dict[str, Any]:
        """连通性自检：拉 5 个商品。"""
        try:
            products = await remote.list_products(limit=5)
        except RemoteOrderError as exc:
            _upstream_failed("connect to remote shop", exc)
        return {
            "success": True,
            "message": "Successfully connected to remote shop",
            "product_count": len(products),
            "store": settings.SHOP_DOMAIN,
        }

    @router.get("/products")
    async def list_products(
        limit: int = Query(50, ge=1, le=250),
        remote: RemoteOrderService = Depends(get_remote_service),
    ) -> Dict[str, Any]:
        try:
            products = await remote.list_products(limit=limit)
        except RemoteOrderError as exc:
            _upstream_failed("fetch products", exc)
        return {"products": products}

    @router.get("/locations")
    async def list_locations(
        remote: RemoteOrderService = Depends(get_remote_service),
    ) -> Dict[str, Any]:
        try:
            locations = await remote.list_locations()
        except RemoteOrderError as exc:
            _upstream_failed("fetch locations", exc)
        return {"locations": locations}

    @router.get("/next-order-number")
    async def get_next_order_number(
        remote: RemoteOrderService = Depends(get_remote_service),
        settings: AppSettings = Depends(get_settings),
    ) -> Dict[str, Any]:
        """
        最近 50 单里找 <PREFIX>-<n> 的最大 n；拉取失败时退回 ORDER_NUMBER_FLOOR。
        """
        try:
            orders = await remote.list_recent_orders(limit=50)
        except RemoteOrderError:
            orders = []
        last, nxt = next_order_number(orders, prefix=settings.ORDER_NUMBER_PREFIX, floor=settings.ORDER_NUMBER_FLOOR)
        return {
            "next_order_number": nxt,
            "formatted_order_number": f"{settings.ORDER_NUMBER_PREFIX}-{nxt}",
            "last_order_number": last,
        }

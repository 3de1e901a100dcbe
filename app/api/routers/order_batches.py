# app/api/routers/order_batches.py
from __future__ import annotations

from fastapi import APIRouter

from app.api.routers import order_batches_routes, orders_create_routes

router = APIRouter(prefix="/api", tags=["order-batches"])


def _register_all_routes() -> None:
    order_batches_routes.register(router)
    orders_create_routes.register(router)


_register_all_routes()

__all__ = ["router"]

# app/api/routers/order_configurations.py
from __future__ import annotations

from fastapi import APIRouter

from app.api.routers import order_configurations_routes

router = APIRouter(prefix="/api", tags=["order-configurations"])


def _register_all_routes() -> None:
    order_configurations_routes.register(router)


_register_all_routes()

__all__ = ["router"]

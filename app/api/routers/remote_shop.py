# app/api/routers/remote_shop.py
from __future__ import annotations

from fastapi import APIRouter

from app.api.routers import remote_shop_routes

router = APIRouter(prefix="/api/shop", tags=["remote-shop"])


def _register_all_routes() -> None:
    remote_shop_routes.register(router)


_register_all_routes()

__all__ = ["router"]

# app/api/routers/exports.py
from __future__ import annotations

from fastapi import APIRouter

from app.api.routers import exports_routes

router = APIRouter(prefix="/api", tags=["exports"])


def _register_all_routes() -> None:
    exports_routes.register(router)


_register_all_routes()

__all__ = ["router"]

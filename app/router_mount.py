# app/router_mount.py
from __future__ import annotations

from fastapi import FastAPI


def mount_routers(app: FastAPI) -> None:
    # ---------------------------------------------------------------------------
    # routers imports
    # ---------------------------------------------------------------------------
    from app.api.routers.exports import router as exports_router
    from app.api.routers.order_batches import router as order_batches_router
    from app.api.routers.order_configurations import router as order_configurations_router
    from app.api.routers.remote_shop import router as remote_shop_router
    from app.metrics import router as metrics_router

    # ===========================
    # mount routers
    # ===========================
    app.include_router(order_configurations_router)
    app.include_router(order_batches_router)
    app.include_router(exports_router)
    app.include_router(remote_shop_router)

    app.include_router(metrics_router)

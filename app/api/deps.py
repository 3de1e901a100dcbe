# app/api/deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import AppSettings, get_settings
from app.db.session import get_session, get_session_factory
from app.services.order_batch_store import OrderBatchStore
from app.services.order_batches.deletion import BulkDeletionOrchestrator
from app.services.order_batches.orchestrator import BatchOrchestrator
from app.services.order_batches.product_cache import ProductResolutionCache
from app.services.order_configuration_store import OrderConfigurationStore
from app.services.remote_orders.client import ShopAdminClient
from app.services.remote_orders.fulfillment_routing import FulfillmentRouter
from app.services.remote_orders.ports import RemoteOrderService

__all__ = [
    "get_session",
    "get_session_factory",
    "get_remote_service",
    "get_product_cache",
    "get_batch_store",
    "get_configuration_store",
    "get_batch_orchestrator",
    "get_deletion_orchestrator",
    "close_remote_service",
]

# ---------------------------
# 进程级单例：远端客户端 + SKU 缓存
# ---------------------------

_remote: Optional[ShopAdminClient] = None
_cache: Optional[ProductResolutionCache] = None


def get_remote_service() -> RemoteOrderService:
    global _remote
    if _remote is None:
        _remote = ShopAdminClient.from_settings()
    return _remote


def get_product_cache(remote: RemoteOrderService = Depends(get_remote_service)) -> ProductResolutionCache:
    """缓存跟随进程生命周期，多个批次共享。"""
    global _cache
    if _cache is None:
        _cache = ProductResolutionCache(remote)
    return _cache


async def close_remote_service() -> None:
    global _remote, _cache
    if _remote is not None:
        await _remote.aclose()
    _remote = None
    _cache = None


# ---------------------------
# store / 编排器（按请求组装，本身无状态）
# ---------------------------


def get_batch_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> OrderBatchStore:
    return OrderBatchStore(session_factory)


def get_configuration_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> OrderConfigurationStore:
    return OrderConfigurationStore(session_factory)


def get_batch_orchestrator(
    store: OrderBatchStore = Depends(get_batch_store),
    remote: RemoteOrderService = Depends(get_remote_service),
    cache: ProductResolutionCache = Depends(get_product_cache),
    settings: AppSettings = Depends(get_settings),
) -> BatchOrchestrator:
    router = FulfillmentRouter(remote) if settings.FULFILLMENT_ROUTING_ENABLED else None
    return BatchOrchestrator(store, remote, cache, router=router, settings=settings)


def get_deletion_orchestrator(
    store: OrderBatchStore = Depends(get_batch_store),
    remote: RemoteOrderService = Depends(get_remote_service),
    settings: AppSettings = Depends(get_settings),
) -> BulkDeletionOrchestrator:
    return BulkDeletionOrchestrator(store, remote, settings=settings)

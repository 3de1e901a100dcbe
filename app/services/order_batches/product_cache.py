# app/services/order_batches/product_cache.py
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Set

from app.obs.metrics import qa_product_lookups_total
from app.services.remote_orders.ports import RemoteOrderService
from app.services.remote_orders.types import ProductInfo

log = logging.getLogger("qaorders.products")


class ProductResolutionCache:
    """
    SKU → ProductInfo 的进程级缓存。

    - 命中：直接返回
    - 同一 SKU 并发解析：只发一次远端查询，其余调用方 await 同一个 future
    - 查无此 SKU：按“本次运行”缓存 None，clear_misses() 在每次运行开始时清掉
    - 查询异常：记日志、返回 None、不缓存（下次还会再查）
    """

    def __init__(self, remote: RemoteOrderService):
        self._remote = remote
        self._entries: Dict[str, ProductInfo] = {}
        self._misses: Set[str] = set()
        self._inflight: Dict[str, asyncio.Future] = {}

    def __contains__(self, sku: str) -> bool:
        return sku in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear_misses(self) -> None:
        self._misses.clear()

    async def resolve(self, sku: str) -> Optional[ProductInfo]:
        hit = self._entries.get(sku)
        if hit is not None:
            qa_product_lookups_total.labels("hit").inc()
            return hit
        if sku in self._misses:
            qa_product_lookups_total.labels("miss").inc()
            return None

        fut = self._inflight.get(sku)
        if fut is None:
            fut = asyncio.ensure_future(self._lookup(sku))
            self._inflight[sku] = fut
            fut.add_done_callback(lambda _f, key=sku: self._inflight.pop(key, None))
        # shield：某个等待方被取消时不连带取消共享的查询
        return await asyncio.shield(fut)

    async def _lookup(self, sku: str) -> Optional[ProductInfo]:
        qa_product_lookups_total.labels("lookup").inc()
        try:
            info = await self._remote.search_product_by_sku(sku)
        except Exception as exc:
            qa_product_lookups_total.labels("error").inc()
            log.warning("product lookup for SKU %s failed: %s", sku, exc)
            return None

        if info is None:
            self._misses.add(sku)
        else:
            self._entries[sku] = info
        return info

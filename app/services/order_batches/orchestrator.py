# app/services/order_batches/orchestrator.py
from __future__ import annotations

import asyncio
import copy
import logging
import random
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional

from opentelemetry import trace

from app.core.config import AppSettings, get_settings
from app.core.logging import batch_id_var
from app.models.enums import BatchStatus, CancelState
from app.obs.metrics import (
    qa_batches_finalized_total,
    qa_orders_created_total,
    qa_orders_failed_total,
    qa_product_lookups_total,
)
from app.services.order_batch_store import OrderBatchStore
from app.services.order_batches.product_cache import ProductResolutionCache
from app.services.order_batches.reconcile import reconcile
from app.services.order_batches.types import (
    BatchNotFound,
    BatchNotPending,
    BatchResult,
    BatchRunError,
    is_failure_entry,
)
from app.services.remote_orders import payload as payloads
from app.services.remote_orders.fulfillment_routing import FulfillmentRouter
from app.services.remote_orders.ports import RemoteOrderService

log = logging.getLogger("qaorders.orchestrator")
Tracer = trace.get_tracer(__name__)

Sleep = Callable[[float], Awaitable[Any]]


def progress_percent(attempted: int, total: int) -> int:
    """attempted / total * 100，四舍五入（.5 进位），落在 [0, 100]。"""
    if total <= 0:
        return 100
    pct = (Decimal(attempted) * 100 / Decimal(total)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(pct)))


def plan_waves(count: int, width: int) -> List[range]:
    """把 [0, count) 切成宽度为 width 的连续 wave。"""
    width = max(1, int(width))
    return [range(start, min(start + width, count)) for start in range(0, count, width)]


class BatchOrchestrator:
    """
    批量造单编排器：一个模板 → N 个远端订单。

    流程：
      1) 单量夹到 [1, min(MAX_ORDER_COUNT, 批次单量)]；pending → processing 是 compare-and-set，
         同一批次并发启动时只有一个运行继续，其余抛 BatchNotPending
      2) 模板只构建一次（地址、标签、SKU 解析都在这里做完）
      3) 按宽度 W 切 wave；每个 wave 开始前重读批次，cancel_requested 则停止
      4) wave 内 W 个下单并发，单个失败只变成一条失败记录
      5) wave 结束后落 progress；order_delay > 0 时 wave 之间 sleep
      6) 最后一个 wave 之后再看一次取消信号，reconcile() 决定终态，finalize 只写一次

    只有编排器级异常（批次消失 / 存储不可用）才会中断整批：批次标 failed，抛 BatchRunError。
    """

    def __init__(
        self,
        store: OrderBatchStore,
        remote: RemoteOrderService,
        cache: ProductResolutionCache,
        *,
        router: Optional[FulfillmentRouter] = None,
        settings: Optional[AppSettings] = None,
        wave_width: Optional[int] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        s = settings or get_settings()
        self._store = store
        self._remote = remote
        self._cache = cache
        self._router = router
        self._sleep = sleep
        self.wave_width = max(1, int(wave_width or s.CREATE_WAVE_WIDTH))
        self.max_order_count = int(s.MAX_ORDER_COUNT)
        self.source_tag = s.ORDER_SOURCE_TAG
        self.shop_domain = s.SHOP_DOMAIN

    # ------------ 入口 ------------

    async def run_batch(self, config: Any, batch_id: str) -> BatchResult:
        """
        config 需要具备 OrderConfigurationBase 的属性（pydantic 模型即可）。
        batch_id 必须指向一条 pending 批次。
        """
        token = batch_id_var.set(batch_id)
        try:
            with Tracer.start_as_current_span("order_batch.run", attributes={"batch.id": batch_id}):
                return await self._run_guarded(config, batch_id)
        finally:
            batch_id_var.reset(token)

    async def _run_guarded(self, config: Any, batch_id: str) -> BatchResult:
        try:
            batch = await self._store.get(batch_id)
            if batch is None:
                raise BatchNotFound(batch_id)
            started = batch.status == BatchStatus.PENDING.value and await self._store.start(batch_id)
        except Exception as exc:
            await self._fail(batch_id, exc)
            raise BatchRunError(batch_id, str(exc)) from exc

        if not started:
            # 已不是 pending，或被并发的另一次运行抢先启动
            current = batch.status if batch.status != BatchStatus.PENDING.value else BatchStatus.PROCESSING.value
            raise BatchNotPending(batch_id, current)

        try:
            return await self._run(config, batch_id, int(batch.order_count or 1))
        except Exception as exc:
            await self._fail(batch_id, exc)
            raise BatchRunError(batch_id, str(exc)) from exc

    async def _fail(self, batch_id: str, exc: BaseException) -> None:
        log.exception("batch %s aborted: %s", batch_id, exc)
        try:
            written = await self._store.finalize(batch_id, results=[], status=BatchStatus.FAILED, message=str(exc))
        except Exception:
            log.exception("batch %s: could not mark batch failed", batch_id)
            return
        if written:
            qa_batches_finalized_total.labels(BatchStatus.FAILED.value).inc()

    async def _run(self, config: Any, batch_id: str, requested: int) -> BatchResult:
        # 批次记录上的单量是上限，模板单量更大时以批次为准
        count = max(1, min(int(config.order_count or 1), self.max_order_count, requested))
        delay = max(0, int(getattr(config, "order_delay", 0) or 0))
        waves = plan_waves(count, self.wave_width)

        log.info(
            "batch %s: creating %d orders in %d waves (width=%d, delay=%ss)",
            batch_id,
            count,
            len(waves),
            self.wave_width,
            delay,
        )

        self._cache.clear_misses()
        template = await self.build_template(config)
        rng = random.Random(batch_id) if getattr(config, "randomize_data", False) else None

        results: List[Dict[str, Any]] = []
        cancelled = False
        issued = 0

        for n, wave in enumerate(waves):
            if await self._cancel_requested(batch_id):
                cancelled = True
                log.info("batch %s: cancellation seen before wave %d/%d", batch_id, n + 1, len(waves))
                break

            payloads_for_wave = [self._payload_for(template, config, rng) for _ in wave]
            with Tracer.start_as_current_span(
                "order_batch.wave",
                attributes={"batch.id": batch_id, "wave.index": n + 1, "wave.size": len(wave)},
            ):
                wave_results = await asyncio.gather(
                    *(self._create_one(p, config, idx + 1) for p, idx in zip(payloads_for_wave, wave))
                )
            issued += 1
            results.extend(wave_results)

            if not await self._store.update_progress(batch_id, progress_percent(len(results), count)):
                # 记录消失或被别人终结
                current = await self._store.get(batch_id)
                if current is None:
                    raise BatchNotFound(batch_id)

            if delay > 0 and n < len(waves) - 1:
                await self._sleep(delay)

        if not cancelled and await self._cancel_requested(batch_id):
            log.info("batch %s: cancellation arrived after the final wave; nothing left to stop", batch_id)

        failed = sum(1 for r in results if is_failure_entry(r))
        succeeded = len(results) - failed
        verdict = reconcile(count, succeeded, failed, cancelled)

        written = await self._store.finalize(
            batch_id,
            results=results,
            status=verdict.status,
            message=verdict.message,
            cancelled=cancelled,
        )
        if not written:
            return await self._finalized_elsewhere(batch_id, count, issued)
        qa_batches_finalized_total.labels(verdict.status.value).inc()

        log.info(
            "batch %s finished: status=%s created=%d failed=%d cancelled=%s",
            batch_id,
            verdict.status.value,
            succeeded,
            failed,
            cancelled,
        )
        return BatchResult(
            batch_id=batch_id,
            status=verdict.status,
            message=verdict.message,
            requested=count,
            orders=results,
            cancelled=cancelled,
            waves=issued,
        )

    async def _finalized_elsewhere(self, batch_id: str, requested: int, issued: int) -> BatchResult:
        """终态已被别处写入：以库里的记录为准，不计入本次的终态指标。"""
        current = await self._store.get(batch_id)
        if current is None:
            raise BatchNotFound(batch_id)
        log.warning("batch %s was already finalized as %s; keeping the stored result", batch_id, current.status)
        return BatchResult(
            batch_id=batch_id,
            status=BatchStatus(current.status),
            message=current.error_message,
            requested=requested,
            orders=list(current.created_orders or []),
            cancelled=current.cancel_state == CancelState.CANCELLED.value,
            waves=issued,
        )

    # ------------ 模板 ------------

    async def build_template(self, config: Any) -> Dict[str, Any]:
        """SKU 解析走缓存（不同 SKU 并发查），查不到的行退化为裸 SKU 行。"""
        service = payloads.fulfillment_service_for(config.warehouse)
        line_items = list(config.line_items)
        products = await asyncio.gather(*(self._cache.resolve(li.product_id) for li in line_items))

        resolved: List[Dict[str, Any]] = []
        for li, product in zip(line_items, products):
            if product is None:
                qa_product_lookups_total.labels("fallback").inc()
                log.warning("SKU %s not resolved, using placeholder line item", li.product_id)
            resolved.append(
                payloads.build_line_item(li.product_id, li.quantity, product, fulfillment_service=service)
            )
        return payloads.build_order_template(config, resolved, source_tag=self.source_tag)

    def _payload_for(self, template: Dict[str, Any], config: Any, rng: Optional[random.Random]) -> Dict[str, Any]:
        if rng is None:
            return copy.deepcopy(template)
        first, last, email = payloads.random_customer(rng, str(config.customer_email))
        return payloads.personalize(template, first_name=first, last_name=last, email=email)

    # ------------ 单单 ------------

    async def _create_one(self, payload: Dict[str, Any], config: Any, order_index: int) -> Dict[str, Any]:
        try:
            order = await self._remote.create_order(payload)
        except Exception as exc:
            qa_orders_failed_total.inc()
            log.warning("order %d failed: %s", order_index, exc)
            return {
                "error": True,
                "message": f"Failed to create order {order_index}: {exc}",
                "orderIndex": order_index,
            }

        qa_orders_created_total.inc()
        entry: Dict[str, Any] = {
            "id": order.id,
            "order_number": order.order_number,
            "name": order.name,
            "tags": order.tags,
            "total_price": order.total_price,
            "financial_status": order.financial_status,
            "fulfillment_status": order.fulfillment_status,
            "created_at": order.created_at,
            "admin_url": f"https://{self.shop_domain}/admin/orders/{order.id}",
            "warehouse": config.warehouse,
            "address": config.address,
            "line_items": [{"productId": li.product_id, "quantity": li.quantity} for li in config.line_items],
            "customer_email": (payload.get("customer") or {}).get("email"),
        }
        if self._router is not None:
            outcome = await self._router.route(order.id, config.warehouse)
            entry["fulfillment"] = outcome.as_dict()
        return entry

    # ------------ 取消 ------------

    async def _cancel_requested(self, batch_id: str) -> bool:
        batch = await self._store.get(batch_id)
        if batch is None:
            raise BatchNotFound(batch_id)
        return batch.cancel_state == CancelState.REQUESTED.value


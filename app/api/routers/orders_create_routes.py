# app/api/routers/orders_create_routes.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status

from app.api.deps import get_batch_orchestrator, get_batch_store, get_configuration_store
from app.api.problem import raise_400, raise_404, raise_409, raise_500
from app.models.enums import BatchStatus, CancelState
from app.schemas.order_batch import (
    CancelOrdersIn,
    CancelOrdersOut,
    CreateOrdersIn,
    CreateOrdersOut,
    OrderBatchOut,
)
from app.schemas.order_configuration import InlineOrderConfiguration
from app.services.order_batch_store import OrderBatchStore
from app.services.order_batches.orchestrator import BatchOrchestrator
from app.services.order_batches.types import BatchNotPending, BatchRunError
from app.services.order_configuration_store import OrderConfigurationStore

log = logging.getLogger("qaorders.api")


async def run_batch_in_background(orchestrator: BatchOrchestrator, config: InlineOrderConfiguration, batch_id: str) -> None:
    """后台执行：失败时批次已由编排器标成 failed，这里只记日志。"""
    try:
        await orchestrator.run_batch(config, batch_id)
    except (BatchRunError, BatchNotPending) as exc:
        log.error("background batch %s did not complete: %s", batch_id, exc)


def register(router: APIRouter) -> None:
    @router.post("/orders/create", response_model=CreateOrdersOut)
    async def create_orders(
        payload: CreateOrdersIn,
        response: Response,
        background: BackgroundTasks,
        orchestrator: BatchOrchestrator = Depends(get_batch_orchestrator),
        batches: OrderBatchStore = Depends(get_batch_store),
        configurations: OrderConfigurationStore = Depends(get_configuration_store),
    ) -> CreateOrdersOut:
        """
        按模板批量造单：

        - configuration（临时模板）优先，否则按 configuration_id 取已保存模板
        - batch_id 指向已有 pending 批次；省略则新建
        - run_in_background=True → 202，调用方轮询 GET /api/batches/{batch_id}
        """
        config_id: Optional[int] = payload.configuration_id
        if payload.configuration is not None:
            config = payload.configuration
        elif config_id is not None:
            row = await configurations.get(config_id)
            if row is None:
                raise_404("configuration_not_found", "Configuration not found", context={"id": config_id})
            config = InlineOrderConfiguration.model_validate(row)
        else:
            raise_400("configuration_required", "Either configuration or configuration_id must be provided")

        if payload.batch_id:
            batch = await batches.get(payload.batch_id)
            if batch is None:
                raise_404("batch_not_found", "Batch not found", context={"batch_id": payload.batch_id})
            if batch.status != BatchStatus.PENDING.value:
                raise_409("batch_not_pending", f"Batch {batch.batch_id} is {batch.status}, expected pending")
        else:
            count = max(1, min(config.order_count, orchestrator.max_order_count))
            batch = await batches.create(order_count=count, configuration_id=config_id)

        if payload.run_in_background:
            background.add_task(run_batch_in_background, orchestrator, config, batch.batch_id)
            response.status_code = status.HTTP_202_ACCEPTED
            return CreateOrdersOut(
                success=True,
                batch_id=batch.batch_id,
                status=BatchStatus.PENDING,
                message="Batch scheduled",
            )

        try:
            result = await orchestrator.run_batch(config, batch.batch_id)
        except BatchNotPending as exc:
            raise_409("batch_not_pending", str(exc))
        except BatchRunError as exc:
            raise_500("batch_run_failed", exc.message, context={"batch_id": exc.batch_id})

        return CreateOrdersOut(
            success=not result.cancelled,
            batch_id=result.batch_id,
            status=result.status,
            message=result.message,
            orders_created=result.orders_created,
            orders=result.orders,
            has_errors=result.has_errors or result.cancelled,
            cancelled=result.cancelled,
        )

    @router.post("/orders/cancel", response_model=CancelOrdersOut)
    async def cancel_orders(
        payload: CancelOrdersIn,
        batches: OrderBatchStore = Depends(get_batch_store),
    ) -> CancelOrdersOut:
        """
        只写取消信号；编排器在下一个 wave 边界读到后收尾（最多再完成一个 wave）。
        """
        batch = await batches.request_cancel(payload.batch_id)
        if batch is None:
            raise_404("batch_not_found", "Batch not found", context={"batch_id": payload.batch_id})

        # 终态批次不接受取消信号（active 或已 cancelled 都原样返回）
        if batch.cancel_state != CancelState.REQUESTED.value:
            return CancelOrdersOut(
                success=False,
                message=f"Batch already {batch.status}; nothing to cancel",
                batch=OrderBatchOut.model_validate(batch),
            )
        return CancelOrdersOut(
            success=True,
            message="Cancellation requested; takes effect at the next wave boundary",
            batch=OrderBatchOut.model_validate(batch),
        )

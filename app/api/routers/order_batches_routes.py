# app/api/routers/order_batches_routes.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.deps import get_batch_store, get_deletion_orchestrator
from app.api.problem import raise_404, raise_409
from app.schemas.order_batch import (
    DeleteBatchesIn,
    DeleteBatchesOut,
    OrderBatchCreate,
    OrderBatchOut,
)
from app.services.order_batch_store import DuplicateBatchId, OrderBatchStore
from app.services.order_batches.deletion import BulkDeletionOrchestrator


def register(router: APIRouter) -> None:
    @router.get("/batches", response_model=List[OrderBatchOut])
    async def list_batches(
        limit: int | None = Query(None, ge=1, le=1000),
        store: OrderBatchStore = Depends(get_batch_store),
    ) -> List[OrderBatchOut]:
        """批次列表（新建在前）。"""
        rows = await store.list_batches(limit=limit)
        return [OrderBatchOut.model_validate(r) for r in rows]

    @router.post("/batches", response_model=OrderBatchOut, status_code=status.HTTP_201_CREATED)
    async def create_batch(
        payload: OrderBatchCreate,
        store: OrderBatchStore = Depends(get_batch_store),
    ) -> OrderBatchOut:
        try:
            row = await store.create(
                batch_id=payload.batch_id,
                order_count=payload.order_count,
                configuration_id=payload.configuration_id,
            )
        except DuplicateBatchId as exc:
            raise_409("batch_id_taken", str(exc))
        return OrderBatchOut.model_validate(row)

    @router.get("/batches/{batch_id}", response_model=OrderBatchOut)
    async def get_batch(
        batch_id: str = Path(..., min_length=1),
        store: OrderBatchStore = Depends(get_batch_store),
    ) -> OrderBatchOut:
        """轮询入口：status / progress / cancel_state / created_orders。"""
        row = await store.get(batch_id)
        if row is None:
            raise_404("batch_not_found", "Batch not found", context={"batch_id": batch_id})
        return OrderBatchOut.model_validate(row)

    @router.delete("/batches/{batch_id}", response_model=DeleteBatchesOut)
    async def delete_batch(
        batch_id: str = Path(..., min_length=1),
        purge_remote: bool = Query(False, description="同时删除远端订单"),
        deleter: BulkDeletionOrchestrator = Depends(get_deletion_orchestrator),
    ) -> DeleteBatchesOut:
        summary = await deleter.delete_batches([batch_id], purge_remote)
        only = summary.results[0]
        if not only.ok and only.outcome == "failed" and only.message == "Batch not found":
            raise_404("batch_not_found", "Batch not found", context={"batch_id": batch_id})
        return DeleteBatchesOut.model_validate(summary.as_dict())

    @router.post("/batches/delete", response_model=DeleteBatchesOut)
    async def delete_batches(
        payload: DeleteBatchesIn,
        deleter: BulkDeletionOrchestrator = Depends(get_deletion_orchestrator),
    ) -> DeleteBatchesOut:
        """
        多批次删除：逐批隔离失败，总是返回聚合计数（succeeded / failed）与逐批结果。
        """
        summary = await deleter.delete_batches(payload.batch_ids, payload.purge_remote)
        return DeleteBatchesOut.model_validate(summary.as_dict())

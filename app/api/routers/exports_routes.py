# app/api/routers/exports_routes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import StreamingResponse

from app.api.deps import get_batch_store, get_configuration_store
from app.api.problem import raise_404
from app.api.routers.exports_helpers import build_batch_results_csv, build_configuration_csv
from app.core.config import AppSettings, get_settings
from app.schemas.order_configuration import OrderConfigurationOut
from app.services.order_batch_store import OrderBatchStore
from app.services.order_configuration_store import OrderConfigurationStore


def _csv_response(buf, filename: str) -> StreamingResponse:
    return StreamingResponse(
        buf,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def register(router: APIRouter) -> None:
    @router.get("/configurations/{configuration_id}/export.csv")
    async def export_configuration(
        configuration_id: int = Path(..., ge=1),
        start_number: Optional[int] = Query(None, ge=1, description="首单序号，默认 ORDER_NUMBER_FLOOR + 1"),
        store: OrderConfigurationStore = Depends(get_configuration_store),
        settings: AppSettings = Depends(get_settings),
    ):
        """
        模板导出为批量导入表（每单每行项目一行）。
        """
        row = await store.get(configuration_id)
        if row is None:
            raise_404("configuration_not_found", "Configuration not found", context={"id": configuration_id})
        config = OrderConfigurationOut.model_validate(row)
        buf, filename = build_configuration_csv(
            config,
            prefix=settings.ORDER_NUMBER_PREFIX,
            start_number=start_number or settings.ORDER_NUMBER_FLOOR + 1,
            source_tag=settings.ORDER_SOURCE_TAG,
        )
        return _csv_response(buf, filename)

    @router.get("/batches/{batch_id}/export.csv")
    async def export_batch_results(
        batch_id: str = Path(..., min_length=1),
        store: OrderBatchStore = Depends(get_batch_store),
    ):
        """批次逐单结果导出。"""
        row = await store.get(batch_id)
        if row is None:
            raise_404("batch_not_found", "Batch not found", context={"batch_id": batch_id})
        buf, filename = build_batch_results_csv(row.batch_id, row.created_orders or [])
        return _csv_response(buf, filename)

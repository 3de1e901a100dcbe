# app/schemas/order_batch.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import BatchStatus, CancelState
from app.schemas.order_configuration import InlineOrderConfiguration


class _Base(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )


# ========= 批次 =========
class OrderBatchCreate(_Base):
    """
    建批次（pending）：batch_id 省略时由服务端生成 BATCH-<hex>。
    progress / status 一律由编排器维护，这里不接收。
    """

    batch_id: Annotated[Optional[str], Field(default=None, min_length=1, max_length=100)] = None
    configuration_id: Optional[int] = None
    order_count: Annotated[int, Field(ge=1)]

    @field_validator("batch_id", mode="before")
    @classmethod
    def _trim_batch_id(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class OrderBatchOut(_Base):
    id: int
    batch_id: str
    configuration_id: Optional[int] = None
    order_count: int
    status: BatchStatus
    cancel_state: CancelState
    progress: int
    error_message: Optional[str] = None
    created_orders: Optional[List[Dict[str, Any]]] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


# ========= 下单 =========
class CreateOrdersIn(_Base):
    """
    二选一：
      - configuration_id：使用已保存模板
      - configuration：临时模板（不落库）

    batch_id 指向已有 pending 批次；省略时按本次单量新建批次。
    run_in_background=True 时立即返回，调用方轮询 GET /api/batches/{batch_id}。
    """

    batch_id: Optional[str] = None
    configuration_id: Optional[int] = None
    configuration: Optional[InlineOrderConfiguration] = None
    run_in_background: bool = False


class CreateOrdersOut(_Base):
    success: bool
    batch_id: str
    status: BatchStatus
    message: Optional[str] = None
    orders_created: int = 0
    orders: List[Dict[str, Any]] = Field(default_factory=list)
    has_errors: bool = False
    cancelled: bool = False


class CancelOrdersIn(_Base):
    batch_id: Annotated[str, Field(min_length=1)]


class CancelOrdersOut(_Base):
    success: bool
    message: str
    batch: OrderBatchOut


# ========= 删除 =========
class DeleteBatchesIn(_Base):
    batch_ids: Annotated[List[str], Field(min_length=1)]
    purge_remote: bool = False


class BatchDeletionResultOut(_Base):
    batch_id: str
    outcome: str
    local_deleted: bool
    remote_deleted: int
    remote_failed: int
    message: str


class DeleteBatchesOut(_Base):
    succeeded: int
    failed: int
    results: List[BatchDeletionResultOut]

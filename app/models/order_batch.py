# app/models/order_batch.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.enums import BatchStatus, CancelState
from app.models.order_configuration import JSONType, _utcnow


class OrderBatch(Base):
    """
    一次“造 N 单”的批次记录：

      - batch_id：对外可见的批次号（唯一，例如 BATCH-3f2a9c1d0b7e）
      - configuration_id：来源模板（模板删除时置空，不级联）
      - status：pending / processing / completed / failed / partial
      - cancel_state：active / cancel_requested / cancelled（取消信号与状态分开存）
      - progress：0..100，processing 期间单调不减，终态恒为 100
      - created_orders：逐单结果（成功记录 / {"error": true, "message", "orderIndex"}）
      - error_message：终态说明（部分成功 / 取消 / 全部失败）
    """

    __tablename__ = "order_batches"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    batch_id: Mapped[str] = mapped_column(sa.Text, nullable=False, unique=True)

    configuration_id: Mapped[Optional[int]] = mapped_column(
        sa.Integer,
        sa.ForeignKey("order_configurations.id", ondelete="NO ACTION"),
        nullable=True,
        index=True,
    )

    order_count: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        sa.Text, nullable=False, default=BatchStatus.PENDING.value, server_default=sa.text("'pending'")
    )
    cancel_state: Mapped[str] = mapped_column(
        sa.Text, nullable=False, default=CancelState.ACTIVE.value, server_default=sa.text("'active'")
    )
    progress: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default=sa.text("0"))

    error_message: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    created_orders: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=sa.func.now(),
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    __table_args__ = (sa.Index("ix_order_batches_status", "status"),)

    @property
    def is_terminal(self) -> bool:
        return self.status in {s.value for s in (BatchStatus.COMPLETED, BatchStatus.FAILED, BatchStatus.PARTIAL)}

    @property
    def cancel_requested(self) -> bool:
        return self.cancel_state == CancelState.REQUESTED.value

    def __repr__(self) -> str:
        return f"<OrderBatch batch_id={self.batch_id} status={self.status} progress={self.progress}>"

# app/services/order_batch_store.py
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.enums import TERMINAL_STATUSES, BatchStatus, CancelState
from app.models.order_batch import OrderBatch

log = logging.getLogger("qaorders.store")

_TERMINAL = [s.value for s in TERMINAL_STATUSES]


class DuplicateBatchId(Exception):
    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch {batch_id} already exists")


def new_batch_id() -> str:
    return f"BATCH-{secrets.token_hex(6)}"


class OrderBatchStore:
    """
    order_batches 的读写入口。

    约定：
      - 每个操作自开一个短会话并立即提交，编排器和取消请求看到的都是已提交状态
      - 写操作都是单条 UPDATE，只碰自己负责的列：
          * start 是 pending → processing 的 compare-and-set，同一批次只会有一个运行拿到
          * update_progress 只写 progress / status
          * request_cancel 只写 cancel_state
          * finalize 写终态列，并收掉取消信号：确认取消 → cancelled，没赶上任何 wave 的请求 → active
        两边不会互相覆盖
      - 终态批次（completed / failed / partial）不再接受 progress / finalize / cancel 写入
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sf = session_factory

    async def create(
        self,
        *,
        order_count: int,
        batch_id: Optional[str] = None,
        configuration_id: Optional[int] = None,
    ) -> OrderBatch:
        row = OrderBatch(
            batch_id=batch_id or new_batch_id(),
            configuration_id=configuration_id,
            order_count=int(order_count),
            status=BatchStatus.PENDING.value,
            cancel_state=CancelState.ACTIVE.value,
            progress=0,
        )
        async with self._sf() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateBatchId(row.batch_id) from exc
            await session.refresh(row)
        return row

    async def get(self, batch_id: str) -> Optional[OrderBatch]:
        async with self._sf() as session:
            stmt = sa.select(OrderBatch).where(OrderBatch.batch_id == batch_id)
            return (await session.execute(stmt)).scalar_one_or_none()

    async def list_batches(self, *, limit: Optional[int] = None) -> List[OrderBatch]:
        async with self._sf() as session:
            stmt = sa.select(OrderBatch).order_by(OrderBatch.created_at.desc(), OrderBatch.id.desc())
            if limit:
                stmt = stmt.limit(int(limit))
            return list((await session.execute(stmt)).scalars().all())

    async def start(self, batch_id: str) -> bool:
        """
        pending → processing（progress=0）。只有当前仍是 pending 才命中；
        并发启动同一批次时只有一个调用返回 True。
        """
        stmt = (
            sa.update(OrderBatch)
            .where(OrderBatch.batch_id == batch_id, OrderBatch.status == BatchStatus.PENDING.value)
            .values(status=BatchStatus.PROCESSING.value, progress=0)
            .execution_options(synchronize_session=False)
        )
        async with self._sf() as session:
            res = await session.execute(stmt)
            await session.commit()
        return (res.rowcount or 0) > 0

    async def update_progress(self, batch_id: str, progress: int, status: Optional[BatchStatus] = None) -> bool:
        """
        progress 取 max(旧值, 新值)，保证单调不减；status 仅在显式传入时写。
        返回是否命中一条非终态记录。
        """
        p = max(0, min(100, int(progress)))
        values: Dict[str, Any] = {
            "progress": sa.case((OrderBatch.progress > p, OrderBatch.progress), else_=p),
        }
        if status is not None:
            values["status"] = BatchStatus(status).value

        stmt = (
            sa.update(OrderBatch)
            .where(OrderBatch.batch_id == batch_id, OrderBatch.status.not_in(_TERMINAL))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._sf() as session:
            res = await session.execute(stmt)
            await session.commit()
        return (res.rowcount or 0) > 0

    async def finalize(
        self,
        batch_id: str,
        *,
        results: Sequence[Dict[str, Any]],
        status: BatchStatus,
        message: Optional[str] = None,
        cancelled: bool = False,
    ) -> bool:
        """
        一次性写终态：status / progress=100 / created_orders / error_message / completed_at。
        已是终态的批次不会被改写（返回 False）。
        """
        values: Dict[str, Any] = {
            "status": BatchStatus(status).value,
            "progress": 100,
            "created_orders": list(results),
            "error_message": message,
            "completed_at": datetime.now(timezone.utc),
        }
        if cancelled:
            values["cancel_state"] = CancelState.CANCELLED.value
        else:
            # 最后一个 wave 期间才到的请求没有可停的 wave，信号复位
            values["cancel_state"] = sa.case(
                (OrderBatch.cancel_state == CancelState.REQUESTED.value, CancelState.ACTIVE.value),
                else_=OrderBatch.cancel_state,
            )

        stmt = (
            sa.update(OrderBatch)
            .where(OrderBatch.batch_id == batch_id, OrderBatch.status.not_in(_TERMINAL))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._sf() as session:
            res = await session.execute(stmt)
            await session.commit()
        return (res.rowcount or 0) > 0

    async def request_cancel(self, batch_id: str) -> Optional[OrderBatch]:
        """
        只写 cancel_state=cancel_requested（仅对未终态、尚未请求过的批次生效）；
        返回最新记录，批次不存在时返回 None。
        """
        stmt = (
            sa.update(OrderBatch)
            .where(
                OrderBatch.batch_id == batch_id,
                OrderBatch.status.not_in(_TERMINAL),
                OrderBatch.cancel_state == CancelState.ACTIVE.value,
            )
            .values(cancel_state=CancelState.REQUESTED.value)
            .execution_options(synchronize_session=False)
        )
        async with self._sf() as session:
            res = await session.execute(stmt)
            await session.commit()
        if (res.rowcount or 0) > 0:
            log.info("cancel requested for batch %s", batch_id)
        return await self.get(batch_id)

    async def delete(self, batch_id: str) -> bool:
        stmt = sa.delete(OrderBatch).where(OrderBatch.batch_id == batch_id)
        async with self._sf() as session:
            res = await session.execute(stmt)
            await session.commit()
        return (res.rowcount or 0) > 0

    async def unlink_configuration(self, configuration_id: int, *, session: Optional[AsyncSession] = None) -> int:
        """把引用该模板的批次 configuration_id 置空（不级联删除批次）。"""
        stmt = (
            sa.update(OrderBatch)
            .where(OrderBatch.configuration_id == int(configuration_id))
            .values(configuration_id=None)
            .execution_options(synchronize_session=False)
        )
        if session is not None:
            res = await session.execute(stmt)
            return int(res.rowcount or 0)
        async with self._sf() as own:
            res = await own.execute(stmt)
            await own.commit()
        return int(res.rowcount or 0)

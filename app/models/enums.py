# app/models/enums.py
from __future__ import annotations

from enum import StrEnum


class BatchStatus(StrEnum):
    """
    批次状态（持久化字段 order_batches.status，保持与历史取值兼容）：

    - PENDING     已建批次，尚未开始下单
    - PROCESSING  编排器运行中（progress 可轮询）
    - COMPLETED   全部成功
    - FAILED      0 单成功（全部失败 / 取消于首单之前 / 编排器级异常）
    - PARTIAL     部分成功（失败或取消）
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    PARTIAL = "partial"


TERMINAL_STATUSES = frozenset({BatchStatus.COMPLETED, BatchStatus.FAILED, BatchStatus.PARTIAL})


class CancelState(StrEnum):
    """
    取消信号（与 status 并列存放，不再借用 status=failed + 魔法文案）：

    - ACTIVE     正常
    - REQUESTED  外部已请求取消，编排器在下一个 wave 边界读到后停止
    - CANCELLED  编排器已按取消收尾
    """

    ACTIVE = "active"
    REQUESTED = "cancel_requested"
    CANCELLED = "cancelled"

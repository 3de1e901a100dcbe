# app/models/__init__.py
"""
统一导出 ORM 模型。
"""

from app.models.enums import TERMINAL_STATUSES, BatchStatus, CancelState
from app.models.order_batch import OrderBatch
from app.models.order_configuration import OrderConfiguration

__all__ = [
    "OrderConfiguration",
    "OrderBatch",
    "BatchStatus",
    "CancelState",
    "TERMINAL_STATUSES",
]

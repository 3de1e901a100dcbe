# app/services/order_batches/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.models.enums import BatchStatus


class BatchNotFound(Exception):
    """批次记录不存在（或在运行中途消失）。"""

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch {batch_id} not found")


class BatchNotPending(Exception):
    """批次已开始或已终态，不能再跑一次。"""

    def __init__(self, batch_id: str, status: str):
        self.batch_id = batch_id
        self.status = status
        super().__init__(f"Batch {batch_id} is {status}, expected pending")


class BatchRunError(Exception):
    """编排器级失败：批次已被标成 failed，原始异常挂在 __cause__ 上。"""

    def __init__(self, batch_id: str, message: str):
        self.batch_id = batch_id
        self.message = message
        super().__init__(f"Batch {batch_id} failed: {message}")


def is_failure_entry(entry: Any) -> bool:
    return isinstance(entry, dict) and bool(entry.get("error"))


@dataclass
class BatchResult:
    batch_id: str
    status: BatchStatus
    message: Optional[str]
    requested: int
    orders: List[Dict[str, Any]] = field(default_factory=list)
    cancelled: bool = False
    waves: int = 0

    @property
    def orders_created(self) -> int:
        return sum(1 for o in self.orders if not is_failure_entry(o))

    @property
    def orders_failed(self) -> int:
        return sum(1 for o in self.orders if is_failure_entry(o))

    @property
    def has_errors(self) -> bool:
        return self.orders_failed > 0


@dataclass
class BatchDeletionResult:
    """
    单个批次的删除结果：
      - deleted：本地记录已删除
      - failed：本地记录不存在 / 读取失败，且没有远端删除发生
      - partial：远端已删了一部分，但本地记录删除失败
    """

    batch_id: str
    outcome: str
    local_deleted: bool = False
    remote_deleted: int = 0
    remote_failed: int = 0
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == "deleted"


@dataclass
class DeletionSummary:
    results: List[BatchDeletionResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [
                {
                    "batch_id": r.batch_id,
                    "outcome": r.outcome,
                    "local_deleted": r.local_deleted,
                    "remote_deleted": r.remote_deleted,
                    "remote_failed": r.remote_failed,
                    "message": r.message,
                }
                for r in self.results
            ],
        }

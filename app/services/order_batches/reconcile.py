# app/services/order_batches/reconcile.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.models.enums import BatchStatus

CANCELLED_MESSAGE = "Cancelled by user"
ALL_FAILED_MESSAGE = "All orders failed to create"


@dataclass(frozen=True)
class Reconciliation:
    status: BatchStatus
    message: Optional[str] = None


def reconcile(requested: int, succeeded: int, failed: int, cancelled: bool) -> Reconciliation:
    """
    把一次运行的计数映射成批次终态：

    | cancelled | succeeded        | failed | status    | message                                    |
    |-----------|------------------|--------|-----------|--------------------------------------------|
    | True      | 0                | any    | failed    | Cancelled by user                          |
    | True      | 0 < s < N        | any    | partial   | Cancelled by user - s of N orders created  |
    | False     | N                | 0      | completed | None                                       |
    | False     | 0                | > 0    | failed    | All orders failed to create                |
    | False     | 0 < s < N        | > 0    | partial   | s of N orders created successfully         |

    表外组合：取消但已全部成功 → completed（取消来得太晚，没有拦下任何订单）；
    未取消且 0 成功 0 失败 → failed / All orders failed to create。
    """
    if requested < 1 or succeeded < 0 or failed < 0:
        raise ValueError(f"invalid counts: requested={requested} succeeded={succeeded} failed={failed}")

    if succeeded >= requested:
        return Reconciliation(BatchStatus.COMPLETED)

    if cancelled:
        if succeeded == 0:
            return Reconciliation(BatchStatus.FAILED, CANCELLED_MESSAGE)
        return Reconciliation(
            BatchStatus.PARTIAL,
            f"{CANCELLED_MESSAGE} - {succeeded} of {requested} orders created",
        )

    if succeeded == 0:
        return Reconciliation(BatchStatus.FAILED, ALL_FAILED_MESSAGE)
    return Reconciliation(BatchStatus.PARTIAL, f"{succeeded} of {requested} orders created successfully")

# tests/unit/test_status_reconcile.py
import itertools

import pytest

from app.models.enums import BatchStatus
from app.services.order_batches.reconcile import reconcile


@pytest.mark.parametrize(
    "requested, succeeded, failed, cancelled, status, message",
    [
        (10, 0, 3, True, BatchStatus.FAILED, "Cancelled by user"),
        (10, 4, 0, True, BatchStatus.PARTIAL, "Cancelled by user - 4 of 10 orders created"),
        (10, 10, 0, False, BatchStatus.COMPLETED, None),
        (10, 0, 10, False, BatchStatus.FAILED, "All orders failed to create"),
        (10, 9, 1, False, BatchStatus.PARTIAL, "9 of 10 orders created successfully"),
    ],
)
def test_reconcile_table(requested, succeeded, failed, cancelled, status, message):
    r = reconcile(requested, succeeded, failed, cancelled)
    assert r.status is status
    assert r.message == message


def test_cancel_arriving_after_all_orders_created_is_completed():
    r = reconcile(25, 25, 0, True)
    assert r.status is BatchStatus.COMPLETED
    assert r.message is None


def test_nothing_attempted_and_not_cancelled_is_failed():
    r = reconcile(5, 0, 0, False)
    assert r.status is BatchStatus.FAILED
    assert r.message == "All orders failed to create"


@pytest.mark.parametrize("args", [(0, 0, 0, False), (3, -1, 0, False), (3, 0, -2, True)])
def test_invalid_counts_raise(args):
    with pytest.raises(ValueError):
        reconcile(*args)


def test_every_combination_lands_on_a_terminal_status():
    terminal = {BatchStatus.COMPLETED, BatchStatus.FAILED, BatchStatus.PARTIAL}
    for requested in (1, 5, 100):
        for succeeded, cancelled in itertools.product(range(requested + 1), (True, False)):
            for failed in {0, requested - succeeded}:
                r = reconcile(requested, succeeded, failed, cancelled)
                assert r.status in terminal
                # 纯函数：同样输入同样输出
                assert reconcile(requested, succeeded, failed, cancelled) == r
                if succeeded == requested:
                    assert r.status is BatchStatus.COMPLETED
                elif succeeded == 0:
                    assert r.status is BatchStatus.FAILED
                else:
                    assert r.status is BatchStatus.PARTIAL
                    assert f"{succeeded} of {requested} orders created" in r.message
                if cancelled and succeeded < requested:
                    assert r.message.startswith("Cancelled by user")

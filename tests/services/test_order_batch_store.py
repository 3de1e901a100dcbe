# tests/services/test_order_batch_store.py
import pytest

from app.models.enums import BatchStatus, CancelState
from app.services.order_batch_store import DuplicateBatchId

pytestmark = pytest.mark.asyncio


async def test_create_defaults(batch_store):
    row = await batch_store.create(order_count=3)
    assert row.batch_id.startswith("BATCH-")
    assert row.status == BatchStatus.PENDING.value
    assert row.cancel_state == CancelState.ACTIVE.value
    assert row.progress == 0
    assert row.created_orders is None


async def test_duplicate_batch_id(batch_store):
    await batch_store.create(order_count=1, batch_id="BATCH-dup")
    with pytest.raises(DuplicateBatchId):
        await batch_store.create(order_count=1, batch_id="BATCH-dup")


async def test_start_only_moves_pending_batches(batch_store):
    row = await batch_store.create(order_count=3)

    assert await batch_store.start(row.batch_id)
    # 第二次启动拿不到
    assert not await batch_store.start(row.batch_id)
    assert not await batch_store.start("BATCH-nope")

    got = await batch_store.get(row.batch_id)
    assert got.status == BatchStatus.PROCESSING.value
    assert got.progress == 0


async def test_progress_never_goes_backwards(batch_store):
    row = await batch_store.create(order_count=10)
    assert await batch_store.update_progress(row.batch_id, 60, BatchStatus.PROCESSING)
    assert await batch_store.update_progress(row.batch_id, 30)

    got = await batch_store.get(row.batch_id)
    assert got.progress == 60
    assert got.status == BatchStatus.PROCESSING.value


async def test_progress_write_keeps_concurrent_cancel(batch_store):
    row = await batch_store.create(order_count=10)
    await batch_store.update_progress(row.batch_id, 0, BatchStatus.PROCESSING)

    await batch_store.request_cancel(row.batch_id)
    await batch_store.update_progress(row.batch_id, 50)

    got = await batch_store.get(row.batch_id)
    assert got.cancel_state == CancelState.REQUESTED.value
    assert got.progress == 50


async def test_finalize_writes_once(batch_store):
    row = await batch_store.create(order_count=2)
    entries = [{"id": 1}, {"error": True, "message": "Failed to create order 2: boom", "orderIndex": 2}]

    assert await batch_store.finalize(
        row.batch_id, results=entries, status=BatchStatus.PARTIAL, message="1 of 2 orders created successfully"
    )
    assert not await batch_store.finalize(row.batch_id, results=[], status=BatchStatus.FAILED, message="late")
    assert not await batch_store.update_progress(row.batch_id, 10, BatchStatus.PROCESSING)

    got = await batch_store.get(row.batch_id)
    assert got.status == BatchStatus.PARTIAL.value
    assert got.progress == 100
    assert got.created_orders == entries
    assert got.error_message == "1 of 2 orders created successfully"


async def test_finalize_settles_the_cancel_signal(batch_store):
    a = await batch_store.create(order_count=1)
    b = await batch_store.create(order_count=1)
    await batch_store.request_cancel(a.batch_id)
    await batch_store.request_cancel(b.batch_id)

    await batch_store.finalize(a.batch_id, results=[], status=BatchStatus.FAILED, message="Cancelled by user", cancelled=True)
    await batch_store.finalize(b.batch_id, results=[{"id": 9}], status=BatchStatus.COMPLETED)

    assert (await batch_store.get(a.batch_id)).cancel_state == CancelState.CANCELLED.value
    # 请求到得太晚、没有 wave 可停：复位为 active，不留悬空的 cancel_requested
    assert (await batch_store.get(b.batch_id)).cancel_state == CancelState.ACTIVE.value


async def test_cancel_on_terminal_batch_is_ignored(batch_store):
    row = await batch_store.create(order_count=1)
    await batch_store.finalize(row.batch_id, results=[{"id": 1}], status=BatchStatus.COMPLETED)

    got = await batch_store.request_cancel(row.batch_id)
    assert got.cancel_state == CancelState.ACTIVE.value
    assert got.status == BatchStatus.COMPLETED.value

    assert await batch_store.request_cancel("BATCH-nope") is None


async def test_list_newest_first_and_delete(batch_store):
    first = await batch_store.create(order_count=1)
    second = await batch_store.create(order_count=1)

    ids = [b.batch_id for b in await batch_store.list_batches()]
    assert ids == [second.batch_id, first.batch_id]
    assert len(await batch_store.list_batches(limit=1)) == 1

    assert await batch_store.delete(first.batch_id)
    assert not await batch_store.delete(first.batch_id)
    assert await batch_store.get(first.batch_id) is None

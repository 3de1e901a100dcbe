# app/services/order_batches/deletion.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from opentelemetry import trace

from app.core.config import AppSettings, get_settings
from app.core.logging import batch_id_var
from app.obs.metrics import qa_remote_deletions_total
from app.services.order_batch_store import OrderBatchStore
from app.services.order_batches.orchestrator import plan_waves
from app.services.order_batches.types import BatchDeletionResult, DeletionSummary, is_failure_entry
from app.services.remote_orders.ports import RemoteOrderService

log = logging.getLogger("qaorders.deletion")
Tracer = trace.get_tracer(__name__)

Sleep = Callable[[float], Awaitable[Any]]


def _remote_order_id(entry: Dict[str, Any]) -> Optional[str]:
    oid = entry.get("id")
    if isinstance(oid, bool) or not isinstance(oid, (int, str)):
        return None
    oid = str(oid).strip()
    return oid or None


class BulkDeletionOrchestrator:
    """
    批量删除批次：

      - 批次逐个处理，单个批次的失败不影响其它批次
      - purge_remote=True 时先删远端订单：只处理成功记录，按 DELETE_WAVE_WIDTH 分 wave 并发，
        wave 之间 sleep DELETE_WAVE_DELAY 秒；404 算删除成功，无效 id 算失败
      - 远端删完再删本地记录；本地删失败但远端已删过的，记为 partial
      - 总是返回聚合计数
    """

    def __init__(
        self,
        store: OrderBatchStore,
        remote: RemoteOrderService,
        *,
        settings: Optional[AppSettings] = None,
        wave_width: Optional[int] = None,
        wave_delay: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        s = settings or get_settings()
        self._store = store
        self._remote = remote
        self._sleep = sleep
        self.wave_width = max(1, int(wave_width or s.DELETE_WAVE_WIDTH))
        self.wave_delay = float(s.DELETE_WAVE_DELAY if wave_delay is None else wave_delay)

    async def delete_batches(self, batch_ids: Iterable[str], purge_remote: bool) -> DeletionSummary:
        summary = DeletionSummary()
        seen: set[str] = set()
        for batch_id in batch_ids:
            if batch_id in seen:
                continue
            seen.add(batch_id)
            token = batch_id_var.set(batch_id)
            try:
                with Tracer.start_as_current_span(
                    "order_batch.delete", attributes={"batch.id": batch_id, "purge_remote": purge_remote}
                ):
                    summary.results.append(await self._delete_one(batch_id, purge_remote))
            finally:
                batch_id_var.reset(token)

        log.info(
            "deleted batches: %d succeeded, %d failed (purge_remote=%s)",
            summary.succeeded,
            summary.failed,
            purge_remote,
        )
        return summary

    async def _delete_one(self, batch_id: str, purge_remote: bool) -> BatchDeletionResult:
        try:
            batch = await self._store.get(batch_id)
        except Exception as exc:
            log.exception("batch %s: failed to load: %s", batch_id, exc)
            return BatchDeletionResult(batch_id, "failed", message=f"Failed to load batch: {exc}")

        if batch is None:
            return BatchDeletionResult(batch_id, "failed", message="Batch not found")

        remote_ok = remote_bad = 0
        if purge_remote:
            remote_ok, remote_bad = await self.purge_remote_orders(batch.created_orders or [])

        try:
            local_deleted = await self._store.delete(batch_id)
            local_error = None if local_deleted else "record disappeared"
        except Exception as exc:
            log.exception("batch %s: local delete failed: %s", batch_id, exc)
            local_deleted, local_error = False, str(exc)

        if not local_deleted:
            outcome = "partial" if remote_ok > 0 else "failed"
            return BatchDeletionResult(
                batch_id,
                outcome,
                local_deleted=False,
                remote_deleted=remote_ok,
                remote_failed=remote_bad,
                message=(
                    f"Remote orders: {remote_ok} deleted, {remote_bad} failed; "
                    f"local batch could not be deleted: {local_error}"
                ),
            )

        if purge_remote:
            message = f"Batch deleted successfully. Remote orders: {remote_ok} deleted, {remote_bad} failed."
        else:
            message = "Batch deleted successfully from local storage."
        return BatchDeletionResult(
            batch_id,
            "deleted",
            local_deleted=True,
            remote_deleted=remote_ok,
            remote_failed=remote_bad,
            message=message,
        )

    async def purge_remote_orders(self, entries: List[Dict[str, Any]]) -> Tuple[int, int]:
        """删除一个批次里所有成功记录对应的远端订单，返回 (成功, 失败)。"""
        targets = [e for e in entries if isinstance(e, dict) and not is_failure_entry(e)]
        ok = bad = 0
        waves = plan_waves(len(targets), self.wave_width)
        for n, wave in enumerate(waves):
            outcomes = await asyncio.gather(*(self._delete_remote(targets[i]) for i in wave))
            ok += sum(1 for o in outcomes if o)
            bad += sum(1 for o in outcomes if not o)
            if self.wave_delay > 0 and n < len(waves) - 1:
                await self._sleep(self.wave_delay)
        return ok, bad

    async def _delete_remote(self, entry: Dict[str, Any]) -> bool:
        order_id = _remote_order_id(entry)
        if order_id is None:
            qa_remote_deletions_total.labels("failed").inc()
            log.warning("skipping result entry without a valid remote id: %r", entry)
            return False
        try:
            outcome = await self._remote.delete_order(order_id)
        except Exception as exc:
            qa_remote_deletions_total.labels("failed").inc()
            log.warning("remote delete of order %s failed: %s", order_id, exc)
            return False
        qa_remote_deletions_total.labels("ok" if outcome.success else "failed").inc()
        return bool(outcome.success)

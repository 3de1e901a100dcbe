# app/jobs/order_batch_runner.py
"""
命令行入口（与 HTTP 层同一套编排器）：

    python -m app.jobs.order_batch_runner run --configuration-id 3 [--batch-id BATCH-x]
    python -m app.jobs.order_batch_runner status BATCH-x
    python -m app.jobs.order_batch_runner cancel BATCH-x
    python -m app.jobs.order_batch_runner delete BATCH-a BATCH-b [--purge-remote]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from app.core.config import get_settings
from app.core.logging import setup_logging
from app.db.session import AsyncSessionLocal, close_engines, create_all
from app.schemas.order_configuration import InlineOrderConfiguration
from app.services.order_batch_store import OrderBatchStore
from app.services.order_batches.deletion import BulkDeletionOrchestrator
from app.services.order_batches.orchestrator import BatchOrchestrator
from app.services.order_batches.product_cache import ProductResolutionCache
from app.services.order_batches.types import BatchNotPending, BatchRunError
from app.services.order_configuration_store import OrderConfigurationStore
from app.services.remote_orders.client import ShopAdminClient
from app.services.remote_orders.fulfillment_routing import FulfillmentRouter

log = logging.getLogger("qaorders.cli")


def _batch_view(batch: Any) -> Dict[str, Any]:
    return {
        "batch_id": batch.batch_id,
        "status": batch.status,
        "cancel_state": batch.cancel_state,
        "progress": batch.progress,
        "order_count": batch.order_count,
        "error_message": batch.error_message,
    }


async def run(configuration_id: int, batch_id: Optional[str]) -> int:
    settings = get_settings()
    batches = OrderBatchStore(AsyncSessionLocal)
    row = await OrderConfigurationStore(AsyncSessionLocal).get(configuration_id)
    if row is None:
        print(f"configuration {configuration_id} not found", file=sys.stderr)
        return 2
    config = InlineOrderConfiguration.model_validate(row)

    if batch_id is None:
        batch = await batches.create(
            order_count=min(config.order_count, settings.MAX_ORDER_COUNT),
            configuration_id=configuration_id,
        )
        batch_id = batch.batch_id
    log.info("running batch %s from configuration %s", batch_id, configuration_id)

    remote = ShopAdminClient.from_settings(settings)
    try:
        router = FulfillmentRouter(remote) if settings.FULFILLMENT_ROUTING_ENABLED else None
        orchestrator = BatchOrchestrator(batches, remote, ProductResolutionCache(remote), router=router, settings=settings)
        try:
            result = await orchestrator.run_batch(config, batch_id)
        except (BatchRunError, BatchNotPending) as exc:
            print(str(exc), file=sys.stderr)
            return 1
    finally:
        await remote.aclose()

    print(
        json.dumps(
            {
                "batch_id": result.batch_id,
                "status": result.status.value,
                "message": result.message,
                "orders_created": result.orders_created,
                "orders_failed": result.orders_failed,
                "cancelled": result.cancelled,
            },
            indent=2,
        )
    )
    return 0


async def status(batch_id: str) -> int:
    batch = await OrderBatchStore(AsyncSessionLocal).get(batch_id)
    if batch is None:
        print(f"batch {batch_id} not found", file=sys.stderr)
        return 2
    print(json.dumps(_batch_view(batch), indent=2))
    return 0


async def cancel(batch_id: str) -> int:
    batch = await OrderBatchStore(AsyncSessionLocal).request_cancel(batch_id)
    if batch is None:
        print(f"batch {batch_id} not found", file=sys.stderr)
        return 2
    print(json.dumps(_batch_view(batch), indent=2))
    return 0


async def delete(batch_ids: List[str], purge_remote: bool) -> int:
    settings = get_settings()
    remote = ShopAdminClient.from_settings(settings)
    try:
        deleter = BulkDeletionOrchestrator(OrderBatchStore(AsyncSessionLocal), remote, settings=settings)
        summary = await deleter.delete_batches(batch_ids, purge_remote)
    finally:
        await remote.aclose()
    print(json.dumps(summary.as_dict(), indent=2))
    return 0 if summary.failed == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="order_batch_runner", description="QA order batch runner")
    sub = p.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="create orders from a saved configuration")
    p_run.add_argument("--configuration-id", type=int, required=True)
    p_run.add_argument("--batch-id", default=None, help="existing pending batch (default: create one)")

    p_status = sub.add_parser("status", help="show batch status / progress")
    p_status.add_argument("batch_id")

    p_cancel = sub.add_parser("cancel", help="request cancellation of a running batch")
    p_cancel.add_argument("batch_id")

    p_delete = sub.add_parser("delete", help="delete batches (optionally their remote orders)")
    p_delete.add_argument("batch_ids", nargs="+")
    p_delete.add_argument("--purge-remote", action="store_true")
    return p


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    await create_all()
    try:
        if args.command == "run":
            return await run(args.configuration_id, args.batch_id)
        if args.command == "status":
            return await status(args.batch_id)
        if args.command == "cancel":
            return await cancel(args.batch_id)
        return await delete(args.batch_ids, args.purge_remote)
    finally:
        await close_engines()


if __name__ == "__main__":
    setup_logging(get_settings().LOG_LEVEL)
    sys.exit(asyncio.run(main()))

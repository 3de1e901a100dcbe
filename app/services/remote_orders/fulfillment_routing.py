# app/services/remote_orders/fulfillment_routing.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, Sequence

from app.services.remote_orders.payload import warehouse_location_id
from app.services.remote_orders.ports import RemoteOrderService
from app.services.remote_orders.types import RoutingOutcome

log = logging.getLogger("qaorders.fulfillment")


class RoutingStrategy(Protocol):
    name: str

    async def apply(
        self,
        remote: RemoteOrderService,
        *,
        fulfillment_order: Dict[str, Any],
        location_id: int,
    ) -> None: ...


class MoveToWarehouseLocation:
    """把履约单挪到模板仓对应的 location。"""

    name = "move_to_location"

    async def apply(self, remote: RemoteOrderService, *, fulfillment_order: Dict[str, Any], location_id: int) -> None:
        if fulfillment_order.get("assigned_location_id") == location_id:
            return
        await remote.move_fulfillment_order(int(fulfillment_order["id"]), location_id)


class RequestFulfillment:
    """直接向当前 fulfillment service 发履约请求。"""

    name = "request_fulfillment"

    def __init__(self, message: str = "Request fulfillment from warehouse"):
        self.message = message

    async def apply(self, remote: RemoteOrderService, *, fulfillment_order: Dict[str, Any], location_id: int) -> None:
        await remote.request_fulfillment(int(fulfillment_order["id"]), self.message)


DEFAULT_STRATEGIES: Sequence[RoutingStrategy] = (MoveToWarehouseLocation(), RequestFulfillment())


class FulfillmentRouter:
    """
    下单成功后把订单路由到模板仓：

      - 依次尝试 strategies，第一个成功即停
      - 全部失败时返回 routed=False + 最后一个错误
      - 任何失败都只体现在 RoutingOutcome 上，不影响订单本身
    """

    def __init__(self, remote: RemoteOrderService, strategies: Optional[Sequence[RoutingStrategy]] = None):
        self._remote = remote
        self._strategies = list(strategies if strategies is not None else DEFAULT_STRATEGIES)

    async def route(self, order_id: int, warehouse: str) -> RoutingOutcome:
        location_id = warehouse_location_id(warehouse)
        if location_id is None:
            return RoutingOutcome(routed=False, error=f"No location mapped for warehouse {warehouse!r}")

        try:
            fulfillment_orders = await self._remote.get_fulfillment_orders(order_id)
        except Exception as exc:
            log.warning("order %s: failed to load fulfillment orders: %s", order_id, exc)
            return RoutingOutcome(routed=False, error=str(exc))

        if not fulfillment_orders:
            return RoutingOutcome(routed=False, error="No fulfillment orders")

        outcome = RoutingOutcome(routed=False)
        fo = fulfillment_orders[0]
        for strategy in self._strategies:
            outcome.attempts.append(strategy.name)
            try:
                await strategy.apply(self._remote, fulfillment_order=fo, location_id=location_id)
            except Exception as exc:
                log.warning("order %s: routing strategy %s failed: %s", order_id, strategy.name, exc)
                outcome.error = str(exc)
                continue
            outcome.routed = True
            outcome.strategy = strategy.name
            outcome.error = None
            return outcome
        return outcome

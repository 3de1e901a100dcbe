from app.services.remote_orders.client import ShopAdminClient
from app.services.remote_orders.fulfillment_routing import FulfillmentRouter
from app.services.remote_orders.ports import RemoteOrderService
from app.services.remote_orders.types import (
    DeleteOutcome,
    ProductInfo,
    RemoteOrder,
    RemoteOrderError,
    RemoteOrderNotFound,
    RoutingOutcome,
)

__all__ = [
    "ShopAdminClient",
    "FulfillmentRouter",
    "RemoteOrderService",
    "DeleteOutcome",
    "ProductInfo",
    "RemoteOrder",
    "RemoteOrderError",
    "RemoteOrderNotFound",
    "RoutingOutcome",
]

# app/services/remote_orders/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class RemoteOrderError(Exception):
    """远端 Admin API 调用失败（非 2xx 或传输层异常，status=0 表示没拿到响应）。"""

    def __init__(self, status: int, body: str = "", *, message: Optional[str] = None):
        self.status = int(status)
        self.body = body or ""
        super().__init__(message or f"Remote API error: {self.status} - {self.body}")


class RemoteOrderNotFound(RemoteOrderError):
    """404：资源不存在（删除时按“已删除”处理）。"""


@dataclass(frozen=True)
class ProductInfo:
    variant_id: int
    product_id: int
    title: str
    price: str
    sku: str = ""


@dataclass(frozen=True)
class RemoteOrder:
    id: int
    order_number: Optional[int]
    name: Optional[str]
    tags: str
    total_price: Optional[str]
    financial_status: Optional[str]
    fulfillment_status: Optional[str]
    created_at: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "RemoteOrder":
        if "id" not in data:
            raise RemoteOrderError(0, str(data)[:500], message="Remote API returned an order without id")
        return cls(
            id=int(data["id"]),
            order_number=data.get("order_number"),
            name=data.get("name"),
            tags=str(data.get("tags") or ""),
            total_price=data.get("total_price"),
            financial_status=data.get("financial_status"),
            fulfillment_status=data.get("fulfillment_status"),
            created_at=data.get("created_at"),
            raw=dict(data),
        )


@dataclass(frozen=True)
class DeleteOutcome:
    success: bool
    message: str
    already_gone: bool = False


@dataclass
class RoutingOutcome:
    """履约路由结果：routed=False 时 error 记录最后一个策略的报错。"""

    routed: bool
    strategy: Optional[str] = None
    error: Optional[str] = None
    attempts: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"routed": self.routed, "attempts": list(self.attempts)}
        if self.strategy:
            out["strategy"] = self.strategy
        if self.error:
            out["error"] = self.error
        return out

# app/models/order_configuration.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderConfiguration(Base):
    """
    下单模板（可复用的一组造单参数）：

      - warehouse：仓编码（om-bbl / om-bbh / om-bbp）
      - address：收货地址键（us-columbus / ca-ottawa / 其它走兜底地址）
      - line_items：[{"productId": "<SKU>", "quantity": 1..10}, ...]，至少一行
      - customer_*：客户姓名 / 邮箱
      - custom_tags：自由标签（数组）
      - order_count：请求单量（1..MAX_ORDER_COUNT）
      - order_delay：wave 间隔秒数（0..MAX_ORDER_DELAY）
      - randomize_data：每单随机客户信息
    """

    __tablename__ = "order_configurations"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.Text, nullable=False)

    warehouse: Mapped[str] = mapped_column(sa.Text, nullable=False)
    address: Mapped[str] = mapped_column(sa.Text, nullable=False)
    line_items: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False)

    subscription_type: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    customer_segment: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    custom_tags: Mapped[Optional[list[str]]] = mapped_column(JSONType, nullable=True)
    address_template: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    state_province: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    customer_first_name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    customer_last_name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    customer_email: Mapped[str] = mapped_column(sa.Text, nullable=False)

    order_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, server_default=sa.text("1"))
    order_delay: Mapped[int] = mapped_column(sa.Integer, nullable=False, server_default=sa.text("0"))
    randomize_data: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False, server_default=sa.false()
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=sa.func.now(),
    )

    def __repr__(self) -> str:
        return f"<OrderConfiguration id={self.id} name={self.name!r} warehouse={self.warehouse}>"

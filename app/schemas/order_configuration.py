# app/schemas/order_configuration.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.config import get_settings


# ========= 通用基类 =========
class _Base(BaseModel):
    """
    - from_attributes: 允许 ORM 对象直接序列化
    - extra="ignore": 忽略冗余字段（前端表单会带一些展示字段）
    - populate_by_name: 支持别名/字段名互填（line_items 里存的是 productId）
    """

    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )


class LineItem(_Base):
    """单行商品：productId 可以是 SKU，也可以是远端的不透明 id。"""

    product_id: Annotated[str, Field(min_length=1, alias="productId", description="SKU 或商品 id")]
    quantity: Annotated[int, Field(ge=1, le=10)]

    @field_validator("product_id", mode="before")
    @classmethod
    def _trim_product_id(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


# ========= 基础字段 =========
class OrderConfigurationBase(_Base):
    """
    造单模板字段：

    - line_items 至少一行
    - order_count ∈ [1, MAX_ORDER_COUNT]
    - order_delay ∈ [0, MAX_ORDER_DELAY]（秒，作用于 wave 之间）
    - customer_email 必须是合法邮箱
    """

    name: Annotated[str, Field(min_length=1, max_length=200)]
    warehouse: Annotated[str, Field(min_length=1, description="仓编码，如 om-bbl / om-bbh / om-bbp")]
    address: Annotated[str, Field(min_length=1, description="收货地址键，如 us-columbus / ca-ottawa")]
    line_items: Annotated[List[LineItem], Field(min_length=1)]

    subscription_type: Optional[str] = None
    customer_segment: Optional[str] = None
    custom_tags: List[str] = Field(default_factory=list)
    address_template: Optional[str] = None
    state_province: Optional[str] = None

    customer_first_name: Annotated[str, Field(min_length=1, max_length=100)]
    customer_last_name: Annotated[str, Field(min_length=1, max_length=100)]
    customer_email: EmailStr

    order_count: Annotated[int, Field(ge=1)] = 1
    order_delay: Annotated[int, Field(ge=0)] = 0
    randomize_data: bool = False

    @field_validator("name", "warehouse", "address", "customer_first_name", "customer_last_name", mode="before")
    @classmethod
    def _trim(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("custom_tags", mode="before")
    @classmethod
    def _split_tags(cls, v: Any) -> Any:
        # 老数据里 custom_tags 是逗号分隔的文本
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return [str(t).strip() for t in v if str(t).strip()]
        return v

    @field_validator("order_count")
    @classmethod
    def _order_count_cap(cls, v: int) -> int:
        cap = get_settings().MAX_ORDER_COUNT
        if v > cap:
            raise ValueError(f"order_count must be between 1 and {cap}")
        return v

    @field_validator("order_delay")
    @classmethod
    def _order_delay_cap(cls, v: int) -> int:
        cap = get_settings().MAX_ORDER_DELAY
        if v > cap:
            raise ValueError(f"order_delay must be between 0 and {cap} seconds")
        return v

    def line_items_json(self) -> list[dict[str, Any]]:
        """落库形状：[{"productId": ..., "quantity": ...}]"""
        return [li.model_dump(by_alias=True) for li in self.line_items]


# ========= 创建 / 更新 =========
class OrderConfigurationCreate(OrderConfigurationBase):
    """创建模板"""

    model_config = _Base.model_config | {
        "json_schema_extra": {
            "example": {
                "name": "OM BBH kibble x2",
                "warehouse": "om-bbh",
                "address": "us-columbus",
                "line_items": [{"productId": "KIBBLE-CHK-4LB", "quantity": 2}],
                "custom_tags": ["contains_kibble"],
                "customer_first_name": "Test",
                "customer_last_name": "Buyer",
                "customer_email": "qa@example.com",
                "order_count": 25,
                "order_delay": 0,
            }
        }
    }


class OrderConfigurationUpdate(OrderConfigurationBase):
    """整体替换（PUT 语义）"""

    pass


class InlineOrderConfiguration(OrderConfigurationBase):
    """临时下单：不落模板，名字可省略。"""

    name: Annotated[str, Field(min_length=1, max_length=200)] = "Temporary order"


# ========= 输出 =========
class OrderConfigurationOut(OrderConfigurationBase):
    id: int
    created_at: datetime


# ========= 校验接口 =========
class ConfigurationFieldError(_Base):
    field: str
    message: str


class ValidateConfigurationOut(_Base):
    valid: bool
    errors: List[ConfigurationFieldError] = Field(default_factory=list)
    configuration: Optional[OrderConfigurationCreate] = None


class DeleteConfigurationOut(_Base):
    success: bool = True
    message: str = "Template deleted successfully"
    unlinked_batches: int = 0

# app/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    全局应用配置（环境变量 / .env 读取）

    约定：
    - 数据库默认落本地 SQLite（aiosqlite），QA 工具单实例即可；
    - 需要共享时改成 PostgreSQL（psycopg），DSN 会统一归一到异步驱动。
    """

    # 运行环境
    ENV: str = Field(default="dev")
    DEBUG: bool = Field(default=True)

    # 数据库
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./qa_orders.db",
        description="例如：postgresql+psycopg://qa:qa@127.0.0.1:5432/qa_orders",
    )
    SQL_ECHO: bool = Field(default=False)

    # 日志
    LOG_LEVEL: str = Field(default="INFO")

    # 远端电商平台（Admin REST API）
    SHOP_DOMAIN: str = Field(default="dev-bark-co.myshopify.com")
    SHOP_ACCESS_TOKEN: str = Field(default="")
    SHOP_API_VERSION: str = Field(default="2024-01")
    SHOP_HTTP_TIMEOUT: float = Field(default=30.0, gt=0)

    # 批量下单：数量上限 / 并发宽度 / 节流
    MAX_ORDER_COUNT: int = Field(default=30000, ge=1)
    MAX_ORDER_DELAY: int = Field(default=60, ge=0)
    CREATE_WAVE_WIDTH: int = Field(default=10, ge=1)
    DELETE_WAVE_WIDTH: int = Field(default=5, ge=1)
    DELETE_WAVE_DELAY: float = Field(default=0.5, ge=0)

    # 下单后把履约单路由到配置的仓（失败不影响订单本身）
    FULFILLMENT_ROUTING_ENABLED: bool = Field(default=True)

    # 订单号预览 / 订单标签
    ORDER_NUMBER_PREFIX: str = Field(default="TEST")
    ORDER_NUMBER_FLOOR: int = Field(default=271007)
    ORDER_SOURCE_TAG: str = Field(default="qa-generator")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> AppSettings:
    """全局单例设置入口。"""
    return AppSettings()

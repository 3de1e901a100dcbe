# tests/conftest.py
from __future__ import annotations

import os
from typing import Any, AsyncGenerator, Callable, Dict

# ============================================================
# 在 import app.* 之前固定测试配置（get_settings 有 lru_cache）
# ============================================================
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SHOP_DOMAIN"] = "qa-test.myshopify.com"
os.environ["SHOP_ACCESS_TOKEN"] = "shpat_test"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_deletion_orchestrator, get_product_cache, get_remote_service  # noqa: E402
from app.db.session import create_all, get_session_factory, make_session_factory  # noqa: E402
from app.main import app  # noqa: E402
from app.schemas.order_configuration import InlineOrderConfiguration  # noqa: E402
from app.services.order_batch_store import OrderBatchStore  # noqa: E402
from app.services.order_batches.deletion import BulkDeletionOrchestrator  # noqa: E402
from app.services.order_batches.product_cache import ProductResolutionCache  # noqa: E402
from app.services.order_configuration_store import OrderConfigurationStore  # noqa: E402
from app.services.remote_orders.types import ProductInfo  # noqa: E402
from tests.helpers.fake_remote import FakeRemoteOrderService  # noqa: E402

KIBBLE = ProductInfo(variant_id=111, product_id=11, title="Kibble 4lb", price="12.50", sku="KIBBLE-4LB")
TREATS = ProductInfo(variant_id=222, product_id=22, title="Treat Pack", price="8.00", sku="TREATS-6")


# =========================================
# 每用例独立的内存库（StaticPool：所有会话共用同一连接）
# =========================================
@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(async_engine)


@pytest.fixture
def batch_store(session_factory) -> OrderBatchStore:
    return OrderBatchStore(session_factory)


@pytest.fixture
def configuration_store(session_factory) -> OrderConfigurationStore:
    return OrderConfigurationStore(session_factory)


@pytest.fixture
def fake_remote() -> FakeRemoteOrderService:
    return FakeRemoteOrderService(products={KIBBLE.sku: KIBBLE, TREATS.sku: TREATS})


@pytest.fixture
def product_cache(fake_remote) -> ProductResolutionCache:
    return ProductResolutionCache(fake_remote)


@pytest.fixture
def make_config() -> Callable[..., InlineOrderConfiguration]:
    def _make(**overrides: Any) -> InlineOrderConfiguration:
        data: Dict[str, Any] = {
            "name": "OM BBH kibble",
            "warehouse": "om-bbh",
            "address": "us-columbus",
            "line_items": [{"productId": KIBBLE.sku, "quantity": 2}],
            "custom_tags": ["contains_kibble"],
            "customer_first_name": "Test",
            "customer_last_name": "Buyer",
            "customer_email": "qa@example.com",
            "order_count": 1,
            "order_delay": 0,
        }
        data.update(overrides)
        return InlineOrderConfiguration.model_validate(data)

    return _make


# =========================================
# HTTP 客户端：ASGITransport + dependency_overrides
# =========================================
@pytest_asyncio.fixture
async def client(session_factory, fake_remote, product_cache) -> AsyncGenerator[httpx.AsyncClient, None]:
    def _deleter() -> BulkDeletionOrchestrator:
        return BulkDeletionOrchestrator(OrderBatchStore(session_factory), fake_remote, wave_delay=0)

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_remote_service] = lambda: fake_remote
    app.dependency_overrides[get_product_cache] = lambda: product_cache
    app.dependency_overrides[get_deletion_orchestrator] = _deleter

    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()

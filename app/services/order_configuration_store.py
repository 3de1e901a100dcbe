# app/services/order_configuration_store.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.order_configuration import OrderConfiguration
from app.schemas.order_configuration import OrderConfigurationBase
from app.services.order_batch_store import OrderBatchStore

log = logging.getLogger("qaorders.store")


class ConfigurationNotFound(Exception):
    def __init__(self, configuration_id: int):
        self.configuration_id = configuration_id
        super().__init__(f"Configuration {configuration_id} not found")


class DuplicateConfigurationName(Exception):
    def __init__(self, name: str):
        self.name = name
        super().__init__("A template with this name already exists. Please choose a different name.")


def _columns(data: OrderConfigurationBase) -> Dict[str, Any]:
    return {
        "name": data.name,
        "warehouse": data.warehouse,
        "address": data.address,
        "line_items": data.line_items_json(),
        "subscription_type": data.subscription_type,
        "customer_segment": data.customer_segment,
        "custom_tags": list(data.custom_tags),
        "address_template": data.address_template,
        "state_province": data.state_province,
        "customer_first_name": data.customer_first_name,
        "customer_last_name": data.customer_last_name,
        "customer_email": str(data.customer_email),
        "order_count": data.order_count,
        "order_delay": data.order_delay,
        "randomize_data": data.randomize_data,
    }


class OrderConfigurationStore:
    """
    模板 CRUD：
      - 名称大小写不敏感唯一
      - 删除前先把引用它的批次解绑（configuration_id=NULL），批次本身保留
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sf = session_factory

    async def _ensure_name_free(self, session: AsyncSession, name: str, *, exclude_id: Optional[int] = None) -> None:
        stmt = sa.select(OrderConfiguration.id).where(sa.func.lower(OrderConfiguration.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(OrderConfiguration.id != int(exclude_id))
        if (await session.execute(stmt.limit(1))).first() is not None:
            raise DuplicateConfigurationName(name)

    async def create(self, data: OrderConfigurationBase) -> OrderConfiguration:
        async with self._sf() as session:
            await self._ensure_name_free(session, data.name)
            row = OrderConfiguration(**_columns(data))
            session.add(row)
            await session.commit()
            await session.refresh(row)
        log.info("configuration created id=%s name=%r", row.id, row.name)
        return row

    async def get(self, configuration_id: int) -> Optional[OrderConfiguration]:
        async with self._sf() as session:
            return await session.get(OrderConfiguration, int(configuration_id))

    async def list_configurations(self) -> List[OrderConfiguration]:
        async with self._sf() as session:
            stmt = sa.select(OrderConfiguration).order_by(
                OrderConfiguration.created_at.desc(), OrderConfiguration.id.desc()
            )
            return list((await session.execute(stmt)).scalars().all())

    async def update(self, configuration_id: int, data: OrderConfigurationBase) -> OrderConfiguration:
        async with self._sf() as session:
            row = await session.get(OrderConfiguration, int(configuration_id))
            if row is None:
                raise ConfigurationNotFound(configuration_id)
            await self._ensure_name_free(session, data.name, exclude_id=row.id)
            for key, value in _columns(data).items():
                setattr(row, key, value)
            await session.commit()
            await session.refresh(row)
        return row

    async def delete(self, configuration_id: int) -> int:
        """删除模板，返回被解绑的批次数。"""
        async with self._sf() as session:
            row = await session.get(OrderConfiguration, int(configuration_id))
            if row is None:
                raise ConfigurationNotFound(configuration_id)
            unlinked = await OrderBatchStore(self._sf).unlink_configuration(row.id, session=session)
            await session.delete(row)
            await session.commit()
        log.info("configuration %s deleted (unlinked %d batches)", configuration_id, unlinked)
        return unlinked

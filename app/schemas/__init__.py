# app/schemas/__init__.py
"""
Schemas package

本包保持“安静”：不做聚合导出，使用时显式从具体模块导入，例如：
    from app.schemas.order_configuration import OrderConfigurationCreate
    from app.schemas.order_batch import CreateOrdersIn, OrderBatchOut
"""

__all__: list[str] = []

# app/api/routers/order_configurations_routes.py
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Path, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.api.deps import get_configuration_store
from app.api.problem import raise_404, raise_409
from app.schemas.order_configuration import (
    ConfigurationFieldError,
    DeleteConfigurationOut,
    OrderConfigurationCreate,
    OrderConfigurationOut,
    OrderConfigurationUpdate,
    ValidateConfigurationOut,
)
from app.services.order_configuration_store import (
    ConfigurationNotFound,
    DuplicateConfigurationName,
    OrderConfigurationStore,
)


def _duplicate(exc: DuplicateConfigurationName) -> None:
    raise_409(
        "configuration_name_taken",
        str(exc),
        details=[{"type": "conflict", "path": "name", "reason": f"name {exc.name!r} already exists"}],
    )


def register(router: APIRouter) -> None:
    @router.get("/configurations", response_model=List[OrderConfigurationOut])
    async def list_configurations(
        store: OrderConfigurationStore = Depends(get_configuration_store),
    ) -> List[OrderConfigurationOut]:
        """模板列表（新建在前）。"""
        rows = await store.list_configurations()
        return [OrderConfigurationOut.model_validate(r) for r in rows]

    @router.post(
        "/configurations",
        response_model=OrderConfigurationOut,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_configuration(
        payload: OrderConfigurationCreate,
        store: OrderConfigurationStore = Depends(get_configuration_store),
    ) -> OrderConfigurationOut:
        try:
            row = await store.create(payload)
        except DuplicateConfigurationName as exc:
            _duplicate(exc)
        return OrderConfigurationOut.model_validate(row)

    @router.get("/configurations/{configuration_id}", response_model=OrderConfigurationOut)
    async def get_configuration(
        configuration_id: int = Path(..., ge=1),
        store: OrderConfigurationStore = Depends(get_configuration_store),
    ) -> OrderConfigurationOut:
        row = await store.get(configuration_id)
        if row is None:
            raise_404("configuration_not_found", "Configuration not found", context={"id": configuration_id})
        return OrderConfigurationOut.model_validate(row)

    @router.put("/configurations/{configuration_id}", response_model=OrderConfigurationOut)
    async def update_configuration(
        payload: OrderConfigurationUpdate,
        configuration_id: int = Path(..., ge=1),
        store: OrderConfigurationStore = Depends(get_configuration_store),
    ) -> OrderConfigurationOut:
        try:
            row = await store.update(configuration_id, payload)
        except ConfigurationNotFound:
            raise_404("configuration_not_found", "Configuration not found", context={"id": configuration_id})
        except DuplicateConfigurationName as exc:
            _duplicate(exc)
        return OrderConfigurationOut.model_validate(row)

    @router.delete("/configurations/{configuration_id}", response_model=DeleteConfigurationOut)
    async def delete_configuration(
        configuration_id: int = Path(..., ge=1),
        store: OrderConfigurationStore = Depends(get_configuration_store),
    ) -> DeleteConfigurationOut:
        """
        删除模板：引用它的批次先解绑（configuration_id 置空），批次保留。
        """
        try:
            unlinked = await store.delete(configuration_id)
        except ConfigurationNotFound:
            raise_404("configuration_not_found", "Configuration not found", context={"id": configuration_id})
        return DeleteConfigurationOut(unlinked_batches=unlinked)

    @router.post("/validate-configuration", response_model=ValidateConfigurationOut)
    async def validate_configuration(body: Dict[str, Any] = Body(...)):
        """
        只校验不落库：合法 → 200 {valid: true}；不合法 → 400 {valid: false, errors: [{field, message}]}。
        """
        try:
            cfg = OrderConfigurationCreate.model_validate(body)
        except ValidationError as exc:
            errors = [
                ConfigurationFieldError(field=".".join(str(p) for p in e["loc"]), message=e["msg"])
                for e in exc.errors()
            ]
            out = ValidateConfigurationOut(valid=False, errors=errors)
            return JSONResponse(status_code=400, content=out.model_dump(mode="json"))
        return ValidateConfigurationOut(valid=True, configuration=cfg)

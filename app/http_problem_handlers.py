# app/http_problem_handlers.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.problem import make_problem

logger = logging.getLogger("qaorders")


def _trace_id() -> str:
    return f"t_{uuid.uuid4().hex[:12]}"


def _request_context(req: Request) -> Dict[str, Any]:
    return {"path": req.url.path, "method": req.method}


def _respond(body: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=int(body["http_status"]), content=body)


def validation_details(errors: List[Any]) -> List[Dict[str, Any]]:
    """pydantic errors() → Problem details（path 用点号拼接，body 前缀去掉）。"""
    details: List[Dict[str, Any]] = []
    for e in errors:
        if not isinstance(e, dict):
            continue
        loc = [str(p) for p in (e.get("loc") or ()) if p != "body"]
        details.append(
            {
                "type": "validation",
                "path": ".".join(loc),
                "reason": str(e.get("msg") or e.get("type") or "invalid"),
            }
        )
    return details


def problem_from_http_exception(req: Request, exc: HTTPException) -> Dict[str, Any]:
    """
    路由用 raise_4xx 抛出的 detail 已经是 Problem：补 trace_id，context 与请求上下文合并。
    其它 HTTPException（框架自己抛的 404/405 等）包成 http_error。
    """
    ctx = _request_context(req)
    d = exc.detail
    if isinstance(d, dict) and {"error_code", "message"} <= d.keys():
        body = dict(d)
        body.setdefault("http_status", int(exc.status_code))
        body.setdefault("trace_id", _trace_id())
        body["context"] = {**ctx, **(body.get("context") or {})}
        return body

    msg = str(d) if d is not None else "Request rejected"
    return make_problem(
        status_code=int(exc.status_code),
        error_code="http_error",
        message=msg,
        context=ctx,
        details=[{"type": "state", "reason": msg}],
        trace_id=_trace_id(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _on_validation_error(req: Request, exc: RequestValidationError):
        return _respond(
            make_problem(
                status_code=422,
                error_code="request_validation_error",
                message="Request validation failed",
                context=_request_context(req),
                details=validation_details(exc.errors()),
                trace_id=_trace_id(),
            )
        )

    @app.exception_handler(HTTPException)
    async def _on_http_exception(req: Request, exc: HTTPException):
        return _respond(problem_from_http_exception(req, exc))

    @app.exception_handler(Exception)
    async def _on_unhandled(req: Request, exc: Exception):
        trace_id = _trace_id()
        logger.exception("unhandled error [%s] on %s %s: %s", trace_id, req.method, req.url.path, exc)
        return _respond(
            make_problem(
                status_code=500,
                error_code="internal_error",
                message="Internal error, please retry later",
                context=_request_context(req),
                trace_id=trace_id,
            )
        )

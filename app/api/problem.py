# app/api/problem.py
"""
统一错误体（Problem）：

    {"error_code": "batch_not_found", "message": "...", "http_status": 404,
     "context": {...}, "details": [...], "trace_id": "t_..."}

路由里只管 raise_4xx / raise_5xx，最终形状由 http_problem_handlers 补齐 trace_id / 请求上下文。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, NoReturn, Optional, Sequence, TypedDict

from fastapi import HTTPException


class ProblemDetail(TypedDict, total=False):
    type: str  # validation / state / remote / conflict
    path: str  # 出错字段，例如 line_items.0.quantity
    reason: str
    remote_status: int  # 远端返回的 HTTP 状态（type=remote）


@dataclass(frozen=True)
class Problem:
    error_code: str
    message: str
    http_status: int
    context: Optional[Dict[str, Any]] = None
    details: Optional[List[ProblemDetail]] = None
    trace_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "error_code": self.error_code,
            "message": self.message,
            "http_status": self.http_status,
        }
        for key in ("context", "details", "trace_id"):
            value = getattr(self, key)
            if value:
                body[key] = value
        return body


def make_problem(
    *,
    status_code: int,
    error_code: str,
    message: str,
    context: Optional[Dict[str, Any]] = None,
    details: Optional[Sequence[ProblemDetail]] = None,
    trace_id: Optional[str] = None,
) -> Dict[str, Any]:
    return Problem(
        error_code=str(error_code),
        message=str(message),
        http_status=int(status_code),
        context=context,
        details=list(details) if details else None,
        trace_id=trace_id,
    ).to_dict()


def raise_problem(status_code: int, error_code: str, message: str, **extra: Any) -> NoReturn:
    """extra: context / details，原样进 Problem。"""
    raise HTTPException(
        status_code=int(status_code),
        detail=make_problem(status_code=status_code, error_code=error_code, message=message, **extra),
    )


def raise_400(error_code: str, message: str, **extra: Any) -> NoReturn:
    raise_problem(400, error_code, message, **extra)


def raise_404(error_code: str, message: str, **extra: Any) -> NoReturn:
    raise_problem(404, error_code, message, **extra)


def raise_409(error_code: str, message: str, **extra: Any) -> NoReturn:
    raise_problem(409, error_code, message, **extra)


def raise_500(error_code: str, message: str, **extra: Any) -> NoReturn:
    raise_problem(500, error_code, message, **extra)


def raise_502(error_code: str, message: str, **extra: Any) -> NoReturn:
    # 远端店铺接口失败
    raise_problem(502, error_code, message, **extra)

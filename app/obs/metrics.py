# app/obs/metrics.py
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

http_requests_total = Counter("http_requests_total", "HTTP requests", ["method", "path", "code"])
http_request_duration = Histogram(
    "http_request_duration_seconds", "HTTP request duration seconds", ["method", "path"]
)

# 造单吞吐（Grafana 用 rate() 看速度）
qa_orders_created_total = Counter("qa_orders_created_total", "Remote orders created")
qa_orders_failed_total = Counter("qa_orders_failed_total", "Remote order creations failed")

# SKU 解析：hit / lookup / miss / error / fallback
qa_product_lookups_total = Counter("qa_product_lookups_total", "Product resolution events", ["result"])

# 批次终态分布
qa_batches_finalized_total = Counter("qa_batches_finalized_total", "Batches finalized", ["status"])

# 远端删除：ok / failed
qa_remote_deletions_total = Counter("qa_remote_deletions_total", "Remote order deletions", ["outcome"])


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        route = request.scope.get("route")
        path = getattr(route, "path", None) or request.url.path
        http_requests_total.labels(request.method, path, str(response.status_code)).inc()
        http_request_duration.labels(request.method, path).observe(elapsed)
        return response

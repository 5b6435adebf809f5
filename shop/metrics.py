"""
Prometheus metrics for the shop service.

Tracks HTTP traffic, statements per order query strategy, and order
lifecycle operations.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "shop_http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "shop_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0),
)

# Order query metrics
order_query_statements_total = Counter(
    "shop_order_query_statements_total",
    "SQL statements issued by order listing strategies",
    ["strategy", "shape"],
)

order_query_duration_seconds = Histogram(
    "shop_order_query_duration_seconds",
    "Order listing duration in seconds",
    ["strategy", "shape"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

# Order lifecycle metrics
order_operations_total = Counter(
    "shop_order_operations_total", "Total order operations", ["operation", "status"]
)


def track_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Track HTTP request metrics."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def track_order_query(strategy: str, shape: str, statements: int, duration: float):
    """Track statements and time spent by one order listing."""
    order_query_statements_total.labels(strategy=strategy, shape=shape).inc(statements)
    order_query_duration_seconds.labels(strategy=strategy, shape=shape).observe(duration)


def track_order_operation(operation: str, success: bool):
    """Track order placement and cancellation."""
    status = "success" if success else "failure"
    order_operations_total.labels(operation=operation, status=status).inc()


async def metrics_endpoint() -> Response:
    """Expose metrics in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

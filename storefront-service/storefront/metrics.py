import time

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_COUNT = Counter(
    "http_requests_total",
    "HTTP requests",
    ["service", "method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["service", "method", "path"],
)

ORDERS_CREATED = Counter(
    "orders_created_total",
    "Order placement attempts by outcome",
    ["outcome"],
)
PAYMENT_VERIFICATIONS = Counter(
    "payment_verifications_total",
    "Payment verification calls",
    ["status", "applied"],
)
CART_MUTATIONS = Counter(
    "cart_mutations_total",
    "Cart add/remove calls",
    ["operation"],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, service_name: str):
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        # route template, so /v1/orders/7 and /v1/orders/8 share a series
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        REQUEST_COUNT.labels(self.service_name, request.method, path, response.status_code).inc()
        REQUEST_LATENCY.labels(self.service_name, request.method, path).observe(
            time.perf_counter() - start
        )
        return response


def metrics_endpoint():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

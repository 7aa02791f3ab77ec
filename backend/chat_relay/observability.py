import time
import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter

logger = structlog.get_logger()

REQ_COUNTER = Counter("http_requests_total", "Total HTTP Requests", ["method", "path", "status"])
REQ_LATENCY = Histogram("http_request_latency_seconds", "Request latency", ["method", "path"])

RELAY_STREAMS = Counter(
    "relay_streams_total", "Relayed chat streams by outcome", ["provider", "outcome"]
)
RELAY_COST = Counter(
    "relay_cost_usd_total", "Upstream cost reported in usage events", ["provider", "model"]
)

class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            # for streams this is time-to-headers, not time-to-[DONE]
            latency = time.perf_counter() - start
            route = request.scope.get("route")
            path = getattr(route, "path", request.url.path)
            REQ_COUNTER.labels(request.method, path, status).inc()
            REQ_LATENCY.labels(request.method, path).observe(latency)

metrics_router = APIRouter()

@metrics_router.get("/metrics", include_in_schema=False)
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

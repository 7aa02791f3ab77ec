import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from chat_relay.api.main import api_router
from chat_relay.api.responses import method_not_allowed
from chat_relay.core.config import settings
from chat_relay.core.logging import setup_logging
from chat_relay.middleware.request_id import RequestIdMiddleware
from chat_relay.observability import MetricsMiddleware, metrics_router


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}" if route.tags else route.name


setup_logging()

if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    generate_unique_id_function=custom_generate_unique_id,
)


@app.exception_handler(StarletteHTTPException)
async def relay_http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Routing 405s use the same {"error": ...} body as the handlers.
    if exc.status_code == 405:
        return method_not_allowed()
    return await http_exception_handler(request, exc)


app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIdMiddleware)

# Set all CORS enabled origins
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(metrics_router)

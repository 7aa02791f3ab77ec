from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
import structlog

from chat_relay.api.deps import RelayDep
from chat_relay.api.responses import NON_POST_METHODS, error_response, method_not_allowed
from chat_relay.core.errors import RelayError

router = APIRouter(tags=["chat"])
logger = structlog.get_logger()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}

@router.post("/chat")
async def chat(request: Request, relay: RelayDep):
    """
    Relay a conversation to an upstream model and stream the reply as SSE.

    Failures before the first frame come back as ``{"error": ...}`` JSON;
    failures after it arrive as an ``error`` event followed by ``[DONE]``.
    """
    request_id = getattr(request.state, "request_id", None)
    try:
        chat_request = relay.parse(await request.body())
        stream = await relay.open(chat_request, request_id=request_id)
    except RelayError as e:
        logger.warning("chat_rejected", error=e.message, status=e.status_code)
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.exception("chat_failed")
        return error_response(str(e) or type(e).__name__, 500)

    return StreamingResponse(
        stream,
        media_type="text/event-stream",
        headers=SSE_HEADERS,
        background=BackgroundTask(stream.report_usage),
    )

@router.api_route("/chat", methods=NON_POST_METHODS, include_in_schema=False)
async def chat_method_not_allowed():
    return method_not_allowed()

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
import pydantic
import structlog

from chat_relay.api.deps import McqServiceDep
from chat_relay.api.responses import NON_POST_METHODS, error_response, method_not_allowed
from chat_relay.core.errors import RelayError
from chat_relay.schemas import McqRequest

router = APIRouter(tags=["mcq"])
logger = structlog.get_logger()

@router.post("/mcq")
async def mcq(request: Request, service: McqServiceDep):
    """Proxy a quiz tool call, falling back to local answers when needed."""
    try:
        payload = McqRequest.model_validate(json.loads(await request.body()))
    except (json.JSONDecodeError, UnicodeDecodeError, pydantic.ValidationError) as e:
        return error_response(f"Invalid request: {e}", 400)

    try:
        result = await service.call(payload.tool, payload.args)
    except RelayError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.exception("mcq_failed", tool=payload.tool)
        return error_response(str(e) or type(e).__name__, 500)
    return JSONResponse(content=result)

@router.api_route("/mcq", methods=NON_POST_METHODS, include_in_schema=False)
async def mcq_method_not_allowed():
    return method_not_allowed()

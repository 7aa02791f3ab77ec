"""Canonical events streamed to the browser, whatever the upstream."""
import json
from typing import Any, Dict, Literal, Union

from pydantic import BaseModel

from chat_relay.schemas import UsageRecord

DONE_FRAME = "data: [DONE]\n\n"


class TextEvent(BaseModel):
    type: Literal["text"] = "text"
    content: str
    provider: str


class UsageEvent(BaseModel):
    type: Literal["usage"] = "usage"
    usage: UsageRecord


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


class Done:
    """Terminal marker; rendered as the literal ``[DONE]`` frame."""

    def __repr__(self) -> str:
        return "DONE"


DONE = Done()

StreamEvent = Union[TextEvent, UsageEvent, ErrorEvent, Done]


def sse_format(data: Dict[str, Any]) -> str:
    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n"


def to_sse(event: StreamEvent) -> str:
    if isinstance(event, Done):
        return DONE_FRAME
    return sse_format(event.model_dump(mode="json", by_alias=True, exclude_none=True))

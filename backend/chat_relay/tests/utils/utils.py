import json
from typing import Any, AsyncIterator, Iterable, List

import httpx

from chat_relay.core.config import Settings


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the process environment and any .env file."""
    values: dict[str, Any] = {
        "ANTHROPIC_API_KEY": None,
        "OPENAI_API_KEY": None,
        "GOOGLE_API_KEY": None,
        "XAI_API_KEY": None,
        "USAGE_CALLBACK_URL": None,
        "SENTRY_DSN": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


async def aiter_chunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


async def collect(events: AsyncIterator[Any]) -> List[Any]:
    return [event async for event in events]


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks."""

    def __init__(self, chunks: Iterable[bytes]):
        self.chunks = list(chunks)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk


def streaming_transport(chunks: Iterable[bytes], status_code: int = 200, requests=None):
    """MockTransport answering every request with a chunked body."""
    body = list(chunks)

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status_code, stream=ChunkedStream(body))

    return httpx.MockTransport(handler)


def parse_sse(body: str) -> List[Any]:
    """Split an SSE body into decoded payloads; the terminator stays a string."""
    frames = []
    for frame in body.split("\n\n"):
        if not frame:
            continue
        assert frame.startswith("data: "), frame
        data = frame[len("data: "):]
        frames.append(data if data == "[DONE]" else json.loads(data))
    return frames

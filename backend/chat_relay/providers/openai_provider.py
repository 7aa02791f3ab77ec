import codecs
import json
from typing import AsyncIterator, List, Optional

import structlog

from chat_relay.core.errors import UpstreamParseError
from chat_relay.events import StreamEvent, TextEvent
from chat_relay.providers.base import HttpStreamingProvider, UpstreamRequest
from chat_relay.providers.registry import GROK, OPENAI
from chat_relay.schemas import ChatMessage

logger = structlog.get_logger()

DATA_PREFIX = "data: "
TERMINATOR = "[DONE]"


def parse_sse_data(data: str) -> Optional[str]:
    """Text delta carried by one chat-completion chunk, if any."""
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as e:
        raise UpstreamParseError(f"malformed chunk: {e}") from e
    try:
        content = parsed["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        # role-only deltas, usage-only chunks, keep-alives
        return None
    if content is not None and not isinstance(content, str):
        raise UpstreamParseError(f"non-text content: {type(content).__name__}")
    return content


class OpenAICompatibleProvider(HttpStreamingProvider):
    """Chat-completions upstreams that stream ``data: {...}`` SSE lines."""

    def _to_openai_messages(self, messages: List[ChatMessage], system: Optional[str]):
        formatted = [{"role": m.role, "content": m.content} for m in messages]
        if system:
            return [{"role": "system", "content": system}, *formatted]
        return formatted

    def _translate(self, messages, system, model) -> UpstreamRequest:
        return UpstreamRequest(
            provider=self.id,
            model=model,
            url=f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            payload={
                "model": model,
                "messages": self._to_openai_messages(messages, system),
                "max_tokens": self.max_tokens,
                "stream": True,
            },
        )

    async def normalize(
        self, source: AsyncIterator[bytes], request: UpstreamRequest
    ) -> AsyncIterator[StreamEvent]:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        async for chunk in source:
            pending += decoder.decode(chunk)
            *lines, pending = pending.split("\n")
            for line in lines:
                event = self._line_to_event(line)
                if event is not None:
                    yield event
        pending += decoder.decode(b"", final=True)
        event = self._line_to_event(pending)
        if event is not None:
            yield event

    def _line_to_event(self, line: str) -> Optional[TextEvent]:
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            return None
        data = line[len(DATA_PREFIX):]
        # the relay writes its own terminator once the upstream closes
        if data == TERMINATOR:
            return None
        try:
            content = parse_sse_data(data)
        except UpstreamParseError as e:
            logger.debug("sse_fragment_dropped", provider=self.id, error=e.message)
            return None
        if not content:
            return None
        return TextEvent(content=content, provider=self.id)


class OpenAIProvider(OpenAICompatibleProvider):
    descriptor = OPENAI


class GrokProvider(OpenAICompatibleProvider):
    descriptor = GROK

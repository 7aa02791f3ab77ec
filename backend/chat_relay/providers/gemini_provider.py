import codecs
import json
import re
from typing import Any, AsyncIterator, Optional

import structlog

from chat_relay.events import StreamEvent, TextEvent
from chat_relay.providers.base import HttpStreamingProvider, UpstreamRequest
from chat_relay.providers.registry import GEMINI

logger = structlog.get_logger()

# Greedy: from the first "[" to the last "]" currently buffered.
_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


def fragment_text(fragment: Any) -> Optional[str]:
    try:
        text = fragment["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class GeminiProvider(HttpStreamingProvider):
    """
    ``streamGenerateContent`` without ``alt=sse`` answers with one JSON array
    whose elements arrive over time, so the body is buffered until a bracketed
    array parses.
    """

    descriptor = GEMINI

    def _translate(self, messages, system, model) -> UpstreamRequest:
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages
        ]
        payload: dict = {
            "contents": contents,
            "generationConfig": {"maxOutputTokens": self.max_tokens},
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        return UpstreamRequest(
            provider=self.id,
            model=model,
            url=f"{self.base_url}/models/{model}:streamGenerateContent?key={self.api_key}",
            payload=payload,
        )

    async def normalize(
        self, source: AsyncIterator[bytes], request: UpstreamRequest
    ) -> AsyncIterator[StreamEvent]:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        async for chunk in source:
            buffer += decoder.decode(chunk)
            match = _ARRAY_RE.search(buffer)
            if match is None:
                continue
            try:
                fragments = json.loads(match.group(0))
            except json.JSONDecodeError:
                # array not complete yet
                continue
            for fragment in fragments:
                text = fragment_text(fragment)
                if text:
                    yield TextEvent(content=text, provider=self.id)
            buffer = buffer[match.end():]
        if buffer.strip():
            logger.info("gemini_trailing_fragment_dropped", size=len(buffer))

from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, Dict, List, Optional

import anthropic
from anthropic import AsyncAnthropic

from chat_relay.core.errors import UpstreamTransportError
from chat_relay.events import StreamEvent, TextEvent, UsageEvent
from chat_relay.providers.base import DEFAULT_MAX_TOKENS, Provider, UpstreamRequest
from chat_relay.providers.registry import CLAUDE
from chat_relay.schemas import ChatMessage
from chat_relay.services.cost import build_usage_record

EPHEMERAL = {"type": "ephemeral"}
DEFAULT_BASE_URL = "https://api.anthropic.com"


class ClaudeProvider(Provider):
    """Anthropic Messages API through the SDK's typed event stream."""

    descriptor = CLAUDE

    def __init__(
        self,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Optional[AsyncAnthropic] = None,
    ):
        super().__init__(api_key, max_tokens=max_tokens)
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._client = client

    def _to_claude_messages(self, messages: List[ChatMessage]) -> List[Dict[str, Any]]:
        formatted: List[Dict[str, Any]] = [
            {"role": m.role, "content": m.content} for m in messages
        ]
        # Cache the conversation prefix: everything up to the second-to-last turn.
        if len(formatted) >= 2:
            target = formatted[-2]
            target["content"] = [
                {"type": "text", "text": target["content"], "cache_control": EPHEMERAL}
            ]
        return formatted

    def _translate(self, messages, system, model) -> UpstreamRequest:
        payload: Dict[str, Any] = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": self._to_claude_messages(messages),
        }
        if system:
            payload["system"] = [
                {"type": "text", "text": system, "cache_control": EPHEMERAL}
            ]
        return UpstreamRequest(
            provider=self.id,
            model=model,
            payload=payload,
        )

    async def _get_client(self, stack: AsyncExitStack) -> AsyncAnthropic:
        if self._client is not None:
            return self._client
        client = AsyncAnthropic(
            api_key=self.api_key,
            base_url=self.base_url,
            max_retries=0,
        )
        return await stack.enter_async_context(client)

    async def dispatch(self, request: UpstreamRequest, stack: AsyncExitStack) -> Any:
        client = await self._get_client(stack)
        try:
            return await stack.enter_async_context(
                client.messages.stream(**request.payload)
            )
        except anthropic.APIStatusError as e:
            raise UpstreamTransportError(
                f"{self.id} API error ({e.status_code}): {e.message}",
                upstream_status=e.status_code,
            ) from e
        except anthropic.APIError as e:
            raise UpstreamTransportError(f"{self.id} request failed: {e}") from e

    async def normalize(self, source: Any, request: UpstreamRequest) -> AsyncIterator[StreamEvent]:
        async for event in source:
            if event.type == "content_block_delta" and event.delta.type == "text_delta":
                if event.delta.text:
                    yield TextEvent(content=event.delta.text, provider=self.id)

        final_message = await source.get_final_message()
        usage = getattr(final_message, "usage", None)
        if usage is None:
            return
        record = build_usage_record(
            self.descriptor,
            getattr(final_message, "model", None) or request.model,
            input_tokens=usage.input_tokens or 0,
            output_tokens=usage.output_tokens or 0,
            cache_creation_tokens=getattr(usage, "cache_creation_input_tokens", None),
            cache_read_tokens=getattr(usage, "cache_read_input_tokens", None),
        )
        yield UsageEvent(usage=record)

"""Chat relay orchestration: one inbound request, one upstream stream."""
import json
from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, Optional

import pydantic
import structlog

from chat_relay.core.config import Settings
from chat_relay.core.errors import ValidationError
from chat_relay.events import ErrorEvent, UsageEvent, to_sse
from chat_relay.observability import RELAY_COST, RELAY_STREAMS
from chat_relay.providers.base import Provider, UpstreamRequest
from chat_relay.providers.selector import select_provider
from chat_relay.schemas import ChatRequest, UsageRecord
from chat_relay.services.router import ProviderFactory, check_provider, resolve_provider
from chat_relay.utils.usage_callback import send_usage

logger = structlog.get_logger()


class ChatRelay:
    """
    Runs a chat request through selection, credential check, translation and
    dispatch, then hands back the normalized SSE frames.

    Everything that can fail before the first frame raises from ``open``, so
    the caller can still answer with a plain JSON error. Once streaming, all
    failures are folded into the stream itself.
    """

    def __init__(
        self,
        settings: Settings,
        provider_factory: ProviderFactory = resolve_provider,
    ):
        self.settings = settings
        self.provider_factory = provider_factory

    def parse(self, body: bytes) -> ChatRequest:
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(f"Invalid JSON body: {e}") from e
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            return ChatRequest.from_payload(payload)
        except pydantic.ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(f"Invalid request: {errors}") from e

    def resolve(self, chat_request: ChatRequest) -> Provider:
        provider_id = select_provider(chat_request.provider, self.settings.credentials)
        check_provider(provider_id, self.settings)
        return self.provider_factory(provider_id, self.settings)

    async def open(
        self, chat_request: ChatRequest, request_id: Optional[str] = None
    ) -> "RelayStream":
        provider = self.resolve(chat_request)
        upstream = provider.translate(
            chat_request.messages, chat_request.system, chat_request.model
        )
        logger.info(
            "relay_dispatch",
            provider=provider.id,
            model=upstream.model,
            messages=len(chat_request.messages),
        )
        stack = AsyncExitStack()
        try:
            source = await provider.dispatch(upstream, stack)
        except BaseException:
            await stack.aclose()
            raise
        return RelayStream(provider, upstream, source, stack, request_id, self.settings)


class RelayStream:
    """
    SSE frames for one dispatched request. Iterating drives the upstream;
    ``report_usage`` runs once the response is finished and sends the usage
    callback only when the stream was read to the end.
    """

    def __init__(
        self,
        provider: Provider,
        upstream: UpstreamRequest,
        source: Any,
        stack: AsyncExitStack,
        request_id: Optional[str],
        settings: Settings,
    ):
        self.provider = provider
        self.upstream = upstream
        self.source = source
        self.stack = stack
        self.request_id = request_id
        self.settings = settings
        self.usage: Optional[UsageRecord] = None
        self.completed = False

    def __aiter__(self) -> AsyncIterator[str]:
        return self._frames()

    async def _frames(self) -> AsyncIterator[str]:
        outcome = "cancelled"
        errored = False
        try:
            async with self.stack:
                async for event in self.provider.events(self.source, self.upstream):
                    if isinstance(event, UsageEvent):
                        self.usage = event.usage
                    elif isinstance(event, ErrorEvent):
                        errored = True
                    yield to_sse(event)
            outcome = "error" if errored else "ok"
            self.completed = True
        finally:
            RELAY_STREAMS.labels(self.provider.id, outcome).inc()

    async def report_usage(self) -> None:
        if not self.completed:
            return
        usage = self.usage
        if usage is not None:
            RELAY_COST.labels(self.provider.id, usage.model).inc(float(usage.cost.total))
        await send_usage(
            {
                "request_id": self.request_id,
                "provider": self.provider.id,
                "model": usage.model if usage else self.upstream.model,
                "usage": usage.model_dump(by_alias=True) if usage else None,
            },
            settings=self.settings,
        )

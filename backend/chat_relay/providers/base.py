from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import httpx
import structlog

from chat_relay.core.errors import UpstreamTransportError, ValidationError
from chat_relay.events import DONE, ErrorEvent, StreamEvent
from chat_relay.providers.registry import ProviderDescriptor
from chat_relay.schemas import ChatMessage

logger = structlog.get_logger()

DEFAULT_MAX_TOKENS = 8192


@dataclass(frozen=True)
class UpstreamRequest:
    """
    A fully translated upstream call. Built once per chat request.

    ``url`` and ``headers`` are only set for raw HTTP upstreams; SDK-driven
    providers send ``payload`` through their client and leave them empty.
    """

    provider: str
    model: str
    payload: Dict[str, Any]
    url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


class Provider(ABC):
    """
    One upstream variant: request translation plus stream normalization.

    ``dispatch`` opens the upstream call and returns the raw source (bytes or
    SDK events); every resource it opens is registered on the exit stack the
    caller owns, so the connection lives exactly as long as the response.
    """

    descriptor: ProviderDescriptor

    def __init__(self, api_key: str, *, max_tokens: int = DEFAULT_MAX_TOKENS):
        self.api_key = api_key
        self.max_tokens = max_tokens

    @property
    def id(self) -> str:
        return self.descriptor.id

    def resolve_model(self, model_override: Optional[str]) -> str:
        model = model_override or self.descriptor.default_model
        if not model:
            raise ValidationError(f"No model configured for {self.id}")
        return model

    def translate(
        self,
        messages: Sequence[ChatMessage],
        system: Optional[str] = None,
        model_override: Optional[str] = None,
    ) -> UpstreamRequest:
        if not messages:
            raise ValidationError("messages must not be empty")
        return self._translate(list(messages), system, self.resolve_model(model_override))

    @abstractmethod
    def _translate(
        self, messages: List[ChatMessage], system: Optional[str], model: str
    ) -> UpstreamRequest:
        raise NotImplementedError

    @abstractmethod
    async def dispatch(self, request: UpstreamRequest, stack: AsyncExitStack) -> Any:
        raise NotImplementedError

    @abstractmethod
    def normalize(self, source: Any, request: UpstreamRequest) -> AsyncIterator[StreamEvent]:
        raise NotImplementedError

    async def events(self, source: Any, request: UpstreamRequest) -> AsyncIterator[StreamEvent]:
        """Normalized events, always terminated by exactly one DONE."""
        try:
            async for event in self.normalize(source, request):
                yield event
        except Exception as e:
            logger.warning("upstream_stream_failed", provider=self.id, error=str(e))
            yield ErrorEvent(error=str(e) or type(e).__name__)
        yield DONE


class HttpStreamingProvider(Provider):
    """Provider reached with a plain streaming POST; the source is raw bytes."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        connect_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(api_key, max_tokens=max_tokens)
        self.base_url = base_url.rstrip("/")
        self.connect_timeout = connect_timeout
        self.transport = transport

    def _build_client(self) -> httpx.AsyncClient:
        # no read deadline: the hosting environment owns the request lifetime
        timeout = httpx.Timeout(None, connect=self.connect_timeout)
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    async def dispatch(self, request: UpstreamRequest, stack: AsyncExitStack) -> AsyncIterator[bytes]:
        client = await stack.enter_async_context(self._build_client())
        try:
            response = await stack.enter_async_context(
                client.stream(
                    "POST",
                    request.url,
                    headers={"Content-Type": "application/json", **request.headers},
                    json=request.payload,
                )
            )
        except httpx.HTTPError as e:
            raise UpstreamTransportError(f"{self.id} request failed: {e}") from e
        if response.is_error:
            body = (await response.aread()).decode("utf-8", errors="replace")
            logger.error(
                "upstream_error_status",
                provider=self.id,
                status=response.status_code,
                body=body[:500],
            )
            raise UpstreamTransportError(
                f"{self.id} API error ({response.status_code}): {body[:200]}",
                upstream_status=response.status_code,
            )
        return response.aiter_bytes()

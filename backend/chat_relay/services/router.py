from typing import Callable, Dict, Type

from chat_relay.core.config import Settings
from chat_relay.core.errors import ConfigurationError, UnknownProviderError
from chat_relay.providers.base import Provider
from chat_relay.providers.claude_provider import ClaudeProvider
from chat_relay.providers.gemini_provider import GeminiProvider
from chat_relay.providers.openai_provider import GrokProvider, OpenAIProvider

ProviderFactory = Callable[[str, Settings], Provider]

PROVIDER_CLASSES: Dict[str, Type[Provider]] = {
    "claude": ClaudeProvider,
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
    "grok": GrokProvider,
}

_BASE_URL_SETTINGS = {
    "openai": "OPENAI_BASE_URL",
    "gemini": "GEMINI_BASE_URL",
    "grok": "XAI_BASE_URL",
}


def check_provider(provider_id: str, settings: Settings) -> str:
    """
    Ensure the provider exists and has a credential; return the API key.
    """
    if provider_id not in PROVIDER_CLASSES:
        raise UnknownProviderError(provider_id)
    api_key = settings.api_key_for(provider_id)
    if not api_key:
        raise ConfigurationError(f"{provider_id} API key not configured")
    return api_key


def resolve_provider(provider_id: str, settings: Settings) -> Provider:
    """
    Build the provider variant for a provider id that already passed
    ``check_provider``.
    """
    api_key = settings.api_key_for(provider_id)
    if provider_id == "claude":
        return ClaudeProvider(
            api_key,
            base_url=settings.ANTHROPIC_BASE_URL,
            max_tokens=settings.MAX_OUTPUT_TOKENS,
        )
    cls = PROVIDER_CLASSES[provider_id]
    return cls(
        api_key,
        base_url=getattr(settings, _BASE_URL_SETTINGS[provider_id]),
        max_tokens=settings.MAX_OUTPUT_TOKENS,
        connect_timeout=settings.UPSTREAM_CONNECT_TIMEOUT_SECONDS,
    )

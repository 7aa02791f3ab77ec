"""Static catalog of the upstream providers the relay can talk to."""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class ModelPricing:
    """USD per million tokens."""

    input: float
    output: float
    cache_write: Optional[float] = None
    cache_read: Optional[float] = None


@dataclass(frozen=True)
class ProviderDescriptor:
    id: str
    label: str
    default_model: str
    fast_model: str
    credential_env_key: str
    pricing: Mapping[str, ModelPricing] = field(default_factory=dict)

    def pricing_for(self, model: Optional[str]) -> Optional[ModelPricing]:
        """Pricing row for ``model``, falling back to the default model's row."""
        if model and model in self.pricing:
            return self.pricing[model]
        return self.pricing.get(self.default_model)


CLAUDE = ProviderDescriptor(
    id="claude",
    label="Claude",
    default_model="claude-sonnet-4-5-20250929",
    fast_model="claude-haiku-4-5-20251001",
    credential_env_key="ANTHROPIC_API_KEY",
    pricing=MappingProxyType({
        "claude-sonnet-4-5-20250929": ModelPricing(
            input=3.00, output=15.00, cache_write=3.75, cache_read=0.30
        ),
        "claude-haiku-4-5-20251001": ModelPricing(
            input=1.00, output=5.00, cache_write=1.25, cache_read=0.10
        ),
        "claude-opus-4-1-20250805": ModelPricing(
            input=15.00, output=75.00, cache_write=18.75, cache_read=1.50
        ),
    }),
)

OPENAI = ProviderDescriptor(
    id="openai",
    label="OpenAI",
    default_model="gpt-4o",
    fast_model="gpt-4o-mini",
    credential_env_key="OPENAI_API_KEY",
)

GEMINI = ProviderDescriptor(
    id="gemini",
    label="Gemini",
    default_model="gemini-1.5-pro",
    fast_model="gemini-1.5-flash",
    credential_env_key="GOOGLE_API_KEY",
)

GROK = ProviderDescriptor(
    id="grok",
    label="Grok",
    default_model="grok-beta",
    fast_model="grok-beta",
    credential_env_key="XAI_API_KEY",
)

# Insertion order is the "auto" selection priority.
PROVIDERS: Mapping[str, ProviderDescriptor] = MappingProxyType(
    {p.id: p for p in (CLAUDE, OPENAI, GEMINI, GROK)}
)


def get_descriptor(provider_id: str) -> Optional[ProviderDescriptor]:
    return PROVIDERS.get(provider_id)

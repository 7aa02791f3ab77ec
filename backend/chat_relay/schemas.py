from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Inbound

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1)
    system: Optional[str] = None
    # free-form so an unknown id surfaces as "Unknown provider", not a 400 schema dump
    provider: str = "auto"
    model: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "ChatRequest":
        # the browser sends provider: null when nothing is picked
        if payload.get("provider") is None:
            payload = {**payload, "provider": "auto"}
        return cls.model_validate(payload)

# Usage accounting (camelCase on the wire)

class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class CostBreakdown(_Wire):
    input: str
    output: str
    cache_write: str
    cache_read: str
    total: str
    savings: str

class UsageRecord(_Wire):
    input_tokens: int
    output_tokens: int
    cache_creation_tokens: Optional[int] = None
    cache_read_tokens: Optional[int] = None
    model: str
    cost: CostBreakdown

# MCQ proxy

class McqRequest(BaseModel):
    tool: str
    args: dict = Field(default_factory=dict)

# Provider catalog

class ProviderInfo(BaseModel):
    id: str
    label: str
    default_model: str
    fast_model: str
    configured: bool

class ProvidersResponse(BaseModel):
    auto: str
    providers: List[ProviderInfo]

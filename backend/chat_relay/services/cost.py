"""Token cost accounting for providers that report usage."""
from decimal import Decimal
from typing import Optional

from chat_relay.providers.registry import ModelPricing, ProviderDescriptor
from chat_relay.schemas import CostBreakdown, UsageRecord

_PER_MILLION = Decimal(1_000_000)
_PLACES = Decimal("0.000001")


def _price(value: Optional[float]) -> Decimal:
    # str() keeps 0.30 as 0.30 instead of its binary expansion
    return Decimal(str(value)) if value is not None else Decimal(0)


def _fmt(value: Decimal) -> str:
    return str(value.quantize(_PLACES))


def compute_cost(
    *,
    input_tokens: int,
    output_tokens: int,
    pricing: ModelPricing,
    cache_creation_tokens: Optional[int] = None,
    cache_read_tokens: Optional[int] = None,
) -> CostBreakdown:
    input_cost = Decimal(input_tokens) / _PER_MILLION * _price(pricing.input)
    output_cost = Decimal(output_tokens) / _PER_MILLION * _price(pricing.output)
    cache_write_cost = (
        Decimal(cache_creation_tokens or 0) / _PER_MILLION * _price(pricing.cache_write)
    )
    cache_read_cost = (
        Decimal(cache_read_tokens or 0) / _PER_MILLION * _price(pricing.cache_read)
    )
    total = input_cost + output_cost + cache_write_cost + cache_read_cost
    # what the cached tokens would have cost at the full input price
    savings = (
        Decimal(cache_read_tokens or 0)
        / _PER_MILLION
        * (_price(pricing.input) - _price(pricing.cache_read))
    )
    return CostBreakdown(
        input=_fmt(input_cost),
        output=_fmt(output_cost),
        cache_write=_fmt(cache_write_cost),
        cache_read=_fmt(cache_read_cost),
        total=_fmt(total),
        savings=_fmt(savings),
    )


def build_usage_record(
    descriptor: ProviderDescriptor,
    model: str,
    *,
    input_tokens: int,
    output_tokens: int,
    cache_creation_tokens: Optional[int] = None,
    cache_read_tokens: Optional[int] = None,
) -> UsageRecord:
    """
    Attach a cost breakdown to raw usage counters.

    Models missing from the pricing table are billed at the provider's
    default model price; cost reporting never blocks the response.
    """
    pricing = descriptor.pricing_for(model) or ModelPricing(input=0.0, output=0.0)
    cost = compute_cost(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cache_creation_tokens=cache_creation_tokens,
        cache_read_tokens=cache_read_tokens,
        pricing=pricing,
    )
    return UsageRecord(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cache_creation_tokens=cache_creation_tokens,
        cache_read_tokens=cache_read_tokens,
        model=model,
        cost=cost,
    )

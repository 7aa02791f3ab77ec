from typing import Collection, Tuple

from chat_relay.providers.registry import PROVIDERS

AUTO = "auto"
PRIORITY: Tuple[str, ...] = tuple(PROVIDERS)
FALLBACK = "claude"


def select_provider(requested: str, credentials: Collection[str]) -> str:
    """
    Resolve the requested provider token to a concrete provider id.

    An explicit id is returned as-is; the credential check happens later in
    the relay. ``auto`` picks the first provider in PRIORITY that has a
    credential and falls back to Claude when none do, so the missing key is
    reported for Claude.
    """
    if requested != AUTO:
        return requested
    for provider_id in PRIORITY:
        if provider_id in credentials:
            return provider_id
    return FALLBACK

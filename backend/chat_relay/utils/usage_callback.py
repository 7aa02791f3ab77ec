from typing import Optional, Dict, Any

import httpx
import structlog

from chat_relay.core.config import Settings, settings as default_settings

logger = structlog.get_logger()

async def send_usage(payload: Dict[str, Any], settings: Optional[Settings] = None):
    """
    Optionally POST the finished stream's usage to the host application
    (billing, quotas). Configure USAGE_CALLBACK_URL and USAGE_CALLBACK_AUTH.
    Failures are logged and ignored; the stream has already ended.
    """
    settings = settings or default_settings
    if not settings.USAGE_CALLBACK_URL:
        return
    headers = {"Content-Type": "application/json"}
    if settings.USAGE_CALLBACK_AUTH:
        headers["Authorization"] = settings.USAGE_CALLBACK_AUTH
    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            await client.post(settings.USAGE_CALLBACK_URL, json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.warning("usage_callback_failed", err=str(e))

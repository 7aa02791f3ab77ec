from fastapi import APIRouter

from chat_relay.api.deps import SettingsDep
from chat_relay.providers.registry import PROVIDERS
from chat_relay.providers.selector import AUTO, select_provider
from chat_relay.schemas import ProviderInfo, ProvidersResponse

router = APIRouter(tags=["providers"])


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(settings: SettingsDep):
    """
    Registered providers, whether each has a key, and what ``auto`` picks.
    """
    credentials = settings.credentials
    return ProvidersResponse(
        auto=select_provider(AUTO, credentials),
        providers=[
            ProviderInfo(
                id=p.id,
                label=p.label,
                default_model=p.default_model,
                fast_model=p.fast_model,
                configured=p.id in credentials,
            )
            for p in PROVIDERS.values()
        ],
    )

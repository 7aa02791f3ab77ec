from typing import Annotated

from fastapi import Depends

from chat_relay.core.config import Settings, settings
from chat_relay.services.mcq import McqService
from chat_relay.services.relay import ChatRelay


def get_settings() -> Settings:
    return settings


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_relay(settings: SettingsDep) -> ChatRelay:
    return ChatRelay(settings)


def get_mcq_service(settings: SettingsDep) -> McqService:
    return McqService(settings)


RelayDep = Annotated[ChatRelay, Depends(get_relay)]
McqServiceDep = Annotated[McqService, Depends(get_mcq_service)]

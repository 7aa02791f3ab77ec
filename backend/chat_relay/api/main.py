from fastapi import APIRouter

from chat_relay.api.routes import chat, mcq, providers

api_router = APIRouter()
api_router.include_router(chat.router)
api_router.include_router(mcq.router)
api_router.include_router(providers.router)

import uvicorn

from chat_relay.core.config import settings


def main() -> None:
    uvicorn.run(
        "chat_relay.main:app",
        host=settings.HOST,
        port=settings.PORT,
        # logging is configured by chat_relay.core.logging
        log_config=None,
    )


if __name__ == "__main__":
    main()

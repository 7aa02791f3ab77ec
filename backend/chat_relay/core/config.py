from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_relay.providers.registry import PROVIDERS


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # .env at the repository root
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "chat-relay"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    API_PREFIX: str = "/api"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []
    FRONTEND_HOST: str = "http://localhost:5173"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    SENTRY_DSN: HttpUrl | None = None
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool | None = None

    # Upstream credentials; presence decides which providers "auto" can pick
    ANTHROPIC_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    GOOGLE_API_KEY: str | None = None
    XAI_API_KEY: str | None = None

    ANTHROPIC_BASE_URL: str | None = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    XAI_BASE_URL: str = "https://api.x.ai/v1"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    UPSTREAM_CONNECT_TIMEOUT_SECONDS: float = 10.0
    MAX_OUTPUT_TOKENS: int = 8192

    USAGE_CALLBACK_URL: str | None = None
    USAGE_CALLBACK_AUTH: str | None = None

    MCQMCP_URL: str = "https://mcqmcp.onrender.com"
    MCQ_TIMEOUT_SECONDS: float = 15.0

    @property
    def log_json(self) -> bool:
        if self.LOG_JSON is None:
            return self.ENVIRONMENT != "local"
        return self.LOG_JSON

    def api_key_for(self, provider_id: str) -> str | None:
        descriptor = PROVIDERS.get(provider_id)
        if descriptor is None:
            return None
        return getattr(self, descriptor.credential_env_key, None) or None

    @property
    def credentials(self) -> frozenset[str]:
        """Ids of the providers whose API key is configured."""
        return frozenset(pid for pid in PROVIDERS if self.api_key_for(pid))


settings = Settings()  # type: ignore

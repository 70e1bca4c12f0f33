from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # General
    LOG_LEVEL: str = Field(default="INFO", description="Application log level")
    BIND: str = Field(default="0.0.0.0:3001", description="API bind address")

    # CORS
    CORS_ALLOW_ORIGINS: str = Field(default="*", description="Comma-separated list of allowed origins")
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True, description="Allow credentials in CORS")
    CORS_ALLOW_METHODS: str = Field(default="GET,POST,PUT,DELETE,OPTIONS", description="Allowed CORS methods")
    CORS_ALLOW_HEADERS: str = Field(
        default="Content-Type,Authorization,X-Telegram-Init-Data,X-User-Id",
        description="Allowed CORS headers",
    )

    # LLM
    OPENAI_API_KEY: str = Field(default="", description="API key of the OpenAI-compatible provider")
    OPENAI_BASE_URL: str = Field(default="https://api.openai.com/v1", description="OpenAI-compatible base URL")
    CHAT_MODEL: str = Field(default="gpt-4o-mini", description="Chat model ID")
    LLM_MAX_CONCURRENCY: int = Field(default=10, description="Maximum concurrency for LLM requests")
    LLM_REQUEST_TIMEOUT: int = Field(default=60, description="LLM HTTP timeout (seconds)")

    # Recipe generation
    RECIPE_RESPONSE_FORMAT: Literal["text", "json"] = Field(
        default="json", description="Reply contract asked from the model: labeled text sections or strict JSON"
    )
    RECIPE_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature for recipe generation")
    RECIPE_MAX_TOKENS: int = Field(default=1200, description="Maximum completion tokens for one recipe")
    RECIPE_PARSE_RETRIES: int = Field(default=1, ge=0, description="Extra model calls after an unparseable JSON reply")
    RECIPE_FALLBACK_ENABLED: bool = Field(
        default=True, description="Serve the deterministic fallback recipe when generation fails"
    )

    # Data Layer
    MONGODB_URI: str = Field(
        default="mongodb://mongo:27017/harvardplate",
        description="MongoDB connection URI",
        validation_alias="MONGO_URI",
    )
    MONGODB_DB: str = Field(
        default="harvardplate",
        description="MongoDB database name",
        validation_alias="MONGO_DB",
    )

    # Auth
    BOT_TOKEN: str = Field(default="", description="Telegram bot token used to verify Mini App init data")
    SERVICE_TOKEN: str = Field(default="", description="Bearer token accepted from trusted backends")
    AUTH_DISABLED: bool = Field(default=False, description="Trust X-User-Id without verification (development only)")
    AUTH_MAX_AGE_SECONDS: int = Field(default=86400, description="Maximum age of Telegram init data")

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable the per-client rate limiter")
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=900, description="Rate limit window (seconds)")
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=100, description="Requests allowed per client per window")

    # History
    HISTORY_DEFAULT_LIMIT: int = Field(default=20, description="Default page size of the recipe history")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()

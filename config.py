# config.py
from __future__ import annotations
from typing import List, Optional, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices, model_validator

class Settings(BaseSettings):
    # Read .env; ignore extra env vars to avoid crashes
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_nested_delimiter="__",
        env_prefix="",
    )

    # --- Runtime env / debugging ---
    APP_ENV: Literal["development", "staging", "production"] = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENV", "app_env"),
    )
    DEBUG: bool = Field(
        default=False,
        validation_alias=AliasChoices("DEBUG", "debug"),
    )

    # --- OpenAI ---
    OPENAI_API_KEY: str = Field(
        default="",
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4o",
        validation_alias=AliasChoices("OPENAI_MODEL", "openai_model"),
    )
    LLM_TEMPERATURE: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        validation_alias=AliasChoices("LLM_TEMPERATURE", "llm_temperature"),
    )
    LLM_CACHE_TTL_SECONDS: int = Field(
        default=3600,
        ge=0,
        validation_alias=AliasChoices("LLM_CACHE_TTL_SECONDS", "llm_cache_ttl_seconds"),
    )
    MAX_ITINERARY_DAYS: int = Field(
        default=30,
        ge=1,
        validation_alias=AliasChoices("MAX_ITINERARY_DAYS", "max_itinerary_days"),
    )

    # --- Extraction limits ---
    # Longer messages are truncated before regex matching
    MAX_INPUT_CHARS: int = Field(
        default=4000,
        ge=1,
        validation_alias=AliasChoices("MAX_INPUT_CHARS", "max_input_chars"),
    )
    MAX_REQUEST_BYTES: int = Field(
        default=1024 * 10,
        ge=1,
        validation_alias=AliasChoices("MAX_REQUEST_BYTES", "max_request_bytes"),
    )

    # --- Server Settings (for deployment) ---
    PORT: int = Field(
        default=8000,
        validation_alias=AliasChoices("PORT", "port"),
    )
    HOST: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
    )

    # --- Logging ---
    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )

    # --- CORS (env-driven) ---
    CORS_ALLOW_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )
    # Optional comma-separated alternative that overrides the above
    FRONTEND_ORIGINS: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FRONTEND_ORIGINS", "frontend_origins"),
    )
    CORS_ALLOW_METHODS: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"],
        validation_alias=AliasChoices("CORS_ALLOW_METHODS", "cors_allow_methods"),
    )
    CORS_ALLOW_HEADERS: List[str] = Field(
        default_factory=lambda: ["Accept", "Content-Type", "X-Request-Id"],
        validation_alias=AliasChoices("CORS_ALLOW_HEADERS", "cors_allow_headers"),
    )
    CORS_EXPOSE_HEADERS: List[str] = Field(
        default_factory=lambda: ["X-Request-Id"],
        validation_alias=AliasChoices("CORS_EXPOSE_HEADERS", "cors_expose_headers"),
    )

    @model_validator(mode="after")
    def _merge_frontend_origins(self) -> "Settings":
        if self.FRONTEND_ORIGINS:
            parts = [p.strip() for p in self.FRONTEND_ORIGINS.split(",") if p.strip()]
            if parts:
                self.CORS_ALLOW_ORIGINS = parts
        return self

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "Settings":
        """Itinerary generation can't work without a key; fail at startup in production."""
        if self.APP_ENV == "production" and not self.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY must be set in production.")
        return self

    @property
    def is_dev(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL.upper()

settings = Settings()

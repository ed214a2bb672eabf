"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Timeouts, cooldowns and retry limits used by the session coordination layer
all live here so deployments can tune them without code changes. Policy lists
that are awkward to express as environment variables (e.g. the auth-failure
signatures) come from config/default.yaml instead.

Usage:
    from studyaid.config import settings

    # Access settings
    timeout = settings.QUERY_ATTEMPT_TIMEOUT
    bucket = settings.STORAGE_BUCKET
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Study Aid"
    DEBUG: bool = False

    # Hosted backend (auth, PostgREST, storage, edge functions)
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    HTTP_CONNECT_TIMEOUT: float = 5.0

    # Storage
    STORAGE_BUCKET: str = "documents"
    SIGNED_URL_TTL_SECONDS: int = 3600
    UPLOAD_MAX_FILE_SIZE_MB: int = 25

    # Session validity buffers (seconds before expires_at)
    SESSION_EXPIRY_BUFFER_SECONDS: int = 300  # proactive refresh before critical writes
    SESSION_READ_BUFFER_SECONDS: int = 60  # opportunistic reads

    # Session refresh
    SESSION_REFRESH_TIMEOUT: float = 10.0
    SESSION_REFRESH_WAIT_TIMEOUT: float = 5.0
    USER_ID_CACHE_TTL_SECONDS: float = 30.0

    # Connection warm-up
    WARM_UP_COOLDOWN_SECONDS: float = 30.0
    WARM_UP_PROBE_TIMEOUT: float = 3.0
    WARM_UP_MIN_HIDDEN_SECONDS: float = 30.0
    WARM_UP_PROBE_TABLE: str = "documents"

    # Resilient query executor
    QUERY_ATTEMPT_TIMEOUT: float = 10.0
    QUERY_MAX_ATTEMPTS: int = 2

    # Spaced repetition (SM-2)
    SM2_MIN_EASE_FACTOR: float = 1.3
    SM2_DEFAULT_EASE_FACTOR: float = 2.5

    # Mastery buckets (WMS score thresholds)
    MASTERY_MASTERED_THRESHOLD: float = 80.0
    MASTERY_LEARNING_THRESHOLD: float = 40.0

    # Summary polling
    SUMMARY_POLL_ATTEMPTS: int = 30
    SUMMARY_POLL_INTERVAL_SECONDS: float = 2.0

    # AI document processing
    # Format: provider/model-name (LiteLLM)
    TEXT_MODEL: str = "gemini/gemini-2.5-flash-lite"
    GEMINI_API_KEY: str = ""
    LLM_TEMPERATURE: float = 0.3
    LLM_MAX_RETRIES: int = 3
    PROCESSING_CHUNK_SIZE: int = 4000
    PROCESSING_MAX_CHUNKS: int = 10
    PROCESSING_CHUNK_MAX_TOKENS: int = 800
    PROCESSING_COMBINE_MAX_TOKENS: int = 2500
    PROCESSING_SINGLE_MAX_TOKENS: int = 3500

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()

"""
Configuration settings for Communication Mirror.

All settings are loaded from environment variables with sensible defaults.
Use a .env file for local development.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Communication Mirror"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # development | production

    # === Ollama Configuration ===
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "qwen2.5:7b"
    OLLAMA_TIMEOUT: int = 120  # seconds
    OLLAMA_MAX_RETRIES: int = 2  # Connection-level only, never validation retries

    # === Model Runtime ===
    LLM_CONTEXT_SIZE: int = 4096  # Per-lane context budget, default max tokens
    LLM_BATCH_LANES: int = 4  # One lane per analysis kind

    # === Per-Kind Generation Parameters ===
    INTENT_TEMPERATURE: float = 0.5
    TONE_TEMPERATURE: float = 0.6
    IMPACT_TEMPERATURE: float = 0.5
    ALTERNATIVES_TEMPERATURE: float = 0.6
    ALTERNATIVES_MAX_TOKENS: int = 6000

    # === Retry ===
    GENERATION_MAX_ATTEMPTS: int = 2  # First attempt + one corrective retry

    # === Sessions ===
    SESSION_MAX_INTERACTIONS: int = 10
    SESSION_TTL_SECONDS: int = 86400  # 24 hours idle
    SESSION_SWEEP_INTERVAL_SECONDS: int = 3600

    # === HTTP ===
    MAX_MESSAGE_LENGTH: int = 5000  # chars
    CORS_ORIGINS: list[str] = ["*"]

    # === Prompts ===
    PROMPT_TEMPLATES_DIR: Optional[str] = None  # None -> packaged templates

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True

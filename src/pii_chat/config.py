"""
Configuration settings for the PII-aware chat service.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development (see .env.example).
"""

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
    APP_NAME: str = "PII Chat"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Ollama Configuration ===
    OLLAMA_BASE_URL: str = "http://ollama:11434"
    OLLAMA_TIMEOUT: int = 120  # seconds

    # === Generation model (streams the answer with $N placeholders) ===
    GENERATION_MODEL: str = "qwen2.5:7b"
    GENERATION_TEMPERATURE: float = 0.7
    GENERATION_MAX_TOKENS: int = 2048

    # === Detection model (wraps PII spans in delimiters) ===
    DETECTION_MODEL: str = "qwen2.5:3b"
    DETECTION_TEMPERATURE: float = 0.0
    DETECTION_MAX_TOKENS: int = 1024
    PII_DELIMITER_OPEN: str = "<s>"
    PII_DELIMITER_CLOSE: str = "</s>"
    PII_DETECTION_FAIL_OPEN: bool = True  # Degrade to "no PII" instead of failing the turn

    # === Prompts ===
    PROMPT_TEMPLATES_DIR: str = "config/prompts"

    # === Redaction rendering ===
    REDACTION_MASK: str = "██████"

    # === Redis ===
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50  # Connection pool size
    REDIS_SOCKET_TIMEOUT: float = 5.0  # seconds
    CONVERSATION_KEY_PREFIX: str = "chat:conversation:"
    CONVERSATION_INDEX_KEY: str = "chat:conversations:index"
    CONVERSATION_TTL_SECONDS: int = 0  # 0 = keep forever
    CONVERSATION_LIST_LIMIT: int = 50

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()

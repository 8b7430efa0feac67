from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

DEFAULT_MODEL = "google/gemini-2.5-flash-preview-05-20"

DEFAULT_KNOWN_MODELS = [
    DEFAULT_MODEL,
    "deepseek/deepseek-chat-v3-0324:free",
    "anthropic/claude-3-haiku",
    "openai/gpt-4o-mini",
]

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # --- OpenRouter ---
    openrouter_api_key: Optional[str] = Field(default=None, validation_alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", validation_alias="OPENROUTER_BASE_URL")
    openrouter_default_model: str = Field(default=DEFAULT_MODEL, validation_alias="OPENROUTER_DEFAULT_MODEL")
    openrouter_timeout_ms: int = Field(default=120000, validation_alias="OPENROUTER_TIMEOUT_MS")
    openrouter_referer: str = Field(default="https://github.com/prompt-gateway/prompt-gateway", validation_alias="OPENROUTER_REFERER")
    openrouter_title: str = Field(default="Prompt Gateway", validation_alias="OPENROUTER_TITLE")

    # Advertised to callers for discoverability only, never enforced
    known_models: str = Field(default=",".join(DEFAULT_KNOWN_MODELS), validation_alias="KNOWN_MODELS")

    # --- HTTP server ---
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT")
    cors_allowed_origins: str = Field(default="*", validation_alias="CORS_ALLOWED_ORIGINS")
    max_concurrent_requests: int = Field(default=8, validation_alias="MAX_CONCURRENT_REQUESTS")
    request_queue_timeout: float = Field(default=15.0, validation_alias="REQUEST_QUEUE_TIMEOUT")
    sse_keepalive_interval: float = Field(default=30.0, validation_alias="SSE_KEEPALIVE_INTERVAL")

    # --- WebSocket RPC ---
    ws_enabled: bool = Field(default=True, validation_alias="WS_ENABLED")
    ws_host: str = Field(default="0.0.0.0", validation_alias="WS_HOST")
    ws_port: int = Field(default=3001, validation_alias="WS_PORT")

    # --- Pipeline ---
    sanitize_fail_open: bool = Field(default=False, validation_alias="SANITIZE_FAIL_OPEN")

    # --- Logging ---
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_dir: Optional[str] = Field(default=None, validation_alias="LOG_DIR")

    @property
    def known_model_list(self) -> List[str]:
        return [model.strip() for model in self.known_models.split(",") if model.strip()]

    @property
    def openrouter_timeout(self) -> float:
        return self.openrouter_timeout_ms / 1000

@lru_cache
def get_settings() -> Settings:
    return Settings()

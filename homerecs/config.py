"""Application settings loaded from environment variables and `.env`."""

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProvider(str, Enum):
    OPENAI = "openai"
    OLLAMA = "ollama"
    MOCK = "mock"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Service ─────────────────────────────────────
    environment: str = "production"
    cors_origins: list[str] = ["*"]

    # ── User data store ─────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./homerecs.db"

    # ── LLM ─────────────────────────────────────────
    llm_provider: LLMProvider = LLMProvider.OPENAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1"
    llm_timeout_seconds: float = 30.0
    # Corrective retries after a malformed completion (no backoff).
    llm_retry_attempts: int = 1

    # ── Book search ─────────────────────────────────
    google_books_api_key: str | None = None
    google_books_timeout_seconds: float = 5.0
    google_books_rate_limit_backoff_seconds: float = 8.0

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in {"development", "dev", "local"}

    @property
    def llm_configured(self) -> bool:
        if self.llm_provider is LLMProvider.OPENAI:
            return bool(self.openai_api_key)
        return True

    @property
    def book_search_configured(self) -> bool:
        return bool(self.google_books_api_key)


settings = Settings()

"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interviews.db")
    FEEDBACK_DIR: str = Field(default="feedback")

    MODEL_NAME: str = "phi3:mini"
    OLLAMA_HOST: str = "http://127.0.0.1:11434"
    OLLAMA_ENDPOINT: str = "/api/chat"
    HOSTED_AI_ENDPOINT: str = ""
    HOSTED_API_KEY: str = ""
    MODEL_TIMEOUT_S: float = Field(default=120.0, ge=0.1)
    FORCE_HOSTED: bool = False

    MAX_REPAIR_ROUNDS: int = Field(default=2, ge=0)
    MAX_LIST_ITEMS: int = Field(default=10, ge=1)
    MAX_SUMMARY_CHARS: int = Field(default=2000, ge=1)
    QUESTION_COUNT: int = Field(default=8, ge=1)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()

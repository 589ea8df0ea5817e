"""Configuration settings for the training directives core."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


PACKAGE_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Settings loaded from environment variables (and an optional .env file)."""

    # OpenAI
    openai_api_key: str = ""

    # Model selection
    llm_model_fast: str = "gpt-4o-mini"  # Narration and companion cards
    llm_model_smart: str = "gpt-4o"

    # Transport retries inside the client. The orchestrator's attempt budget
    # is separate and always bounds how many times the provider is called.
    llm_max_retries: int = 0
    llm_timeout_seconds: Optional[float] = None

    # Narration request defaults
    narration_temperature: float = 0.4
    narration_max_output_tokens: int = 600

    log_level: str = "INFO"

    class Config:
        env_file = str(PACKAGE_ROOT / ".env")
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from ``BUILDSMITH_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="BUILDSMITH_", extra="ignore")

    llm_model: str = "gpt-4o-mini"
    llm_base_url: Optional[str] = None
    llm_api_key: Optional[str] = None
    temperature: float = 0.0
    llm_timeout: float = 120.0

    minimum_score: int = 90
    component_minimum_score: int = 85
    extended_categories: List[str] = Field(default_factory=list)

    default_stack: str = "react-vite-tailwind"
    max_file_tokens: int = 3072
    max_component_tokens: int = 2048
    generation_timeout: float = 600.0
    sandbox_operation_timeout: float = 180.0

    ai_max_attempts: int = 3
    ai_backoff_initial: float = 1.0
    ai_backoff_max: float = 8.0

    langfuse_host: Optional[str] = None
    langfuse_public_key: Optional[str] = None
    langfuse_secret_key: Optional[str] = None

    @property
    def tracing_enabled(self) -> bool:
        return bool(self.langfuse_public_key and self.langfuse_secret_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings()

"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agentic_rag.core.exceptions import ConfigurationError

load_dotenv()

LLMProvider = Literal["groq", "ollama"]
TraceBackend = Literal["none", "otel", "langsmith"]


class Settings(BaseSettings):
    """Runtime configuration for the workflow and its gateways."""

    model_config = SettingsConfigDict(
        frozen=True,
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    # LLM
    llm_provider: LLMProvider = Field("groq", description="Chat model provider")
    llm_model: str = Field("llama-3.3-70b-versatile", description="Chat model name")
    llm_temperature: float = Field(0.0, ge=0.0, le=2.0)
    llm_timeout: float = Field(10.0, gt=0, description="Seconds per LLM call")

    # Retrieval
    embedding_model: str = Field("sentence-transformers/all-MiniLM-L6-v2")
    chroma_persist_dir: str = Field("./chroma_db")
    retrieval_k: int = Field(4, ge=1)

    # Web search
    tavily_api_key: Optional[str] = None
    web_search_max_results: int = Field(3, ge=1)
    web_search_timeout: float = Field(10.0, gt=0, description="Seconds per search request")

    # Workflow
    max_retries: int = Field(3, ge=0, description="Regenerations allowed on the groundedness gate")

    # Tracing
    trace_backend: TraceBackend = "none"
    langsmith_api_key: Optional[str] = None
    langsmith_project: str = "agentic-rag"
    langsmith_endpoint: str = "https://api.smith.langchain.com"

    @field_validator("llm_provider", "trace_backend", mode="before")
    @classmethod
    def normalize_choice(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


def load_settings() -> Settings:
    """
    Build settings from the current environment.

    Unset or empty variables fall back to the field defaults.

    Raises:
        ConfigurationError: If a variable has an invalid value
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return load_settings()

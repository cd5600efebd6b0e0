"""Unit tests for settings and the chat model factory."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from agentic_rag.core.config import Settings, get_settings, load_settings
from agentic_rag.core.exceptions import ConfigurationError
from agentic_rag.core.llm import create_chat_model

_ALL_VARS = [
    "LLM_PROVIDER",
    "LLM_MODEL",
    "LLM_TEMPERATURE",
    "LLM_TIMEOUT",
    "EMBEDDING_MODEL",
    "CHROMA_PERSIST_DIR",
    "RETRIEVAL_K",
    "TAVILY_API_KEY",
    "WEB_SEARCH_MAX_RESULTS",
    "WEB_SEARCH_TIMEOUT",
    "MAX_RETRIES",
    "TRACE_BACKEND",
    "LANGSMITH_API_KEY",
    "LANGSMITH_PROJECT",
    "LANGSMITH_ENDPOINT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ALL_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
class TestSettings:
    """Test cases for environment-driven settings."""

    def test_defaults(self, clean_env):
        settings = load_settings()

        assert settings.llm_provider == "groq"
        assert settings.retrieval_k == 4
        assert settings.web_search_max_results == 3
        assert settings.max_retries == 3
        assert settings.trace_backend == "none"
        assert settings.llm_timeout == 10.0

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("LLM_PROVIDER", "Ollama")
        clean_env.setenv("MAX_RETRIES", "5")
        clean_env.setenv("RETRIEVAL_K", "8")
        clean_env.setenv("TRACE_BACKEND", "LANGSMITH")
        clean_env.setenv("TAVILY_API_KEY", "tvly-test")

        settings = load_settings()

        assert settings.llm_provider == "ollama"
        assert settings.max_retries == 5
        assert settings.retrieval_k == 8
        assert settings.trace_backend == "langsmith"
        assert settings.tavily_api_key == "tvly-test"

    def test_empty_values_use_defaults(self, clean_env):
        clean_env.setenv("MAX_RETRIES", "")
        clean_env.setenv("LLM_MODEL", "")

        settings = load_settings()

        assert settings.max_retries == 3
        assert settings.llm_model == "llama-3.3-70b-versatile"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("MAX_RETRIES", "-1"),
            ("MAX_RETRIES", "three"),
            ("RETRIEVAL_K", "0"),
            ("LLM_PROVIDER", "openai"),
            ("TRACE_BACKEND", "zipkin"),
            ("WEB_SEARCH_TIMEOUT", "0"),
        ],
    )
    def test_invalid_values_raise(self, clean_env, name, value):
        clean_env.setenv(name, value)

        with pytest.raises(ConfigurationError):
            load_settings()

    def test_variable_names_are_case_insensitive(self, clean_env):
        clean_env.setenv("max_retries", "1")

        assert load_settings().max_retries == 1

    def test_get_settings_is_cached(self, clean_env):
        assert get_settings() is get_settings()

    def test_settings_are_frozen(self):
        settings = Settings()

        with pytest.raises(ValidationError):
            settings.max_retries = 10


@pytest.mark.unit
class TestCreateChatModel:
    """Test cases for the chat model factory."""

    @patch("langchain_groq.ChatGroq")
    def test_groq_is_default(self, mock_groq):
        settings = Settings(llm_model="llama-3.1-8b-instant", llm_timeout=5.0)

        llm = create_chat_model(settings)

        assert llm is mock_groq.return_value
        mock_groq.assert_called_once_with(
            model="llama-3.1-8b-instant", temperature=0.0, timeout=5.0
        )

    @patch("langchain_ollama.ChatOllama")
    def test_ollama_provider(self, mock_ollama):
        settings = Settings(llm_provider="ollama", llm_model="llama3.2", llm_temperature=0.7)

        create_chat_model(settings, temperature=0)

        mock_ollama.assert_called_once_with(
            model="llama3.2", temperature=0, client_kwargs={"timeout": 10.0}
        )

"""Chat model factory shared by the judgment and generation chains."""

from typing import Optional

from langchain_core.language_models import BaseChatModel

from agentic_rag.core.config import Settings, get_settings


def create_chat_model(
    settings: Optional[Settings] = None,
    temperature: Optional[float] = None,
) -> BaseChatModel:
    """
    Create the chat model configured for this deployment.

    Args:
        settings: Settings to use, defaults to the environment settings
        temperature: Optional override of the configured temperature

    Returns:
        Chat model instance with the configured per-call timeout
    """
    settings = settings or get_settings()
    temp = settings.llm_temperature if temperature is None else temperature

    if settings.llm_provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=settings.llm_model,
            temperature=temp,
            client_kwargs={"timeout": settings.llm_timeout},
        )

    from langchain_groq import ChatGroq

    return ChatGroq(
        model=settings.llm_model,
        temperature=temp,
        timeout=settings.llm_timeout,
    )

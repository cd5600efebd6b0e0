"""Exception types raised by the Agentic RAG workflow."""


class AgenticRAGError(Exception):
    """Base class for all workflow errors."""


class ConfigurationError(AgenticRAGError):
    """Raised when settings from the environment are missing or invalid."""


class StructuredOutputError(AgenticRAGError):
    """Raised when an LLM response cannot be parsed into its declared schema."""

    def __init__(self, component: str, message: str) -> None:
        self.component = component
        super().__init__(f"{component}: {message}")


class GenerationError(AgenticRAGError):
    """Raised when the answer generator fails to produce an answer."""


class RetrievalError(AgenticRAGError):
    """Raised when the vector store cannot be queried."""

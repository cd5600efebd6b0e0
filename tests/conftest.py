"""Shared fixtures and configuration for pytest tests."""

from typing import Any, Callable, List
from unittest.mock import Mock

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.runnables import RunnableLambda

from agentic_rag.agents.rag_graph import AgenticRAGWorkflow
from agentic_rag.core.config import get_settings
from agentic_rag.core.retriever import Retriever
from agentic_rag.core.tracing import RecordingTraceSink
from agentic_rag.core.vector_store import VectorStoreManager
from agentic_rag.core.web_search import WebSearchGateway
from agentic_rag.corrective.answer_generator import AnswerGenerator
from agentic_rag.corrective.answer_verifier import GradeAnswer
from agentic_rag.corrective.hallucination_checker import GradeHallucinations
from agentic_rag.corrective.question_router import RouteQuery
from agentic_rag.corrective.relevance_grader import GradeDocuments


class StructuredLLMStub:
    """Chat model stand-in for chains built with ``with_structured_output``.

    Replays ``results`` in order, then keeps returning ``default``. Exception
    instances are raised instead of returned.
    """

    def __init__(self, *results: Any, default: Any = None) -> None:
        self.results = list(results)
        self.default = default
        self.prompts: List[Any] = []
        self.schema = None

    def with_structured_output(self, schema):
        self.schema = schema
        return RunnableLambda(self._respond)

    def _respond(self, prompt_value):
        self.prompts.append(prompt_value)
        result = self.results.pop(0) if self.results else self.default
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def calls(self) -> int:
        return len(self.prompts)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; tests that set env vars need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_embeddings() -> DeterministicFakeEmbedding:
    """Offline embeddings, identical texts map to identical vectors."""
    return DeterministicFakeEmbedding(size=32)


@pytest.fixture
def vector_store_manager(tmp_path, fake_embeddings) -> VectorStoreManager:
    """Create a vector store manager in a temporary directory."""
    return VectorStoreManager(
        persist_directory=str(tmp_path / "chroma_db"),
        embeddings=fake_embeddings,
    )


@pytest.fixture
def sample_documents() -> List[Document]:
    """Passages about LLM agents, as the sample data ingests."""
    return [
        Document(
            page_content="LLM powered autonomous agents use a large language model as their core controller.",
            metadata={"source": "agents", "topic": "overview"},
        ),
        Document(
            page_content="Planning lets an agent break a large task into smaller subgoals.",
            metadata={"source": "agents", "topic": "planning"},
        ),
        Document(
            page_content="Memory gives an agent short-term context and long-term recall via a vector store.",
            metadata={"source": "agents", "topic": "memory"},
        ),
        Document(
            page_content="Tool use lets an agent call external APIs for information missing from its weights.",
            metadata={"source": "agents", "topic": "tools"},
        ),
    ]


@pytest.fixture
def populated_vector_store(vector_store_manager, sample_documents) -> VectorStoreManager:
    """Vector store manager with sample documents already added."""
    vector_store_manager.add_documents(sample_documents)
    return vector_store_manager


@pytest.fixture
def structured_llm() -> Callable[..., StructuredLLMStub]:
    """Factory for structured-output chat model stubs."""

    def _create(*results: Any, default: Any = None) -> StructuredLLMStub:
        return StructuredLLMStub(*results, default=default)

    return _create


@pytest.fixture
def mock_tavily_client():
    """Mock Tavily search client."""
    mock_client = Mock()
    mock_client.search = Mock(
        return_value={
            "results": [
                {
                    "title": "Test Result",
                    "url": "https://example.com",
                    "content": "This is test content from web search.",
                }
            ]
        }
    )
    return mock_client


@pytest.fixture
def trace_sink() -> RecordingTraceSink:
    """In-memory trace sink."""
    return RecordingTraceSink()


@pytest.fixture
def echo_generator() -> Mock:
    """Answer generator stub that answers with its context."""
    generator = Mock(spec=AnswerGenerator)
    generator.generate.side_effect = lambda context, question: context
    return generator


@pytest.fixture
def build_workflow(structured_llm, mock_tavily_client, echo_generator, trace_sink):
    """
    Factory for a workflow wired to stubbed models and gateways.

    The judgment services are the real classes driven by stub chat models,
    so their structured-output handling runs as in production.
    """
    from agentic_rag.corrective.answer_verifier import AnswerVerifier
    from agentic_rag.corrective.hallucination_checker import HallucinationChecker
    from agentic_rag.corrective.question_router import QuestionRouter
    from agentic_rag.corrective.relevance_grader import RelevanceGrader

    def _create(
        route: str = "vectorstore",
        documents: List[Document] = None,
        relevant: Any = True,
        grounded: Any = True,
        addresses_question: Any = True,
        search_client: Any = None,
        generator: Any = None,
        retriever: Any = None,
        max_retries: int = 3,
        sink: Any = None,
    ) -> AgenticRAGWorkflow:
        if retriever is None:
            retriever = Mock(spec=Retriever)
            retriever.retrieve.return_value = list(documents or [])

        return AgenticRAGWorkflow(
            router=QuestionRouter(llm=structured_llm(default=RouteQuery(datasource=route))),
            retriever=retriever,
            relevance_grader=RelevanceGrader(llm=_judge(structured_llm, GradeDocuments, "relevant", relevant)),
            generator=generator or echo_generator,
            web_search_gateway=WebSearchGateway(client=search_client or mock_tavily_client),
            hallucination_checker=HallucinationChecker(
                llm=_judge(structured_llm, GradeHallucinations, "grounded", grounded)
            ),
            answer_verifier=AnswerVerifier(
                llm=_judge(structured_llm, GradeAnswer, "addresses_question", addresses_question)
            ),
            trace_sink=trace_sink if sink is None else sink,
            max_retries=max_retries,
        )

    return _create


def _judge(factory, model, field: str, verdicts: Any) -> StructuredLLMStub:
    """A bool is a fixed verdict, a list is replayed then the last one repeats."""
    if isinstance(verdicts, bool):
        return factory(default=model(**{field: verdicts}))
    results = [model(**{field: v}) for v in verdicts]
    return factory(*results, default=results[-1])

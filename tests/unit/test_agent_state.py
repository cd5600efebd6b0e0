"""Unit tests for agent state module."""

import pytest
from langchain_core.documents import Document
from pydantic import ValidationError

from agentic_rag.agents.state import GraphState, Phase, WorkflowResult
from agentic_rag.corrective.question_router import Datasource


@pytest.mark.unit
class TestGraphState:
    """Test cases for GraphState."""

    def test_defaults(self):
        state = GraphState(question="What are LLM agents?")

        assert state.documents == []
        assert state.generation is None
        assert state.web_search_needed is False
        assert state.route is None
        assert state.phase is Phase.INITIAL
        assert state.groundedness_retries == 0
        assert state.max_retries == 3
        assert state.workflow_steps == []

    def test_state_is_immutable(self):
        state = GraphState(question="q")

        with pytest.raises(ValidationError):
            state.generation = "changed"

    def test_derive_with_update(self):
        state = GraphState(question="q")

        updated = state.model_copy(update={"groundedness_retries": 1, "phase": Phase.REGENERATE})

        assert updated.groundedness_retries == 1
        assert state.groundedness_retries == 0

    def test_route_accepts_string_value(self):
        state = GraphState(question="q", route="vectorstore")

        assert state.route is Datasource.VECTORSTORE

    def test_question_is_required(self):
        with pytest.raises(ValidationError):
            GraphState()


@pytest.mark.unit
class TestWorkflowResult:
    def test_from_state(self):
        docs = [Document(page_content="a"), Document(page_content="b")]
        state = GraphState(
            question="q",
            documents=docs,
            generation="answer",
            route=Datasource.VECTORSTORE,
            groundedness_retries=2,
            workflow_steps=["Routed to vectorstore"],
        )

        result = WorkflowResult.from_state(state)

        assert result.question == "q"
        assert result.generation == "answer"
        assert result.documents_used_count == 2
        assert result.documents == docs
        assert result.route is Datasource.VECTORSTORE
        assert result.groundedness_retries == 2
        assert result.workflow_steps == ["Routed to vectorstore"]

"""State management for the agentic RAG workflow."""

from enum import Enum
from typing import List, Optional

from langchain_core.documents import Document
from pydantic import BaseModel, ConfigDict, Field

from agentic_rag.corrective.question_router import Datasource

# Node names
ROUTE = "route"
RETRIEVE = "retrieve"
GRADE_DOCUMENTS = "grade_documents"
WEB_SEARCH = "web_search"
GENERATE = "generate"
CHECK_GROUNDEDNESS = "check_groundedness"
INCREMENT_RETRY = "increment_retry"
CHECK_ANSWER_QUALITY = "check_answer_quality"


class Phase(str, Enum):
    """Which part of the flow the next generation belongs to."""

    INITIAL = "initial"
    REGENERATE = "regenerate"  # retry after a failed groundedness check
    CORRECTIVE = "corrective"  # single web-search backed retry after a failed answer check


class GraphState(BaseModel):
    """State of one workflow invocation.

    Nodes never mutate a state; they return the fields that change and the
    graph derives the next state from them.
    """

    model_config = ConfigDict(frozen=True)

    question: str  # Original user question
    documents: List[Document] = Field(default_factory=list)  # Current context passages
    generation: Optional[str] = None  # Latest generated answer
    web_search_needed: bool = False  # At least one retrieved document was irrelevant

    route: Optional[Datasource] = None  # Routing outcome
    phase: Phase = Phase.INITIAL
    groundedness_retries: int = 0  # Regenerations spent on the groundedness gate
    max_retries: int = 3
    is_grounded: Optional[bool] = None
    is_answer_good: Optional[bool] = None
    workflow_steps: List[str] = Field(default_factory=list)  # Log of workflow steps taken


class WorkflowResult(BaseModel):
    """Result returned to callers of the workflow."""

    question: str
    generation: Optional[str] = None
    documents_used_count: int = 0
    documents: List[Document] = Field(default_factory=list)
    route: Optional[Datasource] = None
    web_search_needed: bool = False
    groundedness_retries: int = 0
    workflow_steps: List[str] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: GraphState) -> "WorkflowResult":
        return cls(
            question=state.question,
            generation=state.generation,
            documents_used_count=len(state.documents),
            documents=list(state.documents),
            route=state.route,
            web_search_needed=state.web_search_needed,
            groundedness_retries=state.groundedness_retries,
            workflow_steps=list(state.workflow_steps),
        )

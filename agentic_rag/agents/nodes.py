"""Node implementations for the agentic RAG graph."""

from typing import Any, Dict, Optional

from langchain_core.runnables import RunnableConfig

from agentic_rag.agents.state import (
    CHECK_ANSWER_QUALITY,
    CHECK_GROUNDEDNESS,
    GENERATE,
    INCREMENT_RETRY,
    RETRIEVE,
    WEB_SEARCH,
    GraphState,
    Phase,
)
from agentic_rag.core.logging_config import get_logger
from agentic_rag.core.retriever import Retriever
from agentic_rag.core.tracing import StepTracer, preview
from agentic_rag.core.web_search import WebSearchGateway
from agentic_rag.corrective.answer_generator import AnswerGenerator
from agentic_rag.corrective.answer_verifier import AnswerVerifier
from agentic_rag.corrective.hallucination_checker import HallucinationChecker, join_documents
from agentic_rag.corrective.question_router import Datasource, QuestionRouter
from agentic_rag.corrective.relevance_grader import RelevanceGrader

logger = get_logger(__name__)

END = "end"

PARENT_RUN_KEY = "trace_parent_run_id"


def _parent_run_id(config: Optional[RunnableConfig]) -> Optional[str]:
    if not config:
        return None
    return config.get("configurable", {}).get(PARENT_RUN_KEY)


def _steps(state: GraphState, step: str) -> list:
    return [*state.workflow_steps, step]


class RAGNodes:
    """Workflow steps bound to their gateways and judgment services.

    One instance is shared by every invocation; all per-request data lives
    in the ``GraphState`` passed to each node.
    """

    def __init__(
        self,
        router: QuestionRouter,
        retriever: Retriever,
        relevance_grader: RelevanceGrader,
        generator: AnswerGenerator,
        web_search_gateway: WebSearchGateway,
        hallucination_checker: HallucinationChecker,
        answer_verifier: AnswerVerifier,
        tracer: Optional[StepTracer] = None,
    ) -> None:
        self.router = router
        self.retriever = retriever
        self.relevance_grader = relevance_grader
        self.generator = generator
        self.web_search_gateway = web_search_gateway
        self.hallucination_checker = hallucination_checker
        self.answer_verifier = answer_verifier
        self.tracer = tracer or StepTracer()

    def route_question(self, state: GraphState, config: Optional[RunnableConfig] = None) -> Dict[str, Any]:
        """
        Node to decide which datasource answers the question.

        Args:
            state: Current graph state

        Returns:
            State update with the route
        """
        logger.info("---ROUTE QUESTION---")
        with self.tracer.step(
            "chain", "RouteQuestion", {"question": state.question}, _parent_run_id(config)
        ) as outputs:
            decision = self.router.route(state.question)
            datasource = decision.to_datasource()
            outputs["datasource"] = decision.datasource
            outputs["route"] = datasource.value

        if datasource is Datasource.VECTORSTORE:
            logger.info("---ROUTE QUESTION TO RAG---")
        else:
            logger.info("---ROUTE QUESTION TO WEB SEARCH---")

        return {
            "route": datasource,
            "workflow_steps": _steps(state, f"Routed to {datasource.value}"),
        }

    def retrieve(self, state: GraphState, config: Optional[RunnableConfig] = None) -> Dict[str, Any]:
        """Node to retrieve documents from the vector store."""
        logger.info("---RETRIEVE---")
        with self.tracer.step(
            "retriever", "RetrieveDocuments", {"question": state.question}, _parent_run_id(config)
        ) as outputs:
            documents = self.retriever.retrieve(state.question)
            outputs["num_documents"] = len(documents)
            outputs["documents"] = [preview(doc.page_content) for doc in documents]

        logger.info(f"Retrieved {len(documents)} documents")
        return {
            "documents": documents,
            "workflow_steps": _steps(state, f"Retrieved {len(documents)} documents"),
        }

    def grade_documents(self, state: GraphState, config: Optional[RunnableConfig] = None) -> Dict[str, Any]:
        """
        Node to keep only the documents relevant to the question.

        Flags web search when any document was dropped.
        """
        logger.info("---CHECK DOCUMENT RELEVANCE TO QUESTION---")
        with self.tracer.step(
            "chain",
            "GradeDocuments",
            {"question": state.question, "num_documents": len(state.documents)},
            _parent_run_id(config),
        ) as outputs:
            relevant_docs, irrelevant_docs = self.relevance_grader.grade_documents(
                state.documents, state.question
            )
            web_search_needed = len(irrelevant_docs) > 0
            outputs["relevant_documents"] = len(relevant_docs)
            outputs["total_documents"] = len(state.documents)
            outputs["needs_web_search"] = web_search_needed

        return {
            "documents": relevant_docs,
            "web_search_needed": web_search_needed,
            "workflow_steps": _steps(
                state,
                f"Graded: {len(relevant_docs)} relevant, {len(irrelevant_docs)} irrelevant",
            ),
        }

    def web_search(self, state: GraphState, config: Optional[RunnableConfig] = None) -> Dict[str, Any]:
        """
        Node to append one web-search document to the context.

        An empty search result is appended as an empty document.
        """
        logger.info("---WEB SEARCH---")
        with self.tracer.step(
            "tool", "WebSearch", {"question": state.question}, _parent_run_id(config)
        ) as outputs:
            results = self.web_search_gateway.search(state.question)
            documents = [*state.documents, self.web_search_gateway.to_document(results)]
            outputs["search_results_length"] = len(results)
            outputs["total_documents"] = len(documents)

        if not results:
            logger.warning("Web search returned no content")

        return {
            "documents": documents,
            "workflow_steps": _steps(state, f"Web search: {len(results)} characters"),
        }

    def generate(self, state: GraphState, config: Optional[RunnableConfig] = None) -> Dict[str, Any]:
        """Node to generate an answer from the current documents."""
        logger.info("---GENERATE---")
        context = join_documents(state.documents)

        with self.tracer.step(
            "llm",
            "GenerateAnswer",
            {
                "question": state.question,
                "context": preview(context, 500),
                "num_documents": len(state.documents),
                "phase": state.phase.value,
            },
            _parent_run_id(config),
        ) as outputs:
            generation = self.generator.generate(context, state.question)
            outputs["generation"] = generation

        return {
            "generation": generation,
            "workflow_steps": _steps(state, "Answer generated"),
        }

    def check_groundedness(
        self, state: GraphState, config: Optional[RunnableConfig] = None
    ) -> Dict[str, Any]:
        """Node to check the generation against the documents it was built from."""
        logger.info("---CHECK HALLUCINATIONS---")
        with self.tracer.step(
            "chain",
            "CheckGroundedness",
            {"generation": preview(state.generation), "num_documents": len(state.documents)},
            _parent_run_id(config),
        ) as outputs:
            grade = self.hallucination_checker.grade(
                join_documents(state.documents), state.generation or ""
            )
            outputs["grounded"] = grade.grounded

        return {
            "is_grounded": grade.grounded,
            "workflow_steps": _steps(
                state,
                f"Hallucination check: {'grounded' if grade.grounded else 'not grounded'}",
            ),
        }

    def increment_retry(self, state: GraphState) -> Dict[str, Any]:
        """Node to count one regeneration against the retry cap."""
        retries = state.groundedness_retries + 1
        logger.info(f"---REGENERATE {retries}/{state.max_retries}---")
        return {
            "groundedness_retries": retries,
            "phase": Phase.REGENERATE,
            "workflow_steps": _steps(state, f"Regeneration {retries}"),
        }

    def check_answer_quality(
        self, state: GraphState, config: Optional[RunnableConfig] = None
    ) -> Dict[str, Any]:
        """
        Node to check that the generation addresses the question.

        A failed check moves the workflow into its single corrective pass.
        """
        logger.info("---GRADE GENERATION vs QUESTION---")
        with self.tracer.step(
            "chain",
            "CheckAnswerQuality",
            {"question": state.question, "generation": preview(state.generation)},
            _parent_run_id(config),
        ) as outputs:
            grade = self.answer_verifier.grade(state.question, state.generation or "")
            outputs["addresses_question"] = grade.addresses_question

        update: Dict[str, Any] = {
            "is_answer_good": grade.addresses_question,
            "workflow_steps": _steps(
                state,
                f"Answer verification: {'passed' if grade.addresses_question else 'needs improvement'}",
            ),
        }
        if not grade.addresses_question:
            update["phase"] = Phase.CORRECTIVE
        return update


# Conditional edge functions


def decide_route(state: GraphState) -> str:
    """Send vector store questions to retrieval, everything else to web search."""
    if state.route is Datasource.VECTORSTORE:
        return RETRIEVE
    return WEB_SEARCH


def decide_to_generate(state: GraphState) -> str:
    """
    Determine whether to supplement the graded documents with a web search.

    Returns:
        Next node name
    """
    logger.info("---ASSESS GRADED DOCUMENTS---")
    if state.web_search_needed:
        logger.info("---DECISION: NOT ALL DOCUMENTS ARE RELEVANT TO THE QUESTION---")
        return WEB_SEARCH
    logger.info("---DECISION: GENERATE---")
    return GENERATE


def decide_after_generation(state: GraphState) -> str:
    """
    Determine whether a generation goes through the quality gate.

    The pure web-search route ends right after generation without any
    quality checks, and so does the corrective pass.
    """
    if state.route is not Datasource.VECTORSTORE:
        logger.info("---DECISION: WEB SEARCH ROUTE, SKIPPING QUALITY CHECKS---")
        return END
    if state.phase is Phase.CORRECTIVE:
        logger.info("---DECISION: CORRECTIVE GENERATION DONE---")
        return END
    return CHECK_GROUNDEDNESS


def decide_after_groundedness(state: GraphState) -> str:
    """
    Determine next step after the groundedness check.

    Returns:
        Next node name
    """
    if state.is_grounded:
        logger.info("---DECISION: GENERATION IS GROUNDED IN DOCUMENTS---")
        return CHECK_ANSWER_QUALITY
    if state.groundedness_retries < state.max_retries:
        logger.info("---DECISION: GENERATION IS NOT GROUNDED IN DOCUMENTS, RE-TRY---")
        return INCREMENT_RETRY
    logger.warning(
        f"Decision: answer still not grounded after {state.groundedness_retries} "
        "regenerations, returning last generation"
    )
    return END


def decide_after_answer_check(state: GraphState) -> str:
    """
    Determine whether to end or run the corrective web search pass.

    Returns:
        Next node name
    """
    if state.is_answer_good:
        logger.info("---DECISION: GENERATION ADDRESSES QUESTION---")
        return END
    logger.info("---DECISION: GENERATION DOES NOT ADDRESS QUESTION---")
    return WEB_SEARCH

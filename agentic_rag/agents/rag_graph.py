"""LangGraph workflow for the agentic RAG agent."""

import asyncio
from typing import Optional

from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph

from agentic_rag.agents import nodes
from agentic_rag.agents.nodes import PARENT_RUN_KEY, RAGNodes
from agentic_rag.agents.state import (
    CHECK_ANSWER_QUALITY,
    CHECK_GROUNDEDNESS,
    GENERATE,
    GRADE_DOCUMENTS,
    INCREMENT_RETRY,
    RETRIEVE,
    ROUTE,
    WEB_SEARCH,
    GraphState,
    WorkflowResult,
)
from agentic_rag.core.config import Settings, get_settings
from agentic_rag.core.logging_config import get_logger
from agentic_rag.core.retriever import Retriever
from agentic_rag.core.tracing import StepTracer, TraceSink, create_trace_sink, preview
from agentic_rag.core.vector_store import VectorStoreManager
from agentic_rag.core.web_search import WebSearchGateway
from agentic_rag.corrective.answer_generator import AnswerGenerator
from agentic_rag.corrective.answer_verifier import AnswerVerifier
from agentic_rag.corrective.hallucination_checker import HallucinationChecker
from agentic_rag.corrective.question_router import QuestionRouter
from agentic_rag.corrective.relevance_grader import RelevanceGrader

logger = get_logger(__name__)


def create_rag_graph(rag_nodes: RAGNodes) -> CompiledStateGraph:
    """
    Wire the routing, retrieval, grading, generation and self-correction steps.

    Args:
        rag_nodes: Node implementations bound to their services

    Returns:
        Compiled LangGraph workflow
    """
    workflow = StateGraph(GraphState)

    workflow.add_node(ROUTE, rag_nodes.route_question)
    workflow.add_node(RETRIEVE, rag_nodes.retrieve)
    workflow.add_node(GRADE_DOCUMENTS, rag_nodes.grade_documents)
    workflow.add_node(WEB_SEARCH, rag_nodes.web_search)
    workflow.add_node(GENERATE, rag_nodes.generate)
    workflow.add_node(CHECK_GROUNDEDNESS, rag_nodes.check_groundedness)
    workflow.add_node(INCREMENT_RETRY, rag_nodes.increment_retry)
    workflow.add_node(CHECK_ANSWER_QUALITY, rag_nodes.check_answer_quality)

    workflow.add_edge(START, ROUTE)

    workflow.add_conditional_edges(
        ROUTE,
        nodes.decide_route,
        {RETRIEVE: RETRIEVE, WEB_SEARCH: WEB_SEARCH},
    )

    workflow.add_edge(RETRIEVE, GRADE_DOCUMENTS)

    workflow.add_conditional_edges(
        GRADE_DOCUMENTS,
        nodes.decide_to_generate,
        {WEB_SEARCH: WEB_SEARCH, GENERATE: GENERATE},
    )

    workflow.add_edge(WEB_SEARCH, GENERATE)

    workflow.add_conditional_edges(
        GENERATE,
        nodes.decide_after_generation,
        {CHECK_GROUNDEDNESS: CHECK_GROUNDEDNESS, nodes.END: END},
    )

    workflow.add_conditional_edges(
        CHECK_GROUNDEDNESS,
        nodes.decide_after_groundedness,
        {
            CHECK_ANSWER_QUALITY: CHECK_ANSWER_QUALITY,
            INCREMENT_RETRY: INCREMENT_RETRY,
            nodes.END: END,
        },
    )

    workflow.add_edge(INCREMENT_RETRY, GENERATE)

    workflow.add_conditional_edges(
        CHECK_ANSWER_QUALITY,
        nodes.decide_after_answer_check,
        {nodes.END: END, WEB_SEARCH: WEB_SEARCH},
    )

    return workflow.compile()


def recursion_limit(max_retries: int) -> int:
    """Upper bound on graph steps for a given retry cap.

    Each regeneration costs three steps (increment, generate, check); the
    longest fixed path around them is nine steps.
    """
    return 3 * max_retries + 12


class AgenticRAGWorkflow:
    """Answers questions with routing, grading and bounded self-correction.

    Instances hold no per-request state and can serve concurrent invocations.
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
        trace_sink: Optional[TraceSink] = None,
        max_retries: int = 3,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        self.tracer = StepTracer(trace_sink)
        self.max_retries = max_retries
        self.nodes = RAGNodes(
            router=router,
            retriever=retriever,
            relevance_grader=relevance_grader,
            generator=generator,
            web_search_gateway=web_search_gateway,
            hallucination_checker=hallucination_checker,
            answer_verifier=answer_verifier,
            tracer=self.tracer,
        )
        self.graph = create_rag_graph(self.nodes)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        vector_store_manager: Optional[VectorStoreManager] = None,
        trace_sink: Optional[TraceSink] = None,
    ) -> "AgenticRAGWorkflow":
        """
        Build a workflow with the configured models and gateways.

        Args:
            settings: Settings to use, defaults to the environment settings
            vector_store_manager: Optional pre-initialized vector store manager
            trace_sink: Optional sink, defaults to the TRACE_BACKEND sink
        """
        settings = settings or get_settings()
        if vector_store_manager is None:
            vector_store_manager = VectorStoreManager(persist_directory=settings.chroma_persist_dir)

        return cls(
            router=QuestionRouter(),
            retriever=Retriever(vector_store_manager, k=settings.retrieval_k),
            relevance_grader=RelevanceGrader(),
            generator=AnswerGenerator(),
            web_search_gateway=WebSearchGateway(
                api_key=settings.tavily_api_key,
                max_results=settings.web_search_max_results,
                timeout=settings.web_search_timeout,
            ),
            hallucination_checker=HallucinationChecker(),
            answer_verifier=AnswerVerifier(),
            trace_sink=trace_sink if trace_sink is not None else create_trace_sink(settings),
            max_retries=settings.max_retries,
        )

    def invoke(self, question: str) -> WorkflowResult:
        """
        Run the workflow for one question.

        Args:
            question: User's question

        Returns:
            Final answer with the documents it was generated from

        Raises:
            ValueError: If the question is empty
            AgenticRAGError: If a step fails fatally
        """
        if not question or not question.strip():
            raise ValueError("question must not be empty")

        logger.info(f"Starting workflow for question: {question}")

        run_id = self.tracer.start("chain", "AgenticRAGWorkflow", {"question": question})
        try:
            final_values = self.graph.invoke(
                {"question": question, "max_retries": self.max_retries},
                config={
                    "recursion_limit": recursion_limit(self.max_retries),
                    "configurable": {PARENT_RUN_KEY: run_id},
                },
            )
            state = GraphState.model_validate(final_values)
        except Exception as e:
            logger.error(f"Workflow failed for question '{question}': {e}")
            self.tracer.end(run_id, error=f"{type(e).__name__}: {e}")
            raise

        self.tracer.end(
            run_id,
            {
                "question": state.question,
                "answer": preview(state.generation, 500),
                "documents_used": len(state.documents),
            },
        )

        logger.info(f"Workflow completed. Final answer: {state.generation}")
        return WorkflowResult.from_state(state)

    async def ainvoke(self, question: str) -> WorkflowResult:
        """Run the workflow in a worker thread."""
        return await asyncio.to_thread(self.invoke, question)


def query_rag_agent(
    question: str,
    max_iterations: Optional[int] = None,
    vector_store_manager: Optional[VectorStoreManager] = None,
) -> WorkflowResult:
    """
    Query the agent with a question using the configured services.

    Args:
        question: User's question
        max_iterations: Groundedness retry cap, defaults to MAX_RETRIES
        vector_store_manager: Optional pre-initialized vector store manager

    Returns:
        Final workflow result
    """
    settings = get_settings()
    if max_iterations is not None:
        settings = settings.model_copy(update={"max_retries": max_iterations})

    workflow = AgenticRAGWorkflow.from_settings(settings, vector_store_manager)
    return workflow.invoke(question)


async def async_query_rag_agent(
    question: str,
    max_iterations: Optional[int] = None,
    vector_store_manager: Optional[VectorStoreManager] = None,
) -> WorkflowResult:
    """Async wrapper that offloads the blocking workflow to a thread."""
    return await asyncio.to_thread(
        query_rag_agent, question, max_iterations, vector_store_manager
    )

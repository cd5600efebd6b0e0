"""Run the agentic RAG workflow for a single question."""

import sys

from agentic_rag.agents.rag_graph import AgenticRAGWorkflow
from agentic_rag.core.logging_config import get_logger, setup_logging_from_env
from agentic_rag.core.telemetry import setup_telemetry

logger = get_logger(__name__)

DEFAULT_QUESTION = "How to make pizza?"


def main(argv: list[str] | None = None) -> int:
    setup_logging_from_env()
    setup_telemetry()

    args = sys.argv[1:] if argv is None else argv
    question = " ".join(args).strip() or DEFAULT_QUESTION

    workflow = AgenticRAGWorkflow.from_settings()
    result = workflow.invoke(question)

    logger.info("=" * 80)
    logger.info(f"Question: {result.question}")
    logger.info(f"Route: {result.route.value if result.route else 'n/a'}")
    logger.info(f"Documents used: {result.documents_used_count}")
    logger.info(f"Groundedness retries: {result.groundedness_retries}")
    logger.info("Workflow steps:")
    for step in result.workflow_steps:
        logger.info(f"  - {step}")
    logger.info(f"Answer: {result.generation}")
    logger.info("=" * 80)

    print(result.generation or "")
    return 0


if __name__ == "__main__":
    sys.exit(main())

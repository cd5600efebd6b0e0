"""Groundedness check for generated answers."""

from typing import List, Optional

from langchain_core.documents import Document
from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from agentic_rag.core.llm import create_chat_model
from agentic_rag.core.logging_config import get_logger
from agentic_rag.corrective.structured_output import invoke_structured

logger = get_logger(__name__)


class GradeHallucinations(BaseModel):
    """Binary score for hallucination present in a generated answer."""

    grounded: bool = Field(
        description="Answer is grounded in / supported by the facts, true or false"
    )


def join_documents(documents: List[Document]) -> str:
    """Concatenate document texts with blank lines between them."""
    return "\n\n".join(doc.page_content for doc in documents)


class HallucinationChecker:
    """Checks whether generated answers are grounded in the context they were given."""

    def __init__(self, llm: Optional[BaseChatModel] = None) -> None:
        """
        Initialize the hallucination checker.

        Args:
            llm: Chat model, defaults to the configured model
        """
        self.llm = llm or create_chat_model(temperature=0)

        self.prompt = ChatPromptTemplate.from_messages(
            [
                (
                    "system",
                    """You are a grader assessing whether an LLM generation is grounded in / supported by a set of retrieved facts.
Give a binary score true or false. True means that the answer is grounded in / supported by the set of facts.""",
                ),
                ("human", "Set of facts:\n\n{documents}\n\nLLM generation: {generation}"),
            ]
        )

        self.chain = self.prompt | self.llm.with_structured_output(GradeHallucinations)

    def grade(self, documents: str, generation: str) -> GradeHallucinations:
        """
        Grade a generation against the concatenated context.

        Args:
            documents: Concatenated document texts
            generation: Generated answer to check

        Raises:
            StructuredOutputError: If the model output cannot be parsed
        """
        result = invoke_structured(
            self.chain,
            {"documents": documents, "generation": generation},
            GradeHallucinations,
            "HallucinationChecker",
        )

        if result.grounded:
            logger.info("Answer is grounded in documents")
        else:
            logger.warning("Answer contains hallucinations")

        return result

    def check(self, documents: List[Document], generation: str) -> bool:
        """
        Check if a generation is grounded in the documents.

        Returns:
            True if grounded, False if hallucinated
        """
        return self.grade(join_documents(documents), generation).grounded

"""Answer quality verification."""

from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from agentic_rag.core.llm import create_chat_model
from agentic_rag.core.logging_config import get_logger
from agentic_rag.corrective.structured_output import invoke_structured

logger = get_logger(__name__)


class GradeAnswer(BaseModel):
    """Binary score to assess whether an answer addresses the question."""

    addresses_question: bool = Field(
        description="Answer addresses / resolves the question, true or false"
    )


class AnswerVerifier:
    """Verifies that generated answers address the user's question."""

    def __init__(self, llm: Optional[BaseChatModel] = None) -> None:
        """
        Initialize the answer verifier.

        Args:
            llm: Chat model, defaults to the configured model
        """
        self.llm = llm or create_chat_model(temperature=0)

        self.prompt = ChatPromptTemplate.from_messages(
            [
                (
                    "system",
                    """You are a grader assessing whether an answer addresses / resolves a question.
Give a binary score true or false. True means that the answer resolves the question.""",
                ),
                ("human", "User question:\n\n{question}\n\nLLM generation: {generation}"),
            ]
        )

        self.chain = self.prompt | self.llm.with_structured_output(GradeAnswer)

    def grade(self, question: str, generation: str) -> GradeAnswer:
        """
        Grade whether an answer addresses the question.

        Raises:
            StructuredOutputError: If the model output cannot be parsed
        """
        result = invoke_structured(
            self.chain,
            {"question": question, "generation": generation},
            GradeAnswer,
            "AnswerVerifier",
        )

        if result.addresses_question:
            logger.info("Answer properly addresses the question")
        else:
            logger.warning("Answer needs improvement")

        return result

    def verify(self, question: str, generation: str) -> bool:
        """Return True if the answer addresses the question."""
        return self.grade(question, generation).addresses_question

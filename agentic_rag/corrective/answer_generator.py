"""Answer generation from retrieved context."""

from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from agentic_rag.core.exceptions import GenerationError
from agentic_rag.core.llm import create_chat_model
from agentic_rag.core.logging_config import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are an assistant for question-answering tasks.
Use the following pieces of retrieved context to answer the question.
If you don't know the answer, just say that you don't know.
Use three sentences maximum and keep the answer concise."""


class AnswerGenerator:
    """Answers a question from a block of context."""

    def __init__(self, llm: Optional[BaseChatModel] = None) -> None:
        self.llm = llm or create_chat_model()
        self.prompt = ChatPromptTemplate.from_messages(
            [
                ("system", SYSTEM_PROMPT),
                ("human", "Question: {question}\nContext: {context}\nAnswer:"),
            ]
        )
        self.chain = self.prompt | self.llm | StrOutputParser()

    def generate(self, context: str, question: str) -> str:
        """
        Generate an answer.

        Args:
            context: Concatenated document texts
            question: User question

        Returns:
            Answer text

        Raises:
            GenerationError: If the LLM call fails
        """
        try:
            generation = self.chain.invoke({"question": question, "context": context})
        except Exception as e:
            logger.error(f"Error generating answer: {e}", exc_info=True)
            raise GenerationError(f"Answer generation failed: {e}") from e

        logger.info(f"Generated answer: {generation[:100]}...")
        logger.debug(f"Full answer: {generation}")
        return generation

"""Document relevance grading."""

from typing import List, Optional, Tuple

from langchain_core.documents import Document
from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from agentic_rag.core.llm import create_chat_model
from agentic_rag.core.logging_config import get_logger
from agentic_rag.corrective.structured_output import invoke_structured

logger = get_logger(__name__)


class GradeDocuments(BaseModel):
    """Binary score for relevance check on a retrieved document."""

    relevant: bool = Field(description="Document is relevant to the question, true or false")


class RelevanceGrader:
    """Grades retrieved documents for relevance to the query."""

    def __init__(self, llm: Optional[BaseChatModel] = None) -> None:
        """
        Initialize the relevance grader.

        Args:
            llm: Chat model, defaults to the configured model
        """
        self.llm = llm or create_chat_model(temperature=0)

        self.prompt = ChatPromptTemplate.from_messages(
            [
                (
                    "system",
                    """You are a grader assessing relevance of a retrieved document to a user question.
If the document contains keyword(s) or semantic meaning related to the question, grade it as relevant.
Give a binary score true or false to indicate whether the document is relevant to the question.""",
                ),
                ("human", "Retrieved document:\n\n{document}\n\nUser question: {question}"),
            ]
        )

        self.chain = self.prompt | self.llm.with_structured_output(GradeDocuments)

    def grade(self, document: str, question: str) -> GradeDocuments:
        """
        Grade a single document text for relevance.

        Args:
            document: Document text
            question: User question

        Returns:
            The relevance grade

        Raises:
            StructuredOutputError: If the model output cannot be parsed
        """
        return invoke_structured(
            self.chain,
            {"document": document, "question": question},
            GradeDocuments,
            "RelevanceGrader",
        )

    def grade_documents(
        self,
        documents: List[Document],
        question: str,
    ) -> Tuple[List[Document], List[Document]]:
        """
        Grade documents one by one and split them by relevance.

        Args:
            documents: Documents to grade, in retrieval order
            question: User question

        Returns:
            Tuple of (relevant_documents, irrelevant_documents), order preserved
        """
        relevant_docs = []
        irrelevant_docs = []

        for doc in documents:
            if self.grade(doc.page_content, question).relevant:
                logger.info("---GRADE: DOCUMENT RELEVANT---")
                relevant_docs.append(doc)
            else:
                logger.info("---GRADE: DOCUMENT NOT RELEVANT---")
                irrelevant_docs.append(doc)

        logger.info(
            f"Graded {len(documents)} documents: "
            f"{len(relevant_docs)} relevant, {len(irrelevant_docs)} irrelevant"
        )

        return relevant_docs, irrelevant_docs

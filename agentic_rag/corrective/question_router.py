"""Routing of questions to the vector store or web search."""

from enum import Enum
from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from agentic_rag.core.llm import create_chat_model
from agentic_rag.core.logging_config import get_logger
from agentic_rag.corrective.structured_output import invoke_structured

logger = get_logger(__name__)


class Datasource(str, Enum):
    """Retrieval source chosen for a question."""

    VECTORSTORE = "vectorstore"
    WEB_SEARCH = "web_search"


class RouteQuery(BaseModel):
    """Route a user question to the most relevant datasource."""

    datasource: str = Field(
        description="Datasource to route to: 'vectorstore' or 'web_search'"
    )

    def to_datasource(self) -> Datasource:
        """
        Interpret the model's choice.

        Anything other than a recognised datasource falls back to web search.
        """
        value = (self.datasource or "").strip().lower()
        try:
            return Datasource(value)
        except ValueError:
            logger.warning(f"Unrecognized datasource '{self.datasource}', using web search")
            return Datasource.WEB_SEARCH


SYSTEM_PROMPT = """You are an expert at routing a user question to a vectorstore or web_search.
The vectorstore contains documents related to agents, prompt engineering and adversarial attacks.
Use the vectorstore for questions on these topics. For everything else, use web_search.
Return either 'vectorstore' or 'web_search' as the datasource."""


class QuestionRouter:
    """Decides which retrieval source should answer a question."""

    def __init__(self, llm: Optional[BaseChatModel] = None) -> None:
        """
        Initialize the router.

        Args:
            llm: Chat model, defaults to the configured model
        """
        self.llm = llm or create_chat_model(temperature=0)
        self.prompt = ChatPromptTemplate.from_messages(
            [("system", SYSTEM_PROMPT), ("human", "Question: {question}")]
        )
        self.chain = self.prompt | self.llm.with_structured_output(RouteQuery)

    def route(self, question: str) -> RouteQuery:
        """
        Route a question.

        Raises:
            StructuredOutputError: If the model output cannot be parsed
        """
        result = invoke_structured(self.chain, {"question": question}, RouteQuery, "QuestionRouter")
        logger.info(f"Routing decision: {result.datasource}")
        return result

"""Retrieval gateway over the vector store."""

from typing import Any, Dict, List, Optional

from langchain_core.documents import Document

from agentic_rag.core.exceptions import RetrievalError
from agentic_rag.core.logging_config import get_logger
from agentic_rag.core.vector_store import VectorStoreManager

logger = get_logger(__name__)


class Retriever:
    """Returns the passages most similar to a query."""

    def __init__(self, vector_store_manager: VectorStoreManager, k: int = 4) -> None:
        """
        Initialize the retriever.

        Args:
            vector_store_manager: Vector store manager instance
            k: Default number of documents to retrieve
        """
        self.vector_store_manager = vector_store_manager
        self.k = k

    def retrieve(
        self,
        query: str,
        k: Optional[int] = None,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[Document]:
        """
        Retrieve up to k documents ordered by descending similarity.

        An empty list is a valid result.

        Args:
            query: Search query
            k: Number of documents, defaults to the retriever's k
            filter: Optional metadata filter

        Returns:
            List of documents, most similar first

        Raises:
            RetrievalError: If the vector store cannot be queried
        """
        k = k or self.k
        logger.info(f"Retrieving documents for query: {query}")

        try:
            scored = self.vector_store_manager.similarity_search_with_score(
                query, k=k, filter=filter
            )
        except Exception as e:
            logger.error(f"Vector store search failed: {e}", exc_info=True)
            raise RetrievalError(f"Vector store search failed: {e}") from e

        # sorted() is stable, so equal scores keep the store's order
        ranked = sorted(scored, key=lambda pair: pair[1], reverse=True)
        return [doc for doc, _ in ranked[:k]]

"""Web search gateway backed by Tavily."""

from typing import Any, Optional

from langchain_core.documents import Document

from agentic_rag.core.logging_config import get_logger

logger = get_logger(__name__)

WEB_SEARCH_SOURCE = "web_search"


class WebSearchGateway:
    """Runs a web search and flattens the results into one passage."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_results: int = 3,
        timeout: float = 10.0,
        client: Any = None,
    ) -> None:
        """
        Initialize the web search gateway.

        Args:
            api_key: Tavily API key
            max_results: Default number of results per search
            timeout: Seconds per search request
            client: Optional pre-built Tavily client
        """
        if client is None:
            from tavily import TavilyClient

            client = TavilyClient(api_key=api_key)
        self.client = client
        self.max_results = max_results
        self.timeout = timeout

    def search(self, query: str, max_results: Optional[int] = None) -> str:
        """
        Search the web and join the result contents with spaces.

        Never raises: transport errors, error responses and malformed
        payloads all yield an empty string.

        Args:
            query: Search query
            max_results: Number of results, defaults to the gateway's setting

        Returns:
            Concatenated result content, or "" if nothing usable came back
        """
        logger.info(f"Performing web search for: {query}")
        try:
            response = self.client.search(
                query=query,
                max_results=max_results or self.max_results,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"Web search failed for '{query[:50]}': {e}")
            return ""

        results = response.get("results") if isinstance(response, dict) else None
        if not isinstance(results, list):
            logger.warning("Web search returned a malformed response")
            return ""

        contents = [
            r["content"]
            for r in results
            if isinstance(r, dict) and isinstance(r.get("content"), str)
        ]
        logger.info(f"Web search returned {len(contents)} results")
        return " ".join(contents)

    @staticmethod
    def to_document(text: str) -> Document:
        """Wrap search text as the synthetic web-search document."""
        return Document(page_content=text, metadata={"source": WEB_SEARCH_SOURCE})

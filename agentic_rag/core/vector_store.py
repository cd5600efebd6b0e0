"""Vector store management using ChromaDB."""

import os
from typing import Any, Dict, List, Optional, Tuple

import httpx
from langchain_chroma import Chroma
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_text_splitters import RecursiveCharacterTextSplitter
from trafilatura import extract as tf_extract

from agentic_rag.core.embeddings import get_embeddings
from agentic_rag.core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_COLLECTION = "agentic_rag"


class VectorStoreManager:
    """Manages the ChromaDB collection used for retrieval and ingestion."""

    def __init__(
        self,
        persist_directory: str = "./chroma_db",
        collection_name: str = DEFAULT_COLLECTION,
        embeddings: Optional[Embeddings] = None,
    ) -> None:
        """
        Initialize the vector store manager.

        Args:
            persist_directory: Directory path for persisting the vector store
            collection_name: Chroma collection holding the passages
            embeddings: Embedding model, defaults to the configured HuggingFace model
        """
        self.persist_directory = persist_directory
        self.collection_name = collection_name
        self.embeddings = embeddings if embeddings is not None else get_embeddings()
        self.vector_store: Optional[Chroma] = None
        self._initialize_vector_store()

    def _initialize_vector_store(self) -> None:
        """Open (or create) the persisted Chroma collection."""
        existed = os.path.exists(self.persist_directory) and bool(os.listdir(self.persist_directory))
        self.vector_store = Chroma(
            collection_name=self.collection_name,
            persist_directory=self.persist_directory,
            embedding_function=self.embeddings,
        )
        action = "Loaded existing" if existed else "Created new"
        logger.info(f"{action} vector store at {self.persist_directory}")

    def add_documents(self, documents: List[Document]) -> List[str]:
        """
        Add documents to the vector store.

        Args:
            documents: List of Document objects to add

        Returns:
            List of document IDs
        """
        if not documents:
            return []

        ids = self.vector_store.add_documents(documents)
        logger.info(f"Added {len(documents)} documents to vector store")
        return ids

    def ingest_text_documents(
        self,
        texts: List[str],
        metadatas: Optional[List[Dict[str, Any]]] = None,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
    ) -> List[str]:
        """
        Split texts into chunks and add them to the store.

        Args:
            texts: List of text strings to ingest
            metadatas: Optional metadata for each text
            chunk_size: Size of text chunks
            chunk_overlap: Overlap between chunks

        Returns:
            List of document IDs
        """
        text_splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=["\n\n", "\n", " ", ""],
        )

        documents = []
        for i, text in enumerate(texts):
            base = metadatas[i] if metadatas and i < len(metadatas) else {}
            for j, chunk in enumerate(text_splitter.split_text(text)):
                metadata = {str(k): str(v) for k, v in base.items()}
                metadata.update({"chunk_id": str(j), "source_id": str(i)})
                documents.append(Document(page_content=chunk, metadata=metadata))

        return self.add_documents(documents)

    def ingest_files(
        self, file_paths: List[str], chunk_size: int = 1000, chunk_overlap: int = 200
    ) -> List[str]:
        """
        Ingest documents from local text files.

        Unreadable files are logged and skipped.
        """
        texts = []
        metadatas = []

        for file_path in file_paths:
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    texts.append(f.read())
                metadatas.append({"source": file_path, "filename": os.path.basename(file_path)})
            except OSError as e:
                logger.error(f"Error reading file {file_path}: {e}")

        return self.ingest_text_documents(texts, metadatas, chunk_size, chunk_overlap)

    def ingest_urls(
        self,
        urls: List[str],
        chunk_size: int = 250,
        chunk_overlap: int = 0,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> List[str]:
        """
        Download pages and ingest their extracted article text.

        URLs that fail to download, or have no extractable text, are logged
        and skipped.

        Args:
            urls: Pages to ingest
            chunk_size: Size of text chunks
            chunk_overlap: Overlap between chunks
            timeout: Seconds per request
            client: Optional HTTP client to reuse

        Returns:
            List of document IDs
        """
        logger.info(f"Starting ingestion of {len(urls)} URLs")
        texts = []
        metadatas = []

        owns_client = client is None
        client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        try:
            for url in urls:
                try:
                    response = client.get(url)
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    logger.error(f"Error loading document from URL {url}: {e}")
                    continue
                text = tf_extract(response.text, url=url)
                if not text:
                    logger.warning(f"No text extracted from URL {url}")
                    continue
                texts.append(text)
                metadatas.append({"source": url})
                logger.info(f"Loaded document from: {url}")
        finally:
            if owns_client:
                client.close()

        ids = self.ingest_text_documents(texts, metadatas, chunk_size, chunk_overlap)
        logger.info(f"Ingestion completed. Stored {len(ids)} segments")
        return ids

    def similarity_search_with_score(
        self, query: str, k: int = 4, filter: Optional[Dict[str, Any]] = None
    ) -> List[Tuple[Document, float]]:
        """
        Nearest-neighbour search returning (document, relevance score) pairs.

        Scores are normalized so that higher means more similar.
        """
        return self.vector_store.similarity_search_with_relevance_scores(
            query, k=k, filter=filter
        )

    def similarity_search(
        self, query: str, k: int = 4, filter: Optional[Dict[str, Any]] = None
    ) -> List[Document]:
        """Nearest-neighbour search returning documents only."""
        return self.vector_store.similarity_search(query, k=k, filter=filter)

    def clear(self) -> None:
        """Delete the collection and start an empty one."""
        if self.vector_store:
            self.vector_store.delete_collection()
            logger.info("Cleared vector store")
            self._initialize_vector_store()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the vector store.

        Returns:
            Dictionary with document count and storage location
        """
        try:
            count = self.vector_store._collection.count()
            return {"document_count": count, "persist_directory": self.persist_directory}
        except Exception as e:
            return {"error": str(e), "persist_directory": self.persist_directory}

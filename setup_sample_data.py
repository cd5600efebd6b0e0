"""
Script to ingest sample documents into the vector store.

Downloads the agent, prompt engineering and adversarial attack articles the
router sends to the vector store, plus any .txt files under data/documents.
"""

from pathlib import Path

from agentic_rag.core.config import get_settings
from agentic_rag.core.logging_config import get_logger, setup_logging_from_env
from agentic_rag.core.vector_store import VectorStoreManager

logger = get_logger(__name__)

SAMPLE_URLS = [
    "https://lilianweng.github.io/posts/2023-06-23-agent/",
    "https://lilianweng.github.io/posts/2023-03-15-prompt-engineering/",
    "https://lilianweng.github.io/posts/2023-10-25-adv-attack-llm/",
]


def ingest_sample_documents(documents_dir: str = "data/documents") -> None:
    """Ingest the sample URLs and local text files."""

    logger.info("=" * 80)
    logger.info("Agentic RAG - Sample Data Setup")
    logger.info("=" * 80)

    logger.info("1. Initializing vector store...")
    settings = get_settings()
    vector_store_manager = VectorStoreManager(persist_directory=settings.chroma_persist_dir)

    logger.info(f"2. Ingesting {len(SAMPLE_URLS)} sample URLs:")
    for url in SAMPLE_URLS:
        logger.info(f"   - {url}")
    url_ids = vector_store_manager.ingest_urls(SAMPLE_URLS)
    logger.info(f"Stored {len(url_ids)} chunks from URLs")

    doc_files = sorted(Path(documents_dir).glob("*.txt"))
    if doc_files:
        logger.info(f"3. Ingesting {len(doc_files)} local documents from {documents_dir}")
        file_ids = vector_store_manager.ingest_files([str(f) for f in doc_files])
        logger.info(f"Stored {len(file_ids)} chunks from files")
    else:
        logger.info(f"3. No .txt files found in {documents_dir}, skipping")

    stats = vector_store_manager.get_stats()
    logger.info("4. Vector Store Statistics:")
    logger.info(f"   - Total document chunks: {stats.get('document_count', 0)}")
    logger.info(f"   - Storage location: {stats.get('persist_directory', 'N/A')}")

    logger.info("=" * 80)
    logger.info("Setup Complete!")
    logger.info("=" * 80)
    logger.info("You can now:")
    logger.info('1. Ask a question: python main.py "What are LLM agents?"')
    logger.info("2. Run the FastAPI server: uvicorn agentic_rag.api.main:app --reload")


if __name__ == "__main__":
    setup_logging_from_env()
    ingest_sample_documents()

"""Embedding model setup for the vector store."""

from typing import Optional

from langchain_huggingface import HuggingFaceEmbeddings

from agentic_rag.core.config import get_settings


def get_embeddings(model_name: Optional[str] = None) -> HuggingFaceEmbeddings:
    """
    Initialize and return the HuggingFace embeddings model.

    Defaults to the EMBEDDING_MODEL setting
    (sentence-transformers/all-MiniLM-L6-v2 unless overridden).

    Args:
        model_name: Optional sentence-transformers model name

    Returns:
        HuggingFaceEmbeddings: Configured embeddings model
    """
    return HuggingFaceEmbeddings(
        model_name=model_name or get_settings().embedding_model,
        model_kwargs={"device": "cpu"},
        encode_kwargs={"normalize_embeddings": True},
    )

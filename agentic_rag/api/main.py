"""FastAPI backend for the agentic RAG workflow."""

import asyncio
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from agentic_rag.agents.rag_graph import AgenticRAGWorkflow
from agentic_rag.core.config import get_settings
from agentic_rag.core.logging_config import get_logger, setup_logging_from_env
from agentic_rag.core.telemetry import setup_telemetry
from agentic_rag.core.vector_store import VectorStoreManager

logger = get_logger(__name__)

# Shared, stateless per request
vector_store_manager: VectorStoreManager | None = None
workflow: AgenticRAGWorkflow | None = None


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the vector store and workflow on startup."""
    global vector_store_manager, workflow
    setup_logging_from_env()
    setup_telemetry()

    settings = get_settings()
    vector_store_manager = await asyncio.to_thread(
        VectorStoreManager, persist_directory=settings.chroma_persist_dir
    )
    workflow = await asyncio.to_thread(
        AgenticRAGWorkflow.from_settings, settings, vector_store_manager
    )
    logger.info("Workflow initialized")
    yield
    logger.info("Application shutting down")


# ---------------------------------------------------------------------------
# App & middleware
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Agentic RAG API",
    description="Question answering with routing, document grading and self-correction",
    version="1.0.0",
    lifespan=lifespan,
)

cors_origins_str = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:8000,http://127.0.0.1:3000,http://127.0.0.1:8000",
)
cors_origins = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class QueryRequest(BaseModel):
    """Request model for query endpoint."""

    question: str = Field(..., min_length=1, description="User's question")


class SourceDocument(BaseModel):
    """A passage the answer was generated from."""

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueryResponse(BaseModel):
    """Response model for query endpoint."""

    question: str = Field(..., description="Original question")
    answer: str = Field(..., description="Generated answer")
    documents_used_count: int = Field(0, description="Number of documents in the final context")
    route: str | None = Field(None, description="Datasource the question was routed to")
    web_search_used: bool = Field(False, description="Whether web search contributed context")
    groundedness_retries: int = Field(0, description="Regenerations on the groundedness gate")
    workflow_steps: list[str] = Field([], description="List of workflow steps taken")
    sources: list[SourceDocument] = Field([], description="Documents used as context")


class IngestRequest(BaseModel):
    """Request model for text ingestion."""

    texts: list[str] = Field(..., description="List of texts to ingest")
    metadatas: list[dict[str, Any]] | None = Field(
        None, description="Optional metadata for each text"
    )
    chunk_size: int = Field(1000, description="Size of text chunks", ge=100, le=5000)
    chunk_overlap: int = Field(200, description="Overlap between chunks", ge=0, le=1000)


class IngestUrlsRequest(BaseModel):
    """Request model for URL ingestion."""

    urls: list[str] = Field(..., min_length=1, description="Pages to download and ingest")
    chunk_size: int = Field(250, ge=50, le=5000)
    chunk_overlap: int = Field(0, ge=0, le=1000)


class IngestResponse(BaseModel):
    """Response model for ingestion."""

    message: str = Field(..., description="Status message")
    document_count: int = Field(..., description="Number of chunks ingested")
    ids: list[str] = Field([], description="Document IDs")


class StatsResponse(BaseModel):
    """Response model for stats endpoint."""

    document_count: int = Field(..., description="Total number of chunks in vector store")
    persist_directory: str = Field(..., description="Vector store directory")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Agentic RAG API", "version": "1.0.0", "docs": "/docs"}


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "vector_store": "initialized" if vector_store_manager else "not initialized",
        "workflow": "initialized" if workflow else "not initialized",
    }


@app.post("/query", response_model=QueryResponse, tags=["RAG"])
async def query(request: QueryRequest) -> QueryResponse:
    """
    Answer a question with the agentic RAG workflow.

    Args:
        request: Query request with the question

    Returns:
        Answer and the context it was built from
    """
    if not workflow:
        raise HTTPException(status_code=500, detail="Workflow not initialized")

    try:
        result = await workflow.ainvoke(request.question)
    except Exception as e:
        logger.error(f"Error processing query: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error processing query: {str(e)}")

    return QueryResponse(
        question=result.question,
        answer=result.generation or "",
        documents_used_count=result.documents_used_count,
        route=result.route.value if result.route else None,
        web_search_used=any(
            doc.metadata.get("source") == "web_search" for doc in result.documents
        ),
        groundedness_retries=result.groundedness_retries,
        workflow_steps=result.workflow_steps,
        sources=[
            SourceDocument(content=doc.page_content, metadata=doc.metadata)
            for doc in result.documents
        ],
    )


@app.post("/ingest/text", response_model=IngestResponse, tags=["Ingestion"])
async def ingest_text(request: IngestRequest) -> IngestResponse:
    """Split texts into chunks and add them to the vector store."""
    if not vector_store_manager:
        raise HTTPException(status_code=500, detail="Vector store not initialized")

    try:
        ids = await asyncio.to_thread(
            vector_store_manager.ingest_text_documents,
            texts=request.texts,
            metadatas=request.metadatas,
            chunk_size=request.chunk_size,
            chunk_overlap=request.chunk_overlap,
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error ingesting documents: {str(e)}")

    return IngestResponse(
        message=f"Successfully ingested {len(ids)} document chunks",
        document_count=len(ids),
        ids=ids,
    )


@app.post("/ingest/urls", response_model=IngestResponse, tags=["Ingestion"])
async def ingest_urls(request: IngestUrlsRequest) -> IngestResponse:
    """Download pages and add their text to the vector store."""
    if not vector_store_manager:
        raise HTTPException(status_code=500, detail="Vector store not initialized")

    try:
        ids = await asyncio.to_thread(
            vector_store_manager.ingest_urls,
            urls=request.urls,
            chunk_size=request.chunk_size,
            chunk_overlap=request.chunk_overlap,
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error ingesting URLs: {str(e)}")

    return IngestResponse(
        message=f"Successfully ingested {len(request.urls)} URLs into {len(ids)} chunks",
        document_count=len(ids),
        ids=ids,
    )


@app.get("/stats", response_model=StatsResponse, tags=["Stats"])
async def get_stats() -> StatsResponse:
    """Get vector store statistics."""
    if not vector_store_manager:
        raise HTTPException(status_code=500, detail="Vector store not initialized")

    stats = await asyncio.to_thread(vector_store_manager.get_stats)
    if "error" in stats:
        raise HTTPException(status_code=500, detail=f"Error getting stats: {stats['error']}")

    return StatsResponse(
        document_count=stats.get("document_count", 0),
        persist_directory=stats.get("persist_directory", ""),
    )


@app.delete("/clear", tags=["Admin"])
async def clear_vector_store() -> dict[str, str]:
    """Clear all documents from the vector store."""
    if not vector_store_manager:
        raise HTTPException(status_code=500, detail="Vector store not initialized")

    try:
        await asyncio.to_thread(vector_store_manager.clear)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error clearing vector store: {str(e)}")

    return {"message": "Vector store cleared successfully"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

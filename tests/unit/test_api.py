"""Unit tests for API endpoints."""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi.testclient import TestClient
from langchain_core.documents import Document

from agentic_rag.agents.state import WorkflowResult
from agentic_rag.api.main import app
from agentic_rag.corrective.question_router import Datasource


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def mock_vector_store_manager():
    """Mock vector store manager."""
    with patch("agentic_rag.api.main.vector_store_manager") as mock_vsm:
        mock_vsm.get_stats.return_value = {"document_count": 10, "persist_directory": "./chroma_db"}
        yield mock_vsm


@pytest.fixture
def mock_workflow():
    """Mock workflow."""
    with patch("agentic_rag.api.main.workflow") as mock_wf:
        mock_wf.ainvoke = AsyncMock()
        yield mock_wf


@pytest.mark.unit
class TestAPIEndpoints:
    """Test cases for API endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert "version" in data

    def test_health_check(self, client, mock_vector_store_manager, mock_workflow):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["vector_store"] == "initialized"
        assert data["workflow"] == "initialized"

    def test_query_endpoint(self, client, mock_workflow):
        mock_workflow.ainvoke.return_value = WorkflowResult(
            question="How to make pizza?",
            generation="Pizza is made by...",
            documents_used_count=1,
            documents=[Document(page_content="Pizza is made by...", metadata={"source": "web_search"})],
            route=Datasource.WEB_SEARCH,
            workflow_steps=["Routed to web_search", "Web search: 19 characters", "Answer generated"],
        )

        response = client.post("/query", json={"question": "How to make pizza?"})

        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "Pizza is made by..."
        assert data["documents_used_count"] == 1
        assert data["route"] == "web_search"
        assert data["web_search_used"] is True
        assert data["sources"][0]["metadata"] == {"source": "web_search"}
        mock_workflow.ainvoke.assert_awaited_once_with("How to make pizza?")

    def test_query_endpoint_validation(self, client, mock_workflow):
        response = client.post("/query", json={"question": ""})

        assert response.status_code == 422
        mock_workflow.ainvoke.assert_not_called()

    def test_query_endpoint_failure(self, client, mock_workflow):
        mock_workflow.ainvoke.side_effect = RuntimeError("model unavailable")

        response = client.post("/query", json={"question": "What are LLM agents?"})

        assert response.status_code == 500
        assert "model unavailable" in response.json()["detail"]

    def test_query_endpoint_no_workflow(self, client):
        with patch("agentic_rag.api.main.workflow", None):
            response = client.post("/query", json={"question": "Test question"})

        assert response.status_code == 500

    def test_ingest_text_endpoint(self, client, mock_vector_store_manager):
        mock_vector_store_manager.ingest_text_documents.return_value = ["id1", "id2", "id3"]

        response = client.post(
            "/ingest/text",
            json={"texts": ["Text 1", "Text 2"], "chunk_size": 1000, "chunk_overlap": 200},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["document_count"] == 3
        assert data["ids"] == ["id1", "id2", "id3"]

    def test_ingest_urls_endpoint(self, client, mock_vector_store_manager):
        mock_vector_store_manager.ingest_urls.return_value = ["id1", "id2"]

        response = client.post("/ingest/urls", json={"urls": ["https://example.com/a"]})

        assert response.status_code == 200
        assert response.json()["document_count"] == 2
        kwargs = mock_vector_store_manager.ingest_urls.call_args.kwargs
        assert kwargs["urls"] == ["https://example.com/a"]
        assert kwargs["chunk_size"] == 250

    def test_ingest_urls_requires_urls(self, client, mock_vector_store_manager):
        response = client.post("/ingest/urls", json={"urls": []})

        assert response.status_code == 422

    def test_get_stats_endpoint(self, client, mock_vector_store_manager):
        mock_vector_store_manager.get_stats.return_value = {
            "document_count": 42,
            "persist_directory": "./chroma_db",
        }

        response = client.get("/stats")

        assert response.status_code == 200
        assert response.json()["document_count"] == 42

    def test_get_stats_error(self, client, mock_vector_store_manager):
        mock_vector_store_manager.get_stats.return_value = {"error": "boom", "persist_directory": "x"}

        response = client.get("/stats")

        assert response.status_code == 500

    def test_clear_endpoint(self, client, mock_vector_store_manager):
        response = client.delete("/clear")

        assert response.status_code == 200
        mock_vector_store_manager.clear.assert_called_once()

    def test_ingest_without_vector_store(self, client):
        with patch("agentic_rag.api.main.vector_store_manager", None):
            response = client.post("/ingest/text", json={"texts": ["x"]})

        assert response.status_code == 500

import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient
from backend.src.api.main import app
from backend.src.api.dependencies import get_db_service, get_graph_projector
from backend.src.models.graph import GraphData, GraphEdge, GraphNode
from backend.src.models.note import NoteCreate
from backend.src.services.notes import NoteService
from backend.src.api.middleware import AuthContext, get_auth_context

client = TestClient(app)

@pytest.fixture
def mock_auth():
    auth = Mock(spec=AuthContext)
    auth.user_id = "test-user"
    app.dependency_overrides[get_auth_context] = lambda: auth
    yield auth
    # Clean up overrides
    app.dependency_overrides = {}

def test_get_graph_data_success(mock_auth):
    """Test successful retrieval of graph data."""
    projector = Mock()
    projector.get_graph_data.return_value = GraphData(
        nodes=[
            GraphNode(id="n1", label="Note 1", title="Note 1", color="#3b82f6", size=22),
            GraphNode(id="n2", label="Note 2", title="Note 2", color="#ef4444", size=22),
        ],
        edges=[GraphEdge(id="edge-l1", from_="n1", to="n2")],
    )
    app.dependency_overrides[get_graph_projector] = lambda: projector

    response = client.get("/api/graph", params={"category_id": "c1", "tag_ids": ["t1", "t2"]})

    assert response.status_code == 200
    data = response.json()
    assert len(data["nodes"]) == 2
    assert data["edges"] == [
        {"id": "edge-l1", "from": "n1", "to": "n2", "arrows": "to", "value": 1}
    ]
    projector.get_graph_data.assert_called_once_with(
        "test-user", category_id="c1", tag_ids=["t1", "t2"]
    )

def test_get_graph_data_error(mock_auth):
    """Test error handling when service fails."""
    projector = Mock()
    projector.get_graph_data.side_effect = Exception("Database error")
    app.dependency_overrides[get_graph_projector] = lambda: projector

    response = client.get("/api/graph")

    assert response.status_code == 500
    assert "Failed to fetch graph data" in response.json()["message"]

def test_get_graph_requires_auth():
    response = client.get("/api/graph")

    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"

def test_get_graph_from_database(mock_auth, db_service):
    notes = NoteService(db_service)
    target = notes.create_note("test-user", NoteCreate(title="Roadmap"))
    source = notes.create_note("test-user", NoteCreate(title="Plan", content="[[Roadmap]]"))
    app.dependency_overrides[get_db_service] = lambda: db_service

    response = client.get("/api/graph")
    filters = client.get("/api/graph/filters")

    assert response.status_code == 200
    edges = response.json()["edges"]
    assert [(edge["from"], edge["to"]) for edge in edges] == [(source.id, target.id)]
    assert filters.json() == {"categories": [], "tags": []}

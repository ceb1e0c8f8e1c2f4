"""
API tests for session routes
"""

import pytest
from fastapi.testclient import TestClient

from sessiongraph.main import app
from sessiongraph.services.session_store import SessionDataStore, get_session_store


@pytest.fixture
def client():
    """Test client with an isolated, empty session store"""
    store = SessionDataStore(max_sessions=10)
    app.dependency_overrides[get_session_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def loaded_client(client, sample_document):
    """Test client with the sample session loaded"""
    response = client.post("/api/v1/sessions", json=sample_document)
    assert response.status_code == 201
    return client


class TestSessionLifecycleRoutes:
    """Test load, fetch and delete"""

    def test_load_session(self, client, sample_document):
        """Test loading returns a summary"""
        response = client.post("/api/v1/sessions", json=sample_document)
        assert response.status_code == 201
        summary = response.json()
        assert summary["session_id"] == "session-001"
        assert summary["symptom_count"] == 3
        assert summary["indexed_node_count"] == 11
        assert summary["link_count"] == 2

    def test_invalid_document(self, client, sample_document):
        """Test validation errors surface as 422"""
        sample_document["nodes"]["symptoms"][0]["relationships"][0]["direction"] = "sideways"
        response = client.post("/api/v1/sessions", json=sample_document)
        assert response.status_code == 422

    def test_null_groups_and_relationships_load(self, client, sample_document):
        """Test null node groups and relationships load as empty"""
        sample_document["nodes"]["treatments"] = None
        sample_document["nodes"]["diagnoses"][1]["relationships"] = None
        response = client.post("/api/v1/sessions", json=sample_document)
        assert response.status_code == 201
        assert response.json()["treatment_count"] == 0

    def test_unmapped_category_loads(self, client, sample_document):
        """Test a question category outside the known table"""
        sample_document["nodes"]["actions"][0]["category"] = "lab_review"
        assert client.post("/api/v1/sessions", json=sample_document).status_code == 201

    def test_list_and_get(self, loaded_client):
        """Test listing and fetching the document"""
        assert loaded_client.get("/api/v1/sessions").json()["sessions"] == ["session-001"]
        document = loaded_client.get("/api/v1/sessions/session-001").json()
        assert document["sessionId"] == "session-001"
        assert document["nodes"]["diagnoses"][0]["name"] == "Acute coronary syndrome"

    def test_unknown_session(self, client):
        """Test 404 for sessions never loaded"""
        assert client.get("/api/v1/sessions/missing").status_code == 404
        assert client.get("/api/v1/sessions/missing/path/d1").status_code == 404

    def test_delete(self, loaded_client):
        """Test dropping a session"""
        assert loaded_client.delete("/api/v1/sessions/session-001").status_code == 200
        assert loaded_client.get("/api/v1/sessions/session-001").status_code == 404


class TestGraphRoutes:
    """Test index, node and path queries"""

    def test_index(self, loaded_client):
        """Test serialized relationship index"""
        index = loaded_client.get("/api/v1/sessions/session-001/index").json()
        assert index["node_types"]["t2"] == "treatment"
        assert [e["target_id"] for e in index["forward"]["t1"]] == ["d1"]

    def test_node(self, loaded_client):
        """Test node lookup with display text"""
        body = loaded_client.get("/api/v1/sessions/session-001/nodes/d1").json()
        assert body["node_type"] == "diagnosis"
        assert body["display_text"] == "Acute coronary syndrome"

    def test_missing_node(self, loaded_client):
        """Test 404 for unknown node"""
        assert loaded_client.get("/api/v1/sessions/session-001/nodes/zzz").status_code == 404

    def test_path(self, loaded_client):
        """Test reasoning path response"""
        body = loaded_client.get("/api/v1/sessions/session-001/path/d1").json()
        assert body["trigger"]["id"] == "d1"
        assert body["trigger"]["item"]["name"] == "Acute coronary syndrome"
        assert body["path"]["nodes"] == ["d1", "s1", "s2", "t1"]
        assert body["path"]["links"] == ["d1-t1", "s1-d1", "s2-d1"]

    def test_path_for_stale_node(self, loaded_client):
        """Test unknown node ids give a trigger-only path"""
        body = loaded_client.get("/api/v1/sessions/session-001/path/zzz").json()
        assert body["trigger"]["item"] is None
        assert body["path"] == {"nodes": ["zzz"], "links": []}

    def test_node_actions(self, loaded_client):
        """Test questions and alerts for a node"""
        body = loaded_client.get("/api/v1/sessions/session-001/nodes/d1/actions").json()
        assert [q["id"] for q in body["questions"]] == ["q1"]
        assert [a["id"] for a in body["alerts"]] == ["a1"]


class TestActionRoutes:
    """Test questions, alerts and clinician actions"""

    def test_sorted_pending_questions(self, loaded_client):
        """Test questions ordered by composite score"""
        body = loaded_client.get(
            "/api/v1/sessions/session-001/questions", params={"pending_only": True}
        ).json()
        assert [q["question_id"] for q in body] == ["q1", "q2"]
        assert body[0]["score"] > body[1]["score"]

    def test_sorted_parameter(self, client, sample_document):
        """Test sorted=false keeps document order"""
        actions = sample_document["nodes"]["actions"]
        actions.insert(0, actions.pop(2))
        client.post("/api/v1/sessions", json=sample_document)

        url = "/api/v1/sessions/session-001/questions"
        unsorted = client.get(url, params={"sorted": False}).json()
        assert [q["question_id"] for q in unsorted] == ["q3", "q1", "q2"]
        ranked = client.get(url).json()
        assert [q["question_id"] for q in ranked] == ["q1", "q2", "q3"]

    def test_answer_question(self, loaded_client):
        """Test answering removes the question from the pending list"""
        response = loaded_client.post(
            "/api/v1/sessions/session-001/questions/q1/answer",
            json={"answer": "yes", "confidence": 0.8}
        )
        assert response.status_code == 200
        pending = loaded_client.get(
            "/api/v1/sessions/session-001/questions", params={"pending_only": True}
        ).json()
        assert [q["question_id"] for q in pending] == ["q2"]

    def test_acknowledge_alert(self, loaded_client):
        """Test acknowledging an alert"""
        loaded_client.post("/api/v1/sessions/session-001/alerts/a1/acknowledge")
        body = loaded_client.get(
            "/api/v1/sessions/session-001/alerts", params={"pending_only": True}
        ).json()
        assert body["count"] == 0

    def test_suppress_node(self, loaded_client):
        """Test suppress action"""
        response = loaded_client.post(
            "/api/v1/sessions/session-001/nodes/d2/actions",
            json={"action": "suppress", "reason": "Low pretest probability"}
        )
        assert response.status_code == 200
        node = loaded_client.get("/api/v1/sessions/session-001/nodes/d2").json()["node"]
        assert node["suppressed"] is True
        assert node["suppressionReason"] == "Low pretest probability"

    def test_invalid_node_action(self, loaded_client):
        """Test action outside the vocabulary"""
        response = loaded_client.post(
            "/api/v1/sessions/session-001/nodes/d2/actions",
            json={"action": "delete"}
        )
        assert response.status_code == 422


def test_health(client):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

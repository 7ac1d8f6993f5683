import pytest
from conftest import ScriptedBackend
from fastapi.testclient import TestClient

from stepwise_rag.api.main import create_app
from stepwise_rag.config import BackendSettings
from stepwise_rag.errors import ModelError
from stepwise_rag.obs.sinks import InMemoryTraceSink
from stepwise_rag.retrieval.vector_store import InMemoryKnowledgeIndex


class _UnseededIndex(InMemoryKnowledgeIndex):
    """Index that ignores startup seeding and stays empty."""

    def seed(self, ids, metadatas, documents) -> None:  # type: ignore[override]
        return None


class _OfflineIndex(InMemoryKnowledgeIndex):
    """Index that seeds normally but fails every query."""

    def query(self, text: str, top_k: int):  # type: ignore[override]
        raise ConnectionError("vector index offline")


def _offline_client() -> TestClient:
    # No API key configured: the deterministic offline backend answers.
    return TestClient(create_app(settings=BackendSettings(), sink=InMemoryTraceSink()))


def test_api_analyze_trace_metrics() -> None:
    client = _offline_client()

    health_resp = client.get("/health")
    assert health_resp.status_code == 200
    assert health_resp.json()["status"] == "ok"
    assert health_resp.json()["backend_mode"] == "offline"
    assert health_resp.json()["knowledge_documents"] == 6

    analyze_resp = client.post("/analyze", json={"text": "What is AI?"})
    assert analyze_resp.status_code == 200
    payload = analyze_resp.json()
    assert set(payload) == {"response"}
    assert payload["response"].startswith("Artificial Intelligence (AI)")

    traces_resp = client.get("/traces")
    assert traces_resp.status_code == 200
    [trace] = traces_resp.json()["items"]
    assert [step["path"] for step in trace["steps"]] == [
        "/classify",
        "/knowledge-retrieval",
        "/reasoning",
        "/final-response",
    ]
    assert trace["steps"][1]["kind"] == "retrieval"

    detail_resp = client.get(f"/traces/{trace['session_id']}")
    assert detail_resp.status_code == 200
    assert detail_resp.json()["status"] == "completed"

    assert client.get("/traces/not-a-session").status_code == 404

    metrics_resp = client.get("/metrics")
    assert metrics_resp.status_code == 200
    assert metrics_resp.json()["total_requests"] == 1


def test_api_time_question_answers_with_timestamp() -> None:
    client = _offline_client()

    resp = client.post("/analyze", json={"text": "what time is it"})

    assert resp.status_code == 200
    assert resp.json()["response"].startswith("Current time is ")


@pytest.mark.parametrize("body", [{"text": ""}, {}, {"text": None}, {"text": 7}])
def test_api_rejects_missing_text(body: dict[str, object]) -> None:
    client = _offline_client()

    resp = client.post("/analyze", json=body)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing text"}
    assert client.get("/traces").json()["items"] == []


def test_api_whitespace_text_is_missing() -> None:
    resp = _offline_client().post("/analyze", json={"text": "   "})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing text"}


def test_api_pipeline_failure_returns_error_only() -> None:
    backend = ScriptedBackend(failures={"/classify": ModelError("/classify", "upstream 503")})
    client = TestClient(
        create_app(
            settings=BackendSettings(),
            backend=backend,
            index=InMemoryKnowledgeIndex(),
            sink=InMemoryTraceSink(),
        )
    )

    resp = client.post("/analyze", json={"text": "What is AI?"})

    assert resp.status_code == 500
    assert set(resp.json()) == {"error"}
    assert "upstream 503" in resp.json()["error"]
    assert client.get("/metrics").json()["failed_requests"] == 1


def test_api_empty_index_still_answers() -> None:
    backend = ScriptedBackend(replies={"/classify": "question"})
    client = TestClient(
        create_app(
            settings=BackendSettings(),
            backend=backend,
            index=_UnseededIndex(),
            sink=InMemoryTraceSink(),
        )
    )

    resp = client.post("/analyze", json={"text": "What is AI?"})

    assert resp.status_code == 200
    assert resp.json()["response"] == "No final response."
    [trace] = client.get("/traces").json()["items"]
    assert trace["steps"][1]["output"] == "No relevant knowledge found."


def test_api_index_failure_returns_error_only() -> None:
    backend = ScriptedBackend(replies={"/classify": "question"})
    client = TestClient(
        create_app(
            settings=BackendSettings(),
            backend=backend,
            index=_OfflineIndex(),
            sink=InMemoryTraceSink(),
        )
    )

    resp = client.post("/analyze", json={"text": "What is AI?"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "knowledge_retrieval failed: vector index offline"}
    [trace] = client.get("/traces").json()["items"]
    assert trace["status"] == "failed"
    assert trace["steps"][-1]["path"] == "/knowledge-retrieval"
    assert backend.paths() == ["/classify"]


@pytest.mark.parametrize("limit", ["0", "-1", "1001"])
def test_api_traces_limit_out_of_range(limit: str) -> None:
    client = _offline_client()

    resp = client.get("/traces", params={"limit": limit})

    assert resp.status_code == 422


def test_api_traces_limit_returns_most_recent() -> None:
    client = _offline_client()
    for text in ("what time is it", "time now", "current time please"):
        client.post("/analyze", json={"text": text})

    items = client.get("/traces", params={"limit": 2}).json()["items"]

    assert [item["query"] for item in items] == ["time now", "current time please"]


def test_api_non_analyze_validation_errors_keep_detail() -> None:
    resp = _offline_client().get("/traces", params={"limit": "abc"})

    assert resp.status_code == 422
    body = resp.json()
    assert "detail" in body
    assert body.get("error") != "Missing text"

import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from baseline import llm
from baseline.errors import ServiceError
from baseline.main import create_app


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


@pytest.fixture
def fake_generate(monkeypatch):
    mock = AsyncMock()
    monkeypatch.setattr(llm, "generate", mock)
    return mock


def test_generate_returns_canonical_result(client, fake_generate, aspect_payload):
    fake_generate.return_value = json.dumps(aspect_payload)

    resp = client.post("/api/generate", json={"topic": "Graph Neural Networks for drug discovery"})

    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"researchBrief", "comparisonTable", "paperKeys", "notebookCode"}
    assert body["paperKeys"] == ["GCN", "GAT"]
    assert body["comparisonTable"][1] == {"aspect": "Dataset", "GCN": "Cora", "GAT": "N/A"}
    fake_generate.assert_awaited_once()
    assert fake_generate.await_args.args[1] == "Graph Neural Networks for drug discovery"


def test_generate_extracts_fenced_json(client, fake_generate, aspect_payload):
    fake_generate.return_value = "Here you go:\n```json\n" + json.dumps(aspect_payload) + "\n```"
    resp = client.post("/api/generate", json={"topic": "t"})
    assert resp.status_code == 200
    assert resp.json()["researchBrief"] == aspect_payload["researchBrief"]


@pytest.mark.parametrize("body", [{}, {"topic": ""}, {"topic": "   "}, {"topic": 42}])
def test_invalid_topic_is_400(client, fake_generate, body):
    resp = client.post("/api/generate", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Research topic is required."}
    fake_generate.assert_not_awaited()


def test_non_json_body_is_400(client, fake_generate):
    resp = client.post("/api/generate", content=b"topic=x", headers={"Content-Type": "text/plain"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_wrong_method_is_405(client):
    resp = client.get("/api/generate")
    assert resp.status_code == 405
    assert "error" in resp.json()
    assert "POST" in resp.headers["allow"]


def test_missing_api_key_is_500(unconfigured_settings):
    client = TestClient(create_app(unconfigured_settings))
    resp = client.post("/api/generate", json={"topic": "t"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "API key is not configured on the server."}


def test_missing_api_key_checked_before_topic(unconfigured_settings):
    client = TestClient(create_app(unconfigured_settings))
    resp = client.post("/api/generate", json={"topic": ""})
    assert resp.status_code == 500
    assert resp.json() == {"error": "API key is not configured on the server."}


def test_unparseable_generator_output_is_500(client, fake_generate):
    fake_generate.return_value = "I'm sorry, I can't help with that."
    resp = client.post("/api/generate", json={"topic": "t"})
    assert resp.status_code == 500
    assert "try again" in resp.json()["error"]


def test_generator_output_missing_fields_is_500(client, fake_generate):
    fake_generate.return_value = json.dumps({"researchBrief": "b"})
    resp = client.post("/api/generate", json={"topic": "t"})
    assert resp.status_code == 500
    assert "try again" in resp.json()["error"]


def test_upstream_failure_is_500(client, fake_generate):
    fake_generate.side_effect = ServiceError("Failed to generate research. Details: quota exceeded")
    resp = client.post("/api/generate", json={"topic": "t"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate research. Details: quota exceeded"}


def test_unexpected_error_is_500_with_details(settings, fake_generate):
    fake_generate.side_effect = RuntimeError("boom")
    client = TestClient(create_app(settings), raise_server_exceptions=False)
    resp = client.post("/api/generate", json={"topic": "t"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to generate research. Details: boom"}


def test_notebook_download(client):
    resp = client.post(
        "/api/notebook",
        json={"topic": "Graph Neural Networks for drug discovery", "notebookCode": "x = 1\n"},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/x-ipynb+json")
    assert (
        'filename="graph_neural_networks_for_drug_discovery_baseline.ipynb"'
        in resp.headers["content-disposition"]
    )
    nb = resp.json()
    assert nb["cells"][1]["source"] == ["x = 1\n"]


def test_notebook_requires_code(client):
    resp = client.post("/api/notebook", json={"topic": "t"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Notebook code is required."}


def test_health(client):
    resp = client.get("/api/health")
    assert resp.json() == {"status": "ok", "generator_configured": True, "model": "gpt-4o-mini"}


def test_index_served(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "research-form" in resp.text
    assert resp.headers["cache-control"] == "no-cache"


def test_ui_script_cleans_errors_and_shows_paper_keys_verbatim(client):
    script = client.get("/static/app.js").text
    assert "state.error = cleanErrorMessage(" in script
    assert "formatHeader" not in script
    assert '["Aspect"].concat(result.paperKeys)' in script


def test_ui_has_loader_topic_and_scroll_top(client):
    page = client.get("/").text
    assert 'id="loader-topic"' in page
    assert 'id="scroll-top"' in page

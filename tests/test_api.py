"""
HTTP and WebSocket tests for the arena service, running the real lifespan
with the mock provider.
"""
import time

import pytest
from fastapi.testclient import TestClient

from services.arena_service.main import app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("MOCK_LATENCY_MS_MIN", "0")
    monkeypatch.setenv("MOCK_LATENCY_MS_MAX", "0")
    monkeypatch.setenv("MOCK_FAILURE_RATE", "0")
    monkeypatch.setenv("ARENA_SEED_TEMPLATES", "true")
    with TestClient(app) as test_client:
        yield test_client


def wait_for_state(client, kinds, attempts=200):
    for _ in range(attempts):
        snapshot = client.get("/api/session").json()
        if snapshot["state"]["kind"] in kinds:
            return snapshot
        time.sleep(0.01)
    raise AssertionError(f"session never reached {kinds}")


def test_health_ok(client):
    r = client.get("/health")

    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["submission"] == "idle"


def test_metrics_exposed(client):
    r = client.get("/metrics")

    assert r.status_code == 200
    assert "arena_submissions_total" in r.text


def test_models_catalog(client):
    ids = [m["id"] for m in client.get("/api/models").json()["models"]]

    assert ids == ["claude-sonnet-4", "gpt-4", "llama"]


def test_initial_snapshot(client):
    snapshot = client.get("/api/session").json()

    assert snapshot["prompt"] == ""
    assert snapshot["model"] == "claude-sonnet-4"
    assert snapshot["parameters"]["maxTokens"] == 2048
    assert snapshot["parametersModified"] is False
    assert snapshot["state"] == {"kind": "idle"}
    assert len(snapshot["templates"]) == 3


def test_submit_empty_prompt_is_422(client):
    r = client.post("/api/session/submit")

    assert r.status_code == 422
    assert r.json()["detail"] == "Please enter a prompt"
    assert client.get("/api/session").json()["state"]["kind"] == "idle"


def test_submit_then_export(client):
    client.put("/api/session/prompt", json={"prompt": "Explain X"})
    client.put("/api/session/model", json={"model": "llama"})
    client.patch("/api/session/parameters", json={"field": "temperature", "value": 1.2})

    r = client.post("/api/session/submit")
    assert r.status_code == 202
    assert r.json()["accepted"] is True

    snapshot = wait_for_state(client, {"succeeded", "failed"})
    assert snapshot["state"]["kind"] == "succeeded"
    assert snapshot["state"]["output"]["model"] == "llama"

    # edits after the submit must not leak into the export
    client.patch("/api/session/parameters", json={"field": "temperature", "value": 0.1})

    export = client.get("/api/output/export")
    assert export.status_code == 200
    assert 'filename="ai-response-' in export.headers["content-disposition"]
    assert export.text.startswith('{\n  "response": ')
    document = export.json()
    assert set(document) == {"response", "model", "timestamp", "parameters", "metadata"}
    assert document["model"] == "llama"
    assert document["parameters"]["temperature"] == 1.2
    assert set(document["metadata"]) == {"tokens", "processingTime"}
    assert document["metadata"]["processingTime"] >= 0


def test_parameters_clamp_through_every_control(client):
    r = client.patch("/api/session/parameters", json={"field": "temperature", "value": 5})
    assert r.json()["parameters"]["temperature"] == 2.0
    assert r.json()["modified"] is True

    r = client.patch(
        "/api/session/parameters", json={"field": "maxTokens", "value": "0", "control": "entry"}
    )
    assert r.json()["parameters"]["maxTokens"] == 1

    r = client.patch(
        "/api/session/parameters", json={"field": "topP", "value": 0.44, "control": "slider"}
    )
    assert r.json()["parameters"]["topP"] == 0.4

    r = client.post("/api/session/parameters/reset")
    assert r.json()["modified"] is False
    assert r.json()["parameters"]["temperature"] == 0.7


def test_unknown_parameter_is_422(client):
    r = client.patch("/api/session/parameters", json={"field": "beamWidth", "value": 1})

    assert r.status_code == 422


def test_unknown_model_is_422(client):
    r = client.put("/api/session/model", json={"model": "gpt-99"})

    assert r.status_code == 422
    assert client.get("/api/session").json()["model"] == "claude-sonnet-4"


def test_template_lifecycle(client):
    client.put("/api/session/prompt", json={"prompt": "Review this code"})

    created = client.post("/api/templates", json={"name": "My Review"})
    assert created.status_code == 201
    template = created.json()
    assert template["body"] == "Review this code"
    assert "createdAt" in template

    listing = client.get("/api/templates").json()["templates"]
    assert listing[0]["name"] == "My Review"

    client.put("/api/session/prompt", json={"prompt": ""})
    loaded = client.post(f"/api/templates/{template['id']}/load")
    assert loaded.json()["prompt"] == "Review this code"

    assert client.delete(f"/api/templates/{template['id']}").json() == {"deleted": True}
    assert client.delete(f"/api/templates/{template['id']}").json() == {"deleted": False}
    names = [t["name"] for t in client.get("/api/templates").json()["templates"]]
    assert "My Review" not in names


def test_template_with_blank_name_is_422(client):
    r = client.post("/api/templates", json={"name": " ", "body": "text"})

    assert r.status_code == 422


def test_load_unknown_template_is_404(client):
    assert client.post("/api/templates/tpl-404/load").status_code == 404


def test_copy_and_export_without_output_are_409(client):
    assert client.post("/api/output/copy").status_code == 409
    assert client.get("/api/output/export").status_code == 409


def test_copy_returns_content_after_success(client):
    client.put("/api/session/prompt", json={"prompt": "Explain X"})
    client.post("/api/session/submit")
    snapshot = wait_for_state(client, {"succeeded"})

    r = client.post("/api/output/copy")

    assert r.status_code == 200
    assert r.json()["content"] == snapshot["state"]["output"]["content"]
    assert client.post("/api/output/copy/result", json={"ok": False}).json() == {"ok": False}


def test_keydown_requires_modifier(client):
    client.put("/api/session/prompt", json={"prompt": "Explain X"})

    r = client.post("/api/session/keydown", json={"key": "Enter"})
    assert r.json()["submitted"] is False

    r = client.post("/api/session/keydown", json={"key": "Enter", "ctrlKey": True})
    assert r.json()["submitted"] is True
    wait_for_state(client, {"succeeded"})


def test_reset_keeps_model(client):
    client.put("/api/session/prompt", json={"prompt": "Explain X"})
    client.put("/api/session/model", json={"model": "gpt-4"})
    client.patch("/api/session/parameters", json={"field": "topP", "value": 0.2})

    snapshot = client.post("/api/session/reset").json()

    assert snapshot["prompt"] == ""
    assert snapshot["model"] == "gpt-4"
    assert snapshot["parametersModified"] is False
    assert snapshot["state"] == {"kind": "idle"}


def test_websocket_pushes_snapshot_and_follows_keyboard_submit(client):
    with client.websocket_connect("/ws") as ws:
        first = ws.receive_json()
        assert first["event_type"] == "session.state"
        assert first["payload"]["state"] == {"kind": "idle"}

        ws.send_json({"type": "prompt", "value": "Explain X"})
        ws.send_json({"type": "keydown", "key": "Enter", "metaKey": True})

        messages = []
        for _ in range(20):
            message = ws.receive_json()
            messages.append(message)
            if message["event_type"] == "notification":
                break

        notification = messages[-1]
        assert notification["payload"] == {
            "message": "Response generated successfully",
            "severity": "success",
        }
        kinds = [m["payload"]["state"]["kind"] for m in messages if m["event_type"] == "session.state"]
        assert "pending" in kinds

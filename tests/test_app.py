from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import posturai.server.app as app_module
from conftest import DESK_CLEAN, SQUAT_CLEAN, build_landmarks
from posturai.server.session import SessionManager

KNEE_FORWARD = build_landmarks(dict(SQUAT_CLEAN, left_knee=(0.6, 0.7)))


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(app_module, "session_manager", SessionManager())
    with TestClient(app_module.app) as test_client:
        yield test_client


def test_rule_catalog(client):
    response = client.get("/api/rules/squat")
    assert response.status_code == 200
    body = response.json()
    assert body["mode"] == "squat"
    assert [r["name"] for r in body["rules"]] == ["knee_over_toe", "back_angle", "squat_depth"]
    assert client.get("/api/rules/yoga").status_code == 422


def test_stateless_evaluate(client):
    response = client.post("/api/evaluate", json={"mode": "squat", "landmarks": KNEE_FORWARD})
    body = response.json()
    assert body["available"] is True
    assert [v["type"] for v in body["violations"]] == ["knee_over_toe"]
    assert body["violations"][0]["severity"] == "error"
    assert body["violations"][0]["threshold"] == 0.05

    short = client.post("/api/evaluate", json={"mode": "desk", "landmarks": build_landmarks(DESK_CLEAN)[:10]})
    assert short.json() == {"available": False, "violations": []}


def test_session_lifecycle_over_http(client):
    start = client.post("/api/session/start", json={"mode": "squat"})
    assert start.status_code == 200
    assert start.json()["status"] == "active"
    assert client.post("/api/session/start", json={"mode": "desk"}).status_code == 409
    assert client.post("/api/session/resume").status_code == 409

    assert client.post("/api/session/pause").json()["status"] == "paused"
    assert client.get("/api/session/status").json()["state"] == "paused"
    assert client.post("/api/session/resume").json()["status"] == "active"

    stop = client.post("/api/session/stop").json()
    assert stop["status"] == "stopped"
    assert stop["summary"]["mode"] == "squat"
    assert stop["summary"]["stats"] == {"total_frames": 0, "violating_frames": 0, "accuracy_percent": 100}
    assert client.post("/api/session/stop").json() == {"status": "idle", "summary": None}
    assert len(client.get("/api/sessions/history").json()["sessions"]) == 1


def test_stream_websocket(client):
    clean = build_landmarks(SQUAT_CLEAN)
    with client.websocket_connect("/ws/stream") as ws:
        ws.send_json({"landmarks": clean})
        assert ws.receive_json()["processed"] is False

        client.post("/api/session/start", json={"mode": "squat"})
        ws.send_json({"landmarks": KNEE_FORWARD})
        first = ws.receive_json()
        assert first["processed"] is True
        assert [v["type"] for v in first["violations"]] == ["knee_over_toe"]

        ws.send_json({"landmarks": clean})
        second = ws.receive_json()
        assert second["violations"] == []
        assert second["stats"] == {"total_frames": 2, "violating_frames": 1, "accuracy_percent": 50}

        ws.send_json({"landmarks": clean[:5]})
        assert ws.receive_json() == {"processed": False, "violations": [], "stats": None}

        ws.send_json({"frames": []})
        assert "error" in ws.receive_json()

        ws.send_text("not json")
        reply = ws.receive_json()
        assert reply["processed"] is False
        assert "invalid json" in reply["error"]

        ws.send_json({"landmarks": clean})
        assert ws.receive_json()["stats"]["total_frames"] == 3

    status = client.get("/api/session/status").json()
    assert status["running"] is True
    assert status["stats"]["total_frames"] == 3

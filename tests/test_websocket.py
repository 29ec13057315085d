"""WebSocket integration tests for live play."""

from __future__ import annotations

import json

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from bug_snake.config import Settings
from bug_snake.server.app import create_app


@pytest.fixture()
def tc(tmp_path):
    """Starlette TestClient kept open so tick loops keep running between calls."""
    settings = Settings(
        static_dir=str(tmp_path / "public"),
        score_file=str(tmp_path / "scores.json"),
    )
    with TestClient(create_app(settings)) as client:
        yield client


def _create_session(tc) -> str:
    resp = tc.post("/snake/sessions", json={"tick_rate_ms": 50, "seed": 3})
    assert resp.status_code == 201
    return resp.json()["session_id"]


def _receive_until(ws, predicate, limit: int = 100) -> dict:
    for _ in range(limit):
        state = json.loads(ws.receive_text())
        if predicate(state):
            return state
    raise AssertionError("expected state never arrived")


class TestPlayWebSocket:
    def test_connect_and_receive_initial_state(self, tc):
        session_id = _create_session(tc)
        with tc.websocket_connect(f"/snake/sessions/{session_id}/play") as ws:
            state = json.loads(ws.receive_text())
            assert state["session_id"] == session_id
            assert state["run_state"] == "running"
            assert state["direction"] == "none"
            assert "food" in state
            assert "grid" in state
            assert state["events"] == []

    def test_nonexistent_session_rejected(self, tc):
        with pytest.raises(WebSocketDisconnect), tc.websocket_connect(
            "/snake/sessions/nonexistent/play",
        ):
            pass

    def test_wasd_direction_applied(self, tc):
        session_id = _create_session(tc)
        with tc.websocket_connect(f"/snake/sessions/{session_id}/play") as ws:
            ws.receive_text()
            ws.send_text(json.dumps({"direction": "d"}))
            state = _receive_until(ws, lambda s: s["direction"] == "right")
            assert state["snake"]["body"][0][0] > 10

    def test_game_over_and_restart(self, tc):
        session_id = _create_session(tc)
        with tc.websocket_connect(f"/snake/sessions/{session_id}/play") as ws:
            ws.receive_text()
            ws.send_text(json.dumps({"direction": "up"}))
            over = _receive_until(ws, lambda s: s["run_state"] == "game_over")
            assert "game_over" in over["events"]

            ws.send_text(json.dumps({"action": "restart"}))
            state = json.loads(ws.receive_text())
            assert state["run_state"] == "running"
            assert state["score"] == 0
            assert state["snake"]["length"] == 1
            assert state["direction"] == "none"

    def test_pause_and_resume(self, tc):
        session_id = _create_session(tc)
        with tc.websocket_connect(f"/snake/sessions/{session_id}/play") as ws:
            ws.receive_text()
            ws.send_text(json.dumps({"action": "pause"}))
            # Restart broadcasts immediately, so it reports the pause.
            ws.send_text(json.dumps({"action": "restart"}))
            _receive_until(ws, lambda s: s["paused"] is True, limit=5)
            assert tc.get(f"/snake/sessions/{session_id}").json()["paused"] is True

            ws.send_text(json.dumps({"action": "resume"}))
            _receive_until(ws, lambda s: s["paused"] is False, limit=5)

    def test_invalid_messages_ignored(self, tc):
        session_id = _create_session(tc)
        with tc.websocket_connect(f"/snake/sessions/{session_id}/play") as ws:
            ws.receive_text()
            ws.send_text("not-json")
            ws.send_text("[]")
            ws.send_text("123")
            ws.send_text(json.dumps({"direction": "sideways"}))
            ws.send_text(json.dumps({"action": "dance"}))
            ws.send_text(json.dumps({"direction": "left"}))
            _receive_until(ws, lambda s: s["direction"] == "left")

    def test_disconnect_keeps_session(self, tc):
        session_id = _create_session(tc)
        with tc.websocket_connect(f"/snake/sessions/{session_id}/play") as ws:
            ws.receive_text()
        resp = tc.get(f"/snake/sessions/{session_id}")
        assert resp.status_code == 200

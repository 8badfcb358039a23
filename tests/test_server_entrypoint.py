from __future__ import annotations

from fastapi.testclient import TestClient

from snaproom.server.app import create_app


def test_health_routes_available(isolated_env) -> None:
    app = create_app()
    assert "snaproom.server.modules.rooms_ws_api" in app.state.router_catalog
    assert "snaproom.server.modules.system_api" in app.state.router_catalog

    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/healthz").json() == {"ok": True}

        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "message": "SnapRoom signaling server running",
        }


def test_api_health_exposes_no_room_data(isolated_env) -> None:
    with TestClient(create_app()) as client:
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "join-room", "roomId": "private-room"})
            ws.receive_json()

            response = client.get("/api/health", headers={"X-Request-ID": "health-check-1"})
            assert response.status_code == 200
            assert response.headers["X-Request-ID"] == "health-check-1"
            assert "X-Process-Time" in response.headers
            payload = response.json()
            assert payload["status"] == "ok"
            assert "private-room" not in response.text
            assert set(payload) == {"status", "message"}


def test_unknown_route_uses_error_envelope(isolated_env) -> None:
    with TestClient(create_app()) as client:
        response = client.get("/api/rooms/abc123")
        assert response.status_code == 404
        body = response.json()
        assert body["ok"] is False
        assert body["code"] == "http_404"
        assert body["request_id"] == response.headers["X-Request-ID"]


def test_log_file_is_written_under_configured_dir(isolated_env) -> None:
    app = create_app()
    assert app.state.log_path.parent == (isolated_env / "logs").resolve()
    assert app.state.log_path.exists()


def test_unhandled_error_uses_error_envelope(isolated_env) -> None:
    app = create_app()

    async def broken() -> None:
        raise RuntimeError("boom")

    app.add_api_route("/api/broken", broken)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/broken", headers={"X-Request-ID": "req-9"})
        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "internal_error"
        assert body["request_id"] == "req-9"
        assert len(body["details"]["error_id"]) == 32

"""요청 로깅 미들웨어 테스트.

Request logging tests — log event construction, sensitive field masking,
free-text truncation, and the ingest path of AxiomLoggingMiddleware.
"""

from httpx import ASGITransport, AsyncClient

from hrapp.config import settings
from hrapp.middleware import axiom_logging
from hrapp.middleware.axiom_logging import _mask_dict, build_log_event


class TestMasking:
    """민감 필드 마스킹 테스트."""

    def test_masks_sensitive_keys(self):
        masked = _mask_dict({"access_token": "abc", "nested": {"password": "x", "ok": 1}})
        assert masked == {"access_token": "***", "nested": {"password": "***", "ok": 1}}

    def test_truncates_free_text(self):
        masked = _mask_dict({"notes": "n" * 500, "location": "HQ"})
        assert masked["notes"].endswith("...(truncated)")
        assert len(masked["notes"]) < 500
        assert masked["location"] == "HQ"


class TestBuildLogEvent:
    """로그 이벤트 구성 테스트."""

    def test_minimal_event(self):
        event = build_log_event("GET", "/api/v1/app/my/attendance/status", 200, 1.5)
        assert event == {
            "method": "GET",
            "path": "/api/v1/app/my/attendance/status",
            "status_code": 200,
            "duration_ms": 1.5,
        }

    def test_includes_actor_and_error(self):
        event = build_log_event(
            "POST",
            "/api/v1/app/my/attendance/clock-in",
            409,
            3.0,
            query_params={"token": "secret"},
            error_detail="Already clocked in. Please clock out first.",
            user_id="u-1",
        )
        assert event["user_id"] == "u-1"
        assert event["error"] == "Already clocked in. Please clock out first."
        assert event["query_params"] == {"token": "***"}


class _RecordingClient:
    events: list[dict] = []

    def __init__(self, token: str) -> None:
        self.token = token

    def ingest_events(self, dataset: str, events: list[dict]) -> None:
        _RecordingClient.events.extend(events)


class TestMiddleware:
    """미들웨어 전송 테스트."""

    async def test_ingests_error_response(self, monkeypatch):
        from fastapi import FastAPI, HTTPException

        monkeypatch.setattr(settings, "AXIOM_API_TOKEN", "token")
        monkeypatch.setattr(settings, "AXIOM_DATASET", "api-logs")
        monkeypatch.setattr(axiom_logging, "AxiomClient", _RecordingClient)
        _RecordingClient.events.clear()

        app = FastAPI()
        app.add_middleware(axiom_logging.AxiomLoggingMiddleware)

        @app.post("/boom")
        async def boom() -> dict:
            raise HTTPException(status_code=400, detail="No active break found. Please start break first.")

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            res = await ac.post("/boom", json={"notes": "lunch", "password": "pw"})
        assert res.status_code == 400
        assert res.json()["detail"] == "No active break found. Please start break first."

        events = _RecordingClient.events
        assert len(events) == 1
        assert events[0]["status_code"] == 400
        assert events[0]["request_body"] == {"notes": "lunch", "password": "***"}
        assert events[0]["error"] == "No active break found. Please start break first."

"""Unit tests for core.telemetry module.

Tests track_operation pass-through and the request timing middleware.
"""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from core.telemetry import RequestTimingMiddleware, track_operation
from core.wide_event import set_wide_event_fields


@pytest.mark.unit
class TestTrackOperation:
    async def test_passthrough_when_disabled(self):
        @track_operation("double")
        async def double(x: int) -> int:
            return x * 2

        assert await double(5) == 10

    async def test_exception_propagates_when_enabled(self):
        @track_operation("explode")
        async def explode():
            raise ValueError("boom")

        with patch("core.telemetry.TELEMETRY_ENABLED", True):
            with pytest.raises(ValueError, match="boom"):
                await explode()

    def test_rejects_sync_functions(self):
        with pytest.raises(TypeError):

            @track_operation("sync")
            def sync_func():
                return None


@pytest.mark.unit
class TestRequestTimingMiddleware:
    @pytest.fixture
    def timed_app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(RequestTimingMiddleware)

        @app.get("/ok")
        async def ok():
            set_wide_event_fields(topic_key="sports")
            return {"ok": True}

        return app

    async def test_adds_timing_headers(self, timed_app: FastAPI):
        async with AsyncClient(
            transport=ASGITransport(app=timed_app), base_url="http://test"
        ) as client:
            response = await client.get("/ok")

        assert response.status_code == 200
        assert "x-request-duration-ms" in response.headers
        assert "x-request-id" in response.headers

    async def test_error_responses_emit_wide_event(self, timed_app: FastAPI):
        with patch("core.telemetry.logger") as mock_logger:
            async with AsyncClient(
                transport=ASGITransport(app=timed_app), base_url="http://test"
            ) as client:
                response = await client.get("/nope")

        assert response.status_code == 404
        mock_logger.info.assert_called_once()
        args, kwargs = mock_logger.info.call_args
        assert args == ("request.completed",)
        assert kwargs["http_status_code"] == 404
        assert kwargs["outcome"] == "error"

    async def test_reuses_client_request_id(self, timed_app: FastAPI):
        async with AsyncClient(
            transport=ASGITransport(app=timed_app), base_url="http://test"
        ) as client:
            response = await client.get("/ok", headers={"X-Request-Id": "abc-123"})

        assert response.headers["x-request-id"] == "abc-123"

    async def test_oversized_request_id_is_replaced(self, timed_app: FastAPI):
        async with AsyncClient(
            transport=ASGITransport(app=timed_app), base_url="http://test"
        ) as client:
            response = await client.get("/ok", headers={"X-Request-Id": "x" * 500})

        assert response.headers["x-request-id"] != "x" * 500

"""
Notes API — Middleware, Router and Healthcheck Tests
======================================================

What we test:
    ✅ healthcheck payload, headers and environment label
    ✅ router 404 / 405 envelopes
    ✅ CORS: trusted echo, untrusted silence, preflight, Vary everywhere
    ✅ recovery: unhandled errors become 500 + Connection: close + CORS headers
    ✅ DatabaseError details never reach the client
    ✅ X-Request-ID propagation
"""

import logging
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import ValidationError

from notes_api.config import Settings
from notes_api.exceptions import DatabaseError
from notes_api.main import create_app
from notes_api.middleware.logging import access_log_level
from notes_api.services.note_store import note_store

TRUSTED_ORIGIN = "http://localhost:3000"
SERVER_ERROR = {"error": "the server encountered a problem and could not process your request"}


class TestHealthcheck:
    """GET /v1/healthcheck"""

    @pytest.mark.asyncio
    async def test_healthcheck(self, test_client):
        response = await test_client.get("/v1/healthcheck")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "status": "available",
            "system_info": {"environment": "testing", "version": "1.0.0"},
        }

    @pytest.mark.asyncio
    async def test_healthcheck_is_stable(self, test_client):
        first = await test_client.get("/v1/healthcheck")
        second = await test_client.get("/v1/healthcheck")
        assert first.content == second.content

    @pytest.mark.asyncio
    @pytest.mark.parametrize("label", ["qa-eu", "Staging", "preview-42"])
    async def test_environment_label_is_reported_verbatim(self, label):
        app = create_app(Settings(database_url="sqlite+aiosqlite://", environment=label))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/v1/healthcheck")

        assert response.json()["system_info"]["environment"] == label

    @pytest.mark.parametrize("label", ["", "   "])
    def test_empty_environment_label_is_rejected(self, label):
        with pytest.raises(ValidationError):
            Settings(environment=label)


class TestRouterErrors:
    """Unmatched paths and methods."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/v1/nonexistent", "/", "/v1/notes/1/extra"])
    async def test_unknown_path(self, test_client, path):
        response = await test_client.get(path)

        assert response.status_code == 404
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"error": "the requested resource could not be found"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/v1/healthcheck"),
            ("GET", "/v1/notes"),
            ("PATCH", "/v1/notes/1"),
            ("POST", "/v1/notes/1"),
        ],
    )
    async def test_method_not_allowed(self, test_client, method, path):
        response = await test_client.request(method, path)

        assert response.status_code == 405
        assert response.json() == {
            "error": f"the {method} method is not supported for this resource"
        }


class TestCORS:
    """Origin negotiation and preflight handling."""

    @pytest.mark.asyncio
    async def test_trusted_origin_is_echoed(self, test_client):
        response = await test_client.get("/v1/healthcheck", headers={"Origin": TRUSTED_ORIGIN})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == TRUSTED_ORIGIN
        assert "Origin" in response.headers.get_list("vary")

    @pytest.mark.asyncio
    async def test_untrusted_origin_gets_no_cors_headers(self, test_client):
        response = await test_client.get(
            "/v1/healthcheck", headers={"Origin": "http://evil.com"}
        )

        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers
        assert "Origin" in response.headers.get_list("vary")

    @pytest.mark.asyncio
    async def test_no_origin_still_varies(self, test_client):
        response = await test_client.get("/v1/healthcheck")

        assert "access-control-allow-origin" not in response.headers
        assert response.headers.get_list("vary") == ["Origin"]

    @pytest.mark.asyncio
    async def test_origin_match_is_exact(self, test_client):
        response = await test_client.get(
            "/v1/healthcheck", headers={"Origin": TRUSTED_ORIGIN + "/"}
        )
        assert "access-control-allow-origin" not in response.headers

    @pytest.mark.asyncio
    async def test_trusted_preflight(self, test_client):
        response = await test_client.options(
            "/v1/notes/1",
            headers={
                "Origin": TRUSTED_ORIGIN,
                "Access-Control-Request-Method": "PUT",
            },
        )

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == TRUSTED_ORIGIN
        assert response.headers["access-control-allow-methods"] == "OPTIONS, PUT, PATCH, DELETE"
        assert response.headers["access-control-allow-headers"] == "Authorization, Content-Type"
        assert response.headers.get_list("vary") == [
            "Origin",
            "Access-Control-Request-Method",
            "Access-Control-Request-Headers",
        ]

    @pytest.mark.asyncio
    async def test_untrusted_preflight_reaches_router(self, test_client):
        response = await test_client.options(
            "/v1/notes/1",
            headers={
                "Origin": "http://evil.com",
                "Access-Control-Request-Method": "PUT",
            },
        )

        assert response.status_code == 405
        assert "access-control-allow-methods" not in response.headers
        assert "Access-Control-Request-Method" in response.headers.get_list("vary")

    @pytest.mark.asyncio
    async def test_error_responses_carry_cors_headers(self, test_client):
        response = await test_client.get("/v1/notes/999999", headers={"Origin": TRUSTED_ORIGIN})

        assert response.status_code == 404
        assert response.headers["access-control-allow-origin"] == TRUSTED_ORIGIN


class TestRecovery:
    """Unhandled exceptions inside the stack."""

    @pytest.mark.asyncio
    async def test_unhandled_exception_is_500_and_closes(self, app, test_client):
        async def explode():
            raise RuntimeError("boom")

        app.add_api_route("/v1/explode", explode, methods=["GET"])

        response = await test_client.get("/v1/explode")

        assert response.status_code == 500
        assert response.json() == SERVER_ERROR
        assert response.headers["connection"] == "close"

    @pytest.mark.asyncio
    async def test_recovered_response_carries_cors_headers(self, app, test_client):
        async def explode():
            raise RuntimeError("boom")

        app.add_api_route("/v1/explode", explode, methods=["GET"])

        trusted = await test_client.get("/v1/explode", headers={"Origin": TRUSTED_ORIGIN})
        untrusted = await test_client.get("/v1/explode", headers={"Origin": "http://evil.com"})
        bare = await test_client.get("/v1/explode")

        assert trusted.status_code == 500
        assert trusted.headers["access-control-allow-origin"] == TRUSTED_ORIGIN
        assert trusted.headers.get_list("vary") == ["Origin"]
        assert "access-control-allow-origin" not in untrusted.headers
        assert untrusted.headers.get_list("vary") == ["Origin"]
        assert bare.headers.get_list("vary") == ["Origin"]

    @pytest.mark.asyncio
    async def test_server_keeps_serving_after_failure(self, app, test_client):
        async def explode():
            raise RuntimeError("boom")

        app.add_api_route("/v1/explode", explode, methods=["GET"])

        await test_client.get("/v1/explode")
        response = await test_client.get("/v1/healthcheck")

        assert response.status_code == 200
        assert "connection" not in response.headers

    @pytest.mark.asyncio
    async def test_database_error_hides_details(self, test_client, monkeypatch):
        monkeypatch.setattr(
            note_store,
            "get",
            AsyncMock(side_effect=DatabaseError(context={"error": "password=hunter2"})),
        )

        response = await test_client.get("/v1/notes/1")

        assert response.status_code == 500
        assert response.json() == SERVER_ERROR
        assert "hunter2" not in response.text


class TestRequestID:
    """X-Request-ID correlation."""

    @pytest.mark.asyncio
    async def test_generated_when_absent(self, test_client):
        response = await test_client.get("/v1/healthcheck")
        assert len(response.headers["x-request-id"]) == 8

    @pytest.mark.asyncio
    async def test_client_value_is_reused(self, test_client):
        response = await test_client.get("/v1/healthcheck", headers={"X-Request-ID": "abc-123"})
        assert response.headers["x-request-id"] == "abc-123"


class TestAccessLog:
    """Access-log severity."""

    @pytest.mark.parametrize(
        "status,path,level",
        [
            (200, "/v1/notes/1", logging.INFO),
            (201, "/v1/notes", logging.INFO),
            (200, "/v1/healthcheck", logging.DEBUG),
            (404, "/v1/notes/9", logging.WARNING),
            (405, "/v1/healthcheck", logging.WARNING),
            (500, "/v1/notes/1", logging.ERROR),
        ],
    )
    def test_level_by_status(self, status, path, level):
        assert access_log_level(status, path) == level

    @pytest.mark.asyncio
    async def test_request_is_logged(self, test_client, caplog):
        with caplog.at_level(logging.INFO, logger="notes_api.access"):
            await test_client.get("/v1/notes/999999?x=1")

        records = [r for r in caplog.records if r.name == "notes_api.access"]
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert '"GET /v1/notes/999999?x=1" 404' in records[0].getMessage()

from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from drift_client.core.config import ClientConfig
from drift_client.errors import (
    DriftConnectionError,
    DriftProtocolError,
    DriftRequestError,
    DriftTimeoutError,
)
from drift_client.transport.base import HTTPTransport, build_headers

BASE_URL = "http://drift.local"


def _transport(handler, api_key: str | None = None, timeout_ms: int = 10000):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    config = ClientConfig.create(BASE_URL, api_key=api_key, timeout_ms=timeout_ms)
    return client, HTTPTransport(config, http_client=client)


@pytest.mark.anyio
async def test_request_returns_envelope_data():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"id": "b1"}})

    client, transport = _transport(handler)
    async with client:
        data = await transport.request("GET", "/api/v1/context/b1")

    assert data == {"id": "b1"}
    assert str(seen[0].url) == "http://drift.local/api/v1/context/b1"
    assert "content-type" not in seen[0].headers
    assert "authorization" not in seen[0].headers


@pytest.mark.anyio
async def test_request_sets_auth_and_json_headers():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": None})

    client, transport = _transport(handler, api_key="drift_secret123")
    async with client:
        await transport.request("POST", "/api/v1/drift/route", {"content": "hi"})

    request = seen[0]
    assert request.method == "POST"
    assert request.headers["content-type"] == "application/json"
    assert request.headers["authorization"] == "Bearer drift_secret123"
    assert json.loads(request.content) == {"content": "hi"}


def test_build_headers_omits_optional_entries():
    config = ClientConfig.create(BASE_URL)

    assert build_headers(config, has_body=False) == {}
    assert build_headers(config, has_body=True) == {"Content-Type": "application/json"}


@pytest.mark.anyio
@pytest.mark.parametrize("status", [200, 400, 500])
async def test_envelope_failure_uses_server_message(status: int):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"success": False, "error": {"message": "X"}})

    client, transport = _transport(handler)
    async with client:
        with pytest.raises(DriftRequestError) as exc_info:
            await transport.request("GET", "/api/v1/facts/b1")

    assert exc_info.value.message == "X"
    assert str(exc_info.value) == "X"
    assert exc_info.value.status_code == status


@pytest.mark.anyio
async def test_bad_status_without_message_synthesizes_one():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"success": True, "data": {}})

    client, transport = _transport(handler)
    async with client:
        with pytest.raises(DriftRequestError) as exc_info:
            await transport.request("GET", "/api/v1/facts/b1")

    assert exc_info.value.message == "Request failed: 503"
    assert exc_info.value.code == "REQUEST_FAILED"


@pytest.mark.anyio
async def test_failed_envelope_without_error_synthesizes_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False})

    client, transport = _transport(handler)
    async with client:
        with pytest.raises(DriftRequestError, match="Request failed: 200"):
            await transport.request("GET", "/api/v1/facts/b1")


@pytest.mark.anyio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(502, text="Bad Gateway"),
        httpx.Response(200, json=["not", "an", "envelope"]),
        httpx.Response(200, json={"data": {"id": "b1"}}),
    ],
)
async def test_malformed_body_raises_protocol_error(response: httpx.Response):
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    client, transport = _transport(handler)
    async with client:
        with pytest.raises(DriftProtocolError):
            await transport.request("GET", "/api/v1/context/b1")


@pytest.mark.anyio
async def test_slow_response_times_out_and_cancels_request():
    cancelled = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return httpx.Response(200, json={"success": True, "data": None})

    client, transport = _transport(handler, timeout_ms=50)
    async with client:
        with pytest.raises(DriftTimeoutError) as exc_info:
            await transport.request("GET", "/api/v1/context/b1")

    assert cancelled.is_set()
    assert exc_info.value.code == "REQUEST_TIMEOUT"


@pytest.mark.anyio
async def test_httpx_timeout_maps_to_timeout_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    client, transport = _transport(handler)
    async with client:
        with pytest.raises(DriftTimeoutError):
            await transport.request("GET", "/api/v1/context/b1")


@pytest.mark.anyio
async def test_connection_failure_maps_to_connection_error():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("refused", request=request)

    client, transport = _transport(handler)
    async with client:
        with pytest.raises(DriftConnectionError):
            await transport.request("GET", "/api/v1/context/b1")

    assert calls == 1


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("status", "body", "expected"),
    [
        (404, {"success": False, "error": "Branch not found"}, "Request failed: 404"),
        (200, {"success": False, "error": None}, "Request failed: 200"),
        (400, {"success": False, "error": {"message": 42}}, "Request failed: 400"),
        (422, {"success": False, "error": {"message": ""}}, "Request failed: 422"),
        (500, {"detail": "Internal error"}, "Request failed: 500"),
        (401, {"error": {"message": "Invalid API key"}}, "Invalid API key"),
    ],
)
async def test_failure_envelope_edges_raise_request_error(
    status: int, body: dict, expected: str
):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body)

    client, transport = _transport(handler)
    async with client:
        with pytest.raises(DriftRequestError) as exc_info:
            await transport.request("GET", "/api/v1/context/b1")

    assert exc_info.value.message == expected
    assert exc_info.value.status_code == status


@pytest.mark.anyio
async def test_non_json_error_page_keeps_status_code(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="<html>Service Unavailable</html>")

    client, transport = _transport(handler)
    caplog.set_level(logging.WARNING, logger="drift_client")
    async with client:
        with pytest.raises(DriftProtocolError) as exc_info:
            await transport.request("GET", "/api/v1/context/b1")

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == "PROTOCOL_ERROR"
    assert any("malformed body (503)" in record.getMessage() for record in caplog.records)


@pytest.mark.anyio
async def test_success_status_without_success_field_is_protocol_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [], "error": "ignored"})

    client, transport = _transport(handler)
    async with client:
        with pytest.raises(DriftProtocolError) as exc_info:
            await transport.request("GET", "/api/v1/facts/b1")

    assert exc_info.value.status_code == 200

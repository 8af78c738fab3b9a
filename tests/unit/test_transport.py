"""Unit tests for the httpx transport, using httpx.MockTransport."""

import json

import httpx
import pytest

from llmcredit.dashboard.transport import DashboardConnectionError, HttpxTransport


def _transport(handler):
    return HttpxTransport(timeout=1.0, connect_timeout=1.0, http_transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_once_sends_json_body():
    """Test method, headers and body reach the server and the response is mapped."""
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"ok": True})

    transport = _transport(handler)
    response = await transport.fetch_once(
        "POST", "https://dash.example/api/v1/reconciliation-log",
        headers={"Authorization": "Bearer k"}, json_body={"model": "openai:gpt-4"},
    )

    assert seen == {"method": "POST", "auth": "Bearer k", "body": {"model": "openai:gpt-4"}}
    assert response.ok
    assert response.status_code == 201
    assert response.reason_phrase == "Created"
    assert response.json() == {"ok": True}
    await transport.aclose()


@pytest.mark.asyncio
async def test_fetch_once_error_status_is_returned():
    """Test non-2xx responses are returned, not raised."""
    transport = _transport(lambda request: httpx.Response(503, text="down"))
    response = await transport.fetch_once("GET", "https://dash.example/api/v1/config", headers={})

    assert not response.ok
    assert response.status_code == 503
    assert response.text == "down"
    await transport.aclose()


@pytest.mark.asyncio
async def test_fetch_once_timeout_maps_to_timeout_error():
    """Test httpx timeouts surface as TimeoutError."""

    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    transport = _transport(handler)
    with pytest.raises(TimeoutError):
        await transport.fetch_once("GET", "https://dash.example/api/v1/config", headers={})
    await transport.aclose()


@pytest.mark.asyncio
async def test_open_stream_yields_events():
    """Test the SSE body is parsed into events."""
    seen = {}
    body = (
        b": keep-alive\n\n"
        b"data: {\"default_margin\": 2}\n\n"
        b"event: config\ndata: {\"credit_per_dollar\": 10}\n\n"
    )

    def handler(request):
        seen["accept"] = request.headers["Accept"]
        return httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})

    transport = _transport(handler)
    connection = await transport.open_stream(
        "https://dash.example/api/v1/config/subscribe",
        headers={"Authorization": "Bearer k", "Accept": "application/json"},
    )
    events = [event async for event in connection.events()]
    await connection.aclose()

    assert seen["accept"] == "text/event-stream"
    assert [e.data for e in events] == ['{"default_margin": 2}', '{"credit_per_dollar": 10}']
    assert events[1].event == "config"
    await transport.aclose()


@pytest.mark.asyncio
async def test_open_stream_refused():
    """Test a non-2xx stream response raises DashboardConnectionError."""
    transport = _transport(lambda request: httpx.Response(404))

    with pytest.raises(DashboardConnectionError, match="404"):
        await transport.open_stream("https://dash.example/api/v1/config/subscribe", headers={})
    await transport.aclose()


@pytest.mark.asyncio
async def test_open_stream_connection_failure():
    """Test network errors opening the stream raise DashboardConnectionError."""

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    transport = _transport(handler)
    with pytest.raises(DashboardConnectionError, match="connection failed"):
        await transport.open_stream("https://dash.example/api/v1/config/subscribe", headers={})
    await transport.aclose()

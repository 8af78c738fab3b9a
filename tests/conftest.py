"""Shared fixtures: in-memory dashboard transport and a recording sleep."""

import asyncio
import json

import pytest

from llmcredit.config.settings import DashboardSyncConfig
from llmcredit.dashboard.stream import ServerSentEvent
from llmcredit.dashboard.transport import (
    DashboardConnectionError,
    DashboardTransport,
    StreamConnection,
    TransportResponse,
)


class FakeStream(StreamConnection):
    """Stream whose events are pushed by the test; push(None) closes it."""

    def __init__(self):
        self._queue = asyncio.Queue()
        self.closed = False

    def push(self, data):
        self._queue.put_nowait(data)

    async def events(self):
        while True:
            data = await self._queue.get()
            if data is None:
                return
            yield ServerSentEvent(data=data)

    async def aclose(self):
        self.closed = True


class FakeTransport(DashboardTransport):
    """Records requests and replays queued responses (or raises queued exceptions).

    stream_mode: "open" (default), "fail" or "hang".
    """

    def __init__(self):
        self.requests = []
        self.responses = []
        self.default_response = TransportResponse(200, "OK", "{}")
        self.hang_requests = False
        self.stream_mode = "open"
        self.streams = []
        self.open_stream_calls = 0
        self.closed = False

    async def fetch_once(self, method, url, headers, json_body=None, timeout=5.0):
        self.requests.append(
            {"method": method, "url": url, "headers": headers, "json": json_body}
        )
        if self.hang_requests:
            await asyncio.Event().wait()
        result = self.responses.pop(0) if self.responses else self.default_response
        if isinstance(result, BaseException):
            raise result
        return result

    async def open_stream(self, url, headers):
        self.open_stream_calls += 1
        if self.stream_mode == "fail":
            raise DashboardConnectionError("Config stream refused: 404 Not Found")
        if self.stream_mode == "hang":
            await asyncio.Event().wait()
        stream = FakeStream()
        self.streams.append(stream)
        return stream

    async def aclose(self):
        self.closed = True

    def posts(self):
        return [r for r in self.requests if r["method"] == "POST"]


class RecordingSleep:
    """Records requested delays instead of waiting.

    After ``block_after`` calls, further calls block until cancelled.
    """

    def __init__(self, block_after=None):
        self.delays = []
        self.block_after = block_after

    async def __call__(self, delay):
        self.delays.append(delay)
        if self.block_after is not None and len(self.delays) > self.block_after:
            await asyncio.Event().wait()
        await asyncio.sleep(0)


async def wait_until(predicate, timeout=1.0):
    """Yield to the event loop until predicate() is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)


def config_response(document):
    return TransportResponse(200, "OK", json.dumps(document))


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def dashboard_config():
    return DashboardSyncConfig(
        api_key="test-api-key",
        endpoint="https://api.tokenix.com/",
        project_id="test-project",
        request_timeout=0.05,
        stream_connect_timeout=0.05,
    )


@pytest.fixture
def helpers():
    """Expose module helpers to tests without importing conftest."""

    class _Helpers:
        FakeTransport = FakeTransport
        RecordingSleep = RecordingSleep
        wait_until = staticmethod(wait_until)
        config_response = staticmethod(config_response)

    return _Helpers

"""Transport capability used by the dashboard client.

The client only needs two things from the network: a single request/response
exchange (``fetch_once``) and a persistent server-push connection
(``open_stream``). HttpxTransport implements both with httpx.AsyncClient;
tests substitute their own DashboardTransport.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from llmcredit.dashboard.stream import SSEParser, ServerSentEvent

logger = logging.getLogger(__name__)


class DashboardConnectionError(Exception):
    """Raised when a dashboard connection (stream or sync enablement) cannot be established."""


@dataclass
class TransportResponse:
    """Status and body of one HTTP exchange."""

    status_code: int
    reason_phrase: str = ""
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.text)


class StreamConnection(ABC):
    """An open server-push connection."""

    @abstractmethod
    def events(self) -> AsyncIterator[ServerSentEvent]:
        """Yield events until the server closes the connection."""
        pass

    @abstractmethod
    async def aclose(self) -> None:
        pass


class DashboardTransport(ABC):
    """Network capability the dashboard client is written against."""

    @abstractmethod
    async def fetch_once(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        json_body: Optional[Dict[str, Any]] = None,
        timeout: float = 5.0,
    ) -> TransportResponse:
        """Perform a single request. Raises on network failure or timeout."""
        pass

    @abstractmethod
    async def open_stream(self, url: str, headers: Dict[str, str]) -> StreamConnection:
        """Open a server-push connection; returns once the connection is open.

        Raises:
            DashboardConnectionError: If the server refuses the stream.
        """
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        pass


class _HttpxStreamConnection(StreamConnection):
    def __init__(self, response: httpx.Response):
        self._response = response

    async def events(self) -> AsyncIterator[ServerSentEvent]:
        parser = SSEParser()
        async for chunk in self._response.aiter_bytes():
            parser.feed(chunk)
            for event in parser.pop_events():
                yield event
        for event in parser.finalize():
            yield event

    async def aclose(self) -> None:
        await self._response.aclose()


class HttpxTransport(DashboardTransport):
    """httpx-based transport with a lazily created AsyncClient."""

    def __init__(
        self,
        timeout: float = 5.0,
        connect_timeout: float = 10.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            timeout: Default request timeout in seconds.
            connect_timeout: Connect timeout in seconds (also bounds stream setup).
            http_transport: Optional httpx transport (e.g. httpx.MockTransport).
        """
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._http_transport = http_transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy-init the httpx async client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=self._connect_timeout),
                follow_redirects=True,
                transport=self._http_transport,
            )
        return self._client

    async def fetch_once(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        json_body: Optional[Dict[str, Any]] = None,
        timeout: float = 5.0,
    ) -> TransportResponse:
        client = await self._get_client()
        try:
            response = await client.request(
                method, url, headers=headers, json=json_body, timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(str(e)) from e
        return TransportResponse(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            text=response.text,
        )

    async def open_stream(self, url: str, headers: Dict[str, str]) -> StreamConnection:
        client = await self._get_client()
        stream_headers = dict(headers)
        stream_headers["Accept"] = "text/event-stream"
        stream_headers.setdefault("Cache-Control", "no-cache")

        # Events may be minutes apart, so the read timeout is disabled
        req = client.build_request(
            "GET",
            url,
            headers=stream_headers,
            timeout=httpx.Timeout(self._timeout, connect=self._connect_timeout, read=None),
        )
        try:
            response = await client.send(req, stream=True)
        except httpx.HTTPError as e:
            raise DashboardConnectionError(f"Config stream connection failed: {e}") from e

        if not 200 <= response.status_code < 300:
            await response.aclose()
            raise DashboardConnectionError(
                f"Config stream refused: {response.status_code} {response.reason_phrase}"
            )
        logger.debug(f"Config stream opened: {url}")
        return _HttpxStreamConnection(response)

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

"""Dashboard client: reconciliation log posting and config synchronisation.

Every request gets a per-attempt timeout and is retried with exponential
backoff. All failures surface as DashboardApiError; the SDK catches and logs
them so the offline path never depends on the dashboard being reachable.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from llmcredit.config.settings import DashboardSyncConfig
from llmcredit.core.config_store import SDKConfiguration
from llmcredit.core.reconciler import ReconciliationLog
from llmcredit.dashboard.subscription import (
    ConfigCallback,
    ConfigSubscription,
    SubscriptionState,
)
from llmcredit.dashboard.transport import (
    DashboardConnectionError,
    DashboardTransport,
    HttpxTransport,
    TransportResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECONCILIATION_LOG_PATH = "/api/v1/reconciliation-log"
CONFIG_PATH = "/api/v1/config"
CONFIG_SUBSCRIBE_PATH = "/api/v1/config/subscribe"


class DashboardApiError(Exception):
    """Non-2xx response, timeout or network failure talking to the dashboard."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        status_text: Optional[str] = None,
    ):
        self.status_code = status_code
        self.status_text = status_text
        super().__init__(message)


class DashboardClient:
    """Talks to the dashboard API over a DashboardTransport."""

    def __init__(
        self,
        config: DashboardSyncConfig,
        transport: Optional[DashboardTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the dashboard client.

        Args:
            config: Endpoint, credentials and retry/timeout tuning
            transport: Network capability (HttpxTransport if None)
            sleep: Delay coroutine used for backoff, reconnect and polling

        Raises:
            DashboardConnectionError: If no endpoint is configured
        """
        if not config.endpoint:
            raise DashboardConnectionError("Dashboard endpoint is required")

        self.config = config.model_copy(update={"endpoint": config.endpoint.rstrip("/")})
        self._transport = transport or HttpxTransport(
            timeout=self.config.request_timeout,
            connect_timeout=self.config.stream_connect_timeout,
        )
        self._sleep = sleep
        self._subscription = ConfigSubscription(
            transport=self._transport,
            stream_url=self.endpoint + CONFIG_SUBSCRIBE_PATH,
            headers=self._headers(),
            fetch_config=self.fetch_config,
            connect_timeout=self.config.stream_connect_timeout,
            reconnect_delay=self.config.reconnect_delay,
            poll_interval=self.config.poll_interval,
            sleep=sleep,
        )
        logger.info(f"Dashboard client initialized with endpoint: {self.endpoint}")

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    @property
    def subscription_state(self) -> SubscriptionState:
        return self._subscription.state

    def _headers(self, with_body: bool = False) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Accept": "application/json",
        }
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def post_reconciliation_log(self, log: ReconciliationLog) -> None:
        """POST a reconciliation log.

        Raises:
            DashboardApiError: After all attempts have failed
        """
        payload = log.to_payload()
        if not payload.get("projectId") and self.config.project_id:
            payload["projectId"] = self.config.project_id

        url = self.endpoint + RECONCILIATION_LOG_PATH
        await self._retry_request(lambda: self._send("POST", url, payload))

    async def fetch_config(self) -> SDKConfiguration:
        """GET the full configuration document.

        Raises:
            DashboardApiError: After all attempts have failed, or if the body is malformed
        """
        url = self.endpoint + CONFIG_PATH
        response = await self._retry_request(lambda: self._send("GET", url))
        try:
            return SDKConfiguration.from_dict(response.json())
        except ValueError as e:
            raise DashboardApiError(
                f"Invalid config document from {url}: {e}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            ) from e

    def subscribe_to_config_updates(self, on_update: ConfigCallback) -> None:
        """Start push-with-polling-fallback config sync. No-op if already subscribed."""
        self._subscription.subscribe(on_update)

    def unsubscribe(self) -> None:
        """Close any open stream and stop polling."""
        self._subscription.unsubscribe()

    async def aclose(self) -> None:
        """Unsubscribe and release the transport."""
        self.unsubscribe()
        await self._transport.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> TransportResponse:
        """One attempt, bounded by the per-attempt timeout."""
        try:
            response = await asyncio.wait_for(
                self._transport.fetch_once(
                    method,
                    url,
                    headers=self._headers(with_body=json_body is not None),
                    json_body=json_body,
                    timeout=self.config.request_timeout,
                ),
                timeout=self.config.request_timeout,
            )
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise DashboardApiError(
                "Request timeout - check if dashboard endpoint is reachable"
            ) from e

        if not response.ok:
            raise DashboardApiError(
                f"Dashboard API error: {response.status_code} {response.reason_phrase} "
                f"- {response.text or 'Unknown error'}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )
        return response

    async def _retry_request(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation with up to max_retries retries and exponential backoff (500ms, 1s, 2s)."""
        max_retries = self.config.max_retries
        last_error: Optional[DashboardApiError] = None

        for attempt in range(max_retries + 1):
            try:
                return await operation()
            except DashboardApiError as e:
                last_error = e
            except Exception as e:
                last_error = DashboardApiError(f"Dashboard request failed: {e}")
                last_error.__cause__ = e

            if attempt == max_retries:
                break

            delay = self.config.retry_base_delay * (2 ** attempt)
            logger.info(f"Request failed (attempt {attempt + 1}), retrying in {delay}s: {last_error}")
            await self._sleep(delay)

        logger.error(f"Request failed after {max_retries + 1} attempts: {last_error}")
        raise last_error

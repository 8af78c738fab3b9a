"""Config subscription: server push with polling fallback.

States::

    UNSUBSCRIBED --subscribe()--> ATTEMPTING_STREAM
    ATTEMPTING_STREAM --open--> STREAM_ACTIVE
    ATTEMPTING_STREAM --failure/timeout--> POLLING
    STREAM_ACTIVE --message--> STREAM_ACTIVE (callback)
    STREAM_ACTIVE --close--> ATTEMPTING_STREAM (after reconnect_delay)
    POLLING: fetch now, then every poll_interval
    any --unsubscribe()--> UNSUBSCRIBED

The whole lifecycle runs in one background task. unsubscribe() cancels it and
forgets it; the task also checks after every await that it is still the
current run, so a cancel lost inside asyncio.wait_for cannot leave it polling.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from llmcredit.core.config_store import SDKConfiguration
from llmcredit.dashboard.transport import DashboardConnectionError, DashboardTransport

logger = logging.getLogger(__name__)

ConfigCallback = Callable[[SDKConfiguration], None]


class SubscriptionState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    ATTEMPTING_STREAM = "attempting_stream"
    STREAM_ACTIVE = "stream_active"
    POLLING = "polling"


class ConfigSubscription:
    """Singleton stream/poll resource for one dashboard client."""

    def __init__(
        self,
        transport: DashboardTransport,
        stream_url: str,
        headers: Dict[str, str],
        fetch_config: Callable[[], Awaitable[SDKConfiguration]],
        connect_timeout: float = 10.0,
        reconnect_delay: float = 5.0,
        poll_interval: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            transport: Network capability used to open the stream.
            stream_url: Full URL of the subscribe endpoint.
            headers: Auth headers sent when opening the stream.
            fetch_config: Coroutine function fetching the config once (with retries).
            connect_timeout: Seconds allowed for the stream to open.
            reconnect_delay: Seconds to wait before reopening a closed stream.
            poll_interval: Seconds between polls once in fallback mode.
            sleep: Delay coroutine (injectable for tests).
        """
        self._transport = transport
        self._stream_url = stream_url
        self._headers = headers
        self._fetch_config = fetch_config
        self._connect_timeout = connect_timeout
        self._reconnect_delay = reconnect_delay
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._state = SubscriptionState.UNSUBSCRIBED
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def is_subscribed(self) -> bool:
        return self._state is not SubscriptionState.UNSUBSCRIBED

    def subscribe(self, on_update: ConfigCallback) -> None:
        """Start the subscription. No-op when already subscribed.

        Raises:
            DashboardConnectionError: If called without a running event loop.
        """
        if self.is_subscribed:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise DashboardConnectionError(
                "Config subscription requires a running asyncio event loop"
            ) from e

        self._state = SubscriptionState.ATTEMPTING_STREAM
        self._task = loop.create_task(self._run(on_update))

    def unsubscribe(self) -> None:
        """Stop streaming/polling. Safe to call in any state, any number of times."""
        self._state = SubscriptionState.UNSUBSCRIBED
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def _is_current(self, run: Optional[asyncio.Task]) -> bool:
        return run is not None and self._task is run

    async def _run(self, on_update: ConfigCallback) -> None:
        run = asyncio.current_task()
        while self._is_current(run):
            self._state = SubscriptionState.ATTEMPTING_STREAM
            try:
                connection = await asyncio.wait_for(
                    self._transport.open_stream(self._stream_url, self._headers),
                    timeout=self._connect_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("Config stream connection timeout; falling back to polling")
                break
            except Exception as e:
                logger.warning(f"Config stream unavailable ({e}); falling back to polling")
                break

            try:
                if not self._is_current(run):
                    return
                self._state = SubscriptionState.STREAM_ACTIVE
                logger.info("Config stream subscription established")
                async for event in connection.events():
                    if not self._is_current(run):
                        return
                    self._handle_payload(event.data, on_update)
            except Exception as e:
                logger.warning(f"Config stream dropped: {e}")
            finally:
                await connection.aclose()

            if not self._is_current(run):
                return
            logger.info(f"Config stream closed; reconnecting in {self._reconnect_delay}s")
            await self._sleep(self._reconnect_delay)

        if self._is_current(run):
            await self._poll(run, on_update)

    async def _poll(self, run: asyncio.Task, on_update: ConfigCallback) -> None:
        self._state = SubscriptionState.POLLING
        logger.info("Starting config polling fallback")
        while self._is_current(run):
            try:
                config = await self._fetch_config()
            except Exception as e:
                logger.error(f"Config polling failed: {e}")
            else:
                if not self._is_current(run):
                    return
                self._deliver(config, on_update)
            if not self._is_current(run):
                return
            await self._sleep(self._poll_interval)
        logger.debug("Config polling stopped")

    def _handle_payload(self, data: str, on_update: ConfigCallback) -> None:
        try:
            config = SDKConfiguration.from_dict(json.loads(data))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.error(f"Failed to parse config update: {e}")
            return
        logger.info("Config update received from stream")
        self._deliver(config, on_update)

    def _deliver(self, config: SDKConfiguration, on_update: ConfigCallback) -> None:
        try:
            on_update(config)
        except Exception as e:
            logger.error(f"Config update callback failed: {e}")

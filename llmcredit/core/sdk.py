"""LLM Credit SDK: credit estimation, reconciliation and wrapped calls.

Works fully offline. Dashboard sync is opt-in and best-effort: config
updates from the dashboard replace the pricing configuration, and
reconciliation logs are posted in the background without ever failing a call.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Mapping, Optional, Set, TypeVar

from llmcredit.config.settings import DashboardSyncConfig
from llmcredit.core.config_store import ConfigStore, SDKConfiguration, merge_configs
from llmcredit.core.extractor import TokenExtractor
from llmcredit.core.pricing import estimate_credits, get_model_pricing
from llmcredit.core.reconciler import ReconciliationLog, ReconciliationRecord, reconcile_usage
from llmcredit.dashboard.client import DashboardClient
from llmcredit.dashboard.transport import DashboardTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CreditEstimate:
    """Result of a credit estimation."""

    estimated_credits: float


@dataclass
class WrapCallResult(Generic[T]):
    """Response of a wrapped call plus its reconciliation."""

    response: T
    reconciliation: ReconciliationRecord


class LLMCreditSDK:
    """Estimates and reconciles credits for LLM calls."""

    def __init__(
        self,
        custom_config: Optional[Mapping[str, Any]] = None,
        base_config: Optional[SDKConfiguration] = None,
    ):
        """Initialize the SDK.

        Args:
            custom_config: Partial wire-format config merged onto the base config
            base_config: Complete base config (built-in defaults if None)
        """
        if base_config is None:
            from llmcredit.config.defaults import DEFAULT_CONFIG

            base_config = SDKConfiguration.from_dict(DEFAULT_CONFIG)
        self._store = ConfigStore(merge_configs(base_config, custom_config))
        self._dashboard: Optional[DashboardClient] = None
        self._pending_logs: Set[asyncio.Task] = set()
        self._closing_clients: Set[asyncio.Task] = set()
        self._retired_clients: List[DashboardClient] = []

    # --- Pricing ---

    def estimate_credits(
        self,
        model: str,
        feature: str,
        prompt_tokens: int,
        completion_tokens: int,
    ) -> CreditEstimate:
        """Estimate credits for an LLM call before making it.

        Raises:
            UnknownModelError: If the model is not configured
        """
        credits = estimate_credits(
            self._store.current, model, feature, prompt_tokens, completion_tokens
        )
        return CreditEstimate(estimated_credits=credits)

    def reconcile(
        self,
        model: str,
        feature: str,
        prompt_tokens: int,
        completion_tokens: int,
        actual_prompt_tokens: int,
        actual_completion_tokens: int,
    ) -> ReconciliationRecord:
        """Reconcile estimated vs actual usage after an LLM call.

        Raises:
            UnknownModelError: If the model is not configured
        """
        return reconcile_usage(
            self._store.current,
            model,
            feature,
            prompt_tokens,
            completion_tokens,
            actual_prompt_tokens,
            actual_completion_tokens,
        )

    async def wrap_call(
        self,
        model: str,
        feature: str,
        prompt_tokens: int,
        completion_tokens: int,
        call_function: Callable[[], Any],
        token_extractor: Optional[TokenExtractor] = None,
    ) -> WrapCallResult:
        """Estimate, invoke, extract actual usage, reconcile and report.

        Errors raised by ``call_function`` or ``token_extractor`` propagate
        unchanged. Dashboard errors never do.

        Args:
            model: Model identifier
            feature: Feature identifier
            prompt_tokens: Estimated prompt tokens
            completion_tokens: Estimated completion tokens
            call_function: Zero-argument callable performing the LLM call;
                may be sync or return an awaitable
            token_extractor: Reads actual usage from the response. Without
                one, actual usage equals the estimate.

        Returns:
            WrapCallResult with the response and its reconciliation

        Raises:
            UnknownModelError: If the model is not configured (before invoking)
        """
        config = self._store.current
        estimate_credits(config, model, feature, prompt_tokens, completion_tokens)

        response = call_function()
        if inspect.isawaitable(response):
            response = await response

        actual_prompt_tokens = prompt_tokens
        actual_completion_tokens = completion_tokens
        if token_extractor is not None:
            usage = token_extractor.extract(response)
            actual_prompt_tokens = usage.prompt_tokens
            actual_completion_tokens = usage.completion_tokens

        reconciliation = reconcile_usage(
            config,
            model,
            feature,
            prompt_tokens,
            completion_tokens,
            actual_prompt_tokens,
            actual_completion_tokens,
        )

        if self._dashboard is not None:
            log = ReconciliationLog.from_record(
                reconciliation,
                model=model,
                feature=feature,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                actual_prompt_tokens=actual_prompt_tokens,
                actual_completion_tokens=actual_completion_tokens,
                credit_per_dollar=config.credit_per_dollar,
            )
            self._submit_log(self._dashboard, log)

        return WrapCallResult(response=response, reconciliation=reconciliation)

    # --- Configuration ---

    def get_config(self) -> SDKConfiguration:
        """Deep copy of the current configuration."""
        return self._store.get()

    def get_credit_per_dollar(self) -> float:
        return self._store.current.credit_per_dollar

    def get_available_models(self) -> List[str]:
        return list(self._store.current.models.keys())

    def get_available_features(self, model: str) -> List[str]:
        """Feature identifiers configured for a model.

        Raises:
            UnknownModelError: If the model is not configured
        """
        return list(get_model_pricing(self._store.current, model).features.keys())

    def _on_config_update(self, config: SDKConfiguration) -> None:
        self._store.replace(config)

    # --- Dashboard sync ---

    def enable_dashboard_sync(
        self,
        config: DashboardSyncConfig,
        transport: Optional[DashboardTransport] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ) -> None:
        """Connect to the dashboard and subscribe to config updates.

        Must be called from a running event loop. Failures are logged and
        leave sync disabled; they are never raised.
        """
        if self._dashboard is not None:
            self.disable_dashboard_sync()

        try:
            kwargs = {"sleep": sleep} if sleep is not None else {}
            client = DashboardClient(config, transport=transport, **kwargs)
            client.subscribe_to_config_updates(self._on_config_update)
        except Exception as e:
            logger.error(f"Failed to enable dashboard sync: {e}")
            return

        self._dashboard = client
        logger.info(f"Dashboard sync enabled with endpoint: {client.endpoint}")

    def disable_dashboard_sync(self) -> None:
        """Stop config sync. Logs already submitted still complete, then the client is closed."""
        client, self._dashboard = self._dashboard, None
        if client is None:
            return
        client.unsubscribe()
        self._retire_client(client)
        logger.info("Dashboard sync disabled")

    def is_dashboard_sync_enabled(self) -> bool:
        return self._dashboard is not None

    def _submit_log(self, client: DashboardClient, log: ReconciliationLog) -> None:
        task = asyncio.get_running_loop().create_task(self._post_log(client, log))
        self._pending_logs.add(task)
        task.add_done_callback(self._pending_logs.discard)

    async def _post_log(self, client: DashboardClient, log: ReconciliationLog) -> None:
        try:
            await client.post_reconciliation_log(log)
        except Exception as e:
            logger.error(f"Failed to post reconciliation log: {e}")

    def _retire_client(self, client: DashboardClient) -> None:
        """Close a disabled client once the logs submitted so far have finished."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to close it on; aclose() picks it up
            self._retired_clients.append(client)
            return
        task = loop.create_task(self._close_client(client, list(self._pending_logs)))
        self._closing_clients.add(task)
        task.add_done_callback(self._closing_clients.discard)

    async def _close_client(self, client: DashboardClient, pending: List[asyncio.Task]) -> None:
        if pending:
            await asyncio.gather(*pending)
        try:
            await client.aclose()
        except Exception as e:
            logger.error(f"Failed to close dashboard client: {e}")

    async def wait_for_pending_logs(self) -> None:
        """Wait until every submitted reconciliation log has been posted or dropped."""
        while self._pending_logs:
            await asyncio.gather(*list(self._pending_logs))

    async def aclose(self) -> None:
        """Disable sync, flush pending logs and release the dashboard transport."""
        self.disable_dashboard_sync()
        await self.wait_for_pending_logs()
        while self._closing_clients:
            await asyncio.gather(*list(self._closing_clients))
        retired, self._retired_clients = self._retired_clients, []
        for client in retired:
            await client.aclose()

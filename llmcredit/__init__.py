"""LLM Credit - credit estimation and reconciliation for LLM calls."""

__version__ = "0.1.0"

from typing import Any, Mapping, Optional

from llmcredit.core.sdk import LLMCreditSDK, CreditEstimate, WrapCallResult
from llmcredit.core.config_store import (
    SDKConfiguration,
    ModelPricing,
    FeaturePricing,
    ConfigStore,
    merge_configs,
    load_config_file,
)
from llmcredit.core.pricing import UnknownModelError
from llmcredit.core.reconciler import ReconciliationRecord, ReconciliationLog
from llmcredit.core.extractor import (
    TokenExtractor,
    TokenUsage,
    ExtractionError,
    CallableExtractor,
)
from llmcredit.core.extractors import (
    openai_chat_extractor,
    openai_generic_extractor,
    anthropic_messages_extractor,
    get_extractor,
)
from llmcredit.dashboard.client import DashboardClient, DashboardApiError
from llmcredit.dashboard.transport import DashboardConnectionError, DashboardTransport
from llmcredit.config.defaults import DEFAULT_CONFIG
from llmcredit.config.settings import Settings, DashboardSyncConfig


def create_sdk(
    config: Optional[Mapping[str, Any]] = None,
    settings: Optional[Settings] = None,
) -> LLMCreditSDK:
    """Create an SDK instance. Call once at startup and pass it where needed.

    Args:
        config: Partial pricing config merged last (wins over the settings file)
        settings: Settings; its pricing_file_path is merged onto the defaults first

    Returns:
        New LLMCreditSDK
    """
    _settings = settings or Settings()
    base = SDKConfiguration.from_dict(DEFAULT_CONFIG)
    if _settings.pricing_file_path:
        base = merge_configs(base, load_config_file(_settings.pricing_file_path))
    return LLMCreditSDK(custom_config=config, base_config=base)


__all__ = [
    "create_sdk",
    "LLMCreditSDK",
    "CreditEstimate",
    "WrapCallResult",
    "SDKConfiguration",
    "ModelPricing",
    "FeaturePricing",
    "ConfigStore",
    "merge_configs",
    "load_config_file",
    "UnknownModelError",
    "ReconciliationRecord",
    "ReconciliationLog",
    "TokenExtractor",
    "TokenUsage",
    "ExtractionError",
    "CallableExtractor",
    "openai_chat_extractor",
    "openai_generic_extractor",
    "anthropic_messages_extractor",
    "get_extractor",
    "DashboardClient",
    "DashboardApiError",
    "DashboardConnectionError",
    "DashboardTransport",
    "DEFAULT_CONFIG",
    "Settings",
    "DashboardSyncConfig",
]

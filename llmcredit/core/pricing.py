"""Pricing engine: token counts to dollar cost and credits.

All functions are pure over the configuration snapshot they are given.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import List

from llmcredit.core.config_store import ModelPricing, SDKConfiguration

# Credits and costs are reported to 6 decimal places
_PRECISION = Decimal("0.000001")


class UnknownModelError(KeyError):
    """Raised when a model identifier is not present in the current configuration."""

    def __init__(self, model: str, available_models: List[str]):
        self.model = model
        self.available_models = list(available_models)
        self.message = (
            f"Model '{model}' not found in configuration. "
            f"Available models: {', '.join(self.available_models)}"
        )
        super().__init__(self.message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


def round_amount(value: float) -> float:
    """Round to 6 decimal places, half away from zero, on the exact float value."""
    return float(Decimal(value).quantize(_PRECISION, rounding=ROUND_HALF_UP))


def get_model_pricing(config: SDKConfiguration, model: str) -> ModelPricing:
    """Look up pricing for a model.

    Raises:
        UnknownModelError: If the model is not configured.
    """
    pricing = config.models.get(model)
    if pricing is None:
        raise UnknownModelError(model, list(config.models.keys()))
    return pricing


def base_cost(pricing: ModelPricing, prompt_tokens: int, completion_tokens: int) -> float:
    """Dollar cost of a call before margin and credit conversion."""
    prompt_cost = (prompt_tokens / 1000) * pricing.prompt_cost_per_1k
    completion_cost = (completion_tokens / 1000) * pricing.completion_cost_per_1k
    return prompt_cost + completion_cost


def resolve_margin(config: SDKConfiguration, pricing: ModelPricing, feature: str) -> float:
    """Feature margin if the feature is configured for the model, else the default margin.

    A configured margin of 0 is honoured (free feature).
    """
    feature_pricing = pricing.features.get(feature)
    if feature_pricing is not None:
        return feature_pricing.margin
    return config.default_margin


def estimate_credits(
    config: SDKConfiguration,
    model: str,
    feature: str,
    prompt_tokens: int,
    completion_tokens: int,
) -> float:
    """Estimate credits for a call.

    Args:
        config: Configuration snapshot
        model: Model identifier (e.g. "openai:gpt-4")
        feature: Feature identifier (e.g. "chat")
        prompt_tokens: Prompt token count
        completion_tokens: Completion token count

    Returns:
        Credits rounded to 6 decimal places

    Raises:
        UnknownModelError: If the model is not configured.
    """
    pricing = get_model_pricing(config, model)
    cost = base_cost(pricing, prompt_tokens, completion_tokens)
    margin = resolve_margin(config, pricing, feature)
    return round_amount(cost * margin * config.credit_per_dollar)

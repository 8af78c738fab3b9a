"""Reconciliation of estimated vs actual usage."""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from llmcredit.core.config_store import SDKConfiguration
from llmcredit.core.pricing import (
    base_cost,
    estimate_credits,
    get_model_pricing,
    resolve_margin,
    round_amount,
)


@dataclass
class ReconciliationRecord:
    """Outcome of comparing a pre-call estimate with actual usage.

    Positive deltas mean the estimate was too low.
    """

    estimated_credits: float
    actual_tokens_used: int
    actual_cost: float
    credit_delta: float
    cost_delta: float
    margin_delta: float

    def __repr__(self) -> str:
        return (
            f"ReconciliationRecord(estimated_credits={self.estimated_credits}, "
            f"actual_cost=${self.actual_cost:.6f}, "
            f"credit_delta={self.credit_delta:+})"
        )


@dataclass
class ReconciliationLog:
    """Reconciliation record plus call context, as posted to the dashboard."""

    model: str
    feature: str
    prompt_tokens: int
    completion_tokens: int
    actual_prompt_tokens: int
    actual_completion_tokens: int
    estimated_credits: float
    actual_tokens_used: int
    actual_cost: float
    credit_delta: float
    cost_delta: float
    margin_delta: float
    credit_per_dollar: float
    timestamp: str
    project_id: Optional[str] = None

    @classmethod
    def from_record(
        cls,
        record: ReconciliationRecord,
        model: str,
        feature: str,
        prompt_tokens: int,
        completion_tokens: int,
        actual_prompt_tokens: int,
        actual_completion_tokens: int,
        credit_per_dollar: float,
        project_id: Optional[str] = None,
    ) -> "ReconciliationLog":
        timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        return cls(
            model=model,
            feature=feature,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            actual_prompt_tokens=actual_prompt_tokens,
            actual_completion_tokens=actual_completion_tokens,
            credit_per_dollar=credit_per_dollar,
            timestamp=timestamp,
            project_id=project_id,
            **asdict(record),
        )

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for POST /api/v1/reconciliation-log."""
        payload = {
            "model": self.model,
            "feature": self.feature,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "actualPromptTokens": self.actual_prompt_tokens,
            "actualCompletionTokens": self.actual_completion_tokens,
            "estimatedCredits": self.estimated_credits,
            "actualTokensUsed": self.actual_tokens_used,
            "actualCost": self.actual_cost,
            "creditDelta": self.credit_delta,
            "costDelta": self.cost_delta,
            "marginDelta": self.margin_delta,
            "creditPerDollar": self.credit_per_dollar,
            "timestamp": self.timestamp,
        }
        if self.project_id:
            payload["projectId"] = self.project_id
        return payload


def reconcile_usage(
    config: SDKConfiguration,
    model: str,
    feature: str,
    prompt_tokens: int,
    completion_tokens: int,
    actual_prompt_tokens: int,
    actual_completion_tokens: int,
) -> ReconciliationRecord:
    """Compare the estimate for (prompt_tokens, completion_tokens) with actual usage.

    Args:
        config: Configuration snapshot used for both sides
        model: Model identifier
        feature: Feature identifier
        prompt_tokens: Estimated prompt tokens
        completion_tokens: Estimated completion tokens
        actual_prompt_tokens: Prompt tokens actually billed
        actual_completion_tokens: Completion tokens actually billed

    Returns:
        ReconciliationRecord with every amount rounded to 6 decimal places

    Raises:
        UnknownModelError: If the model is not configured.
    """
    estimated = estimate_credits(config, model, feature, prompt_tokens, completion_tokens)

    pricing = get_model_pricing(config, model)
    estimated_cost = base_cost(pricing, prompt_tokens, completion_tokens)
    actual_cost = base_cost(pricing, actual_prompt_tokens, actual_completion_tokens)

    margin = resolve_margin(config, pricing, feature)
    actual_credits = actual_cost * margin * config.credit_per_dollar

    # Credits-per-dollar ratio is undefined for a zero-cost side
    if actual_cost == 0 or estimated_cost == 0:
        margin_delta = 0.0
    else:
        margin_delta = (actual_credits / actual_cost) - (estimated / estimated_cost)

    return ReconciliationRecord(
        estimated_credits=estimated,
        actual_tokens_used=actual_prompt_tokens + actual_completion_tokens,
        actual_cost=round_amount(actual_cost),
        credit_delta=round_amount(actual_credits - estimated),
        cost_delta=round_amount(actual_cost - estimated_cost),
        margin_delta=round_amount(margin_delta),
    )

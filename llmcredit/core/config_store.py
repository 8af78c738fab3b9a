"""Pricing configuration model, merge algorithm and the live configuration holder."""

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass
class FeaturePricing:
    """Margin applied to the base dollar cost for one feature."""

    margin: float

    def to_dict(self) -> Dict[str, float]:
        return {"margin": self.margin}


@dataclass
class ModelPricing:
    """Per-model token pricing (dollars per 1000 tokens) and feature margins."""

    prompt_cost_per_1k: float
    completion_cost_per_1k: float
    features: Dict[str, FeaturePricing] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModelPricing":
        """Build from a wire-format mapping. Missing costs default to 0.0.

        Raises:
            ValueError: If the mapping is malformed.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Model pricing must be a mapping, got: {data!r}")
        features = {}
        for name, feature in (data.get("features") or {}).items():
            if isinstance(feature, FeaturePricing):
                features[name] = FeaturePricing(margin=feature.margin)
            elif isinstance(feature, Mapping) and "margin" in feature:
                features[name] = FeaturePricing(margin=_as_float(feature["margin"], "margin"))
            else:
                raise ValueError(f"Feature '{name}' must define a margin, got: {feature!r}")
        return cls(
            prompt_cost_per_1k=_as_float(data.get("prompt_cost_per_1k", 0.0), "prompt_cost_per_1k"),
            completion_cost_per_1k=_as_float(
                data.get("completion_cost_per_1k", 0.0), "completion_cost_per_1k"
            ),
            features=features,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt_cost_per_1k": self.prompt_cost_per_1k,
            "completion_cost_per_1k": self.completion_cost_per_1k,
            "features": {name: f.to_dict() for name, f in self.features.items()},
        }


@dataclass
class SDKConfiguration:
    """Complete pricing configuration held by one SDK instance."""

    default_margin: float = 1.5
    credit_per_dollar: float = 1000
    models: Dict[str, ModelPricing] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SDKConfiguration":
        """Parse a full configuration document (e.g. from the dashboard).

        Raises:
            ValueError: If the document is malformed.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Configuration must be a JSON object, got: {type(data).__name__}")
        models = data.get("models") or {}
        if not isinstance(models, Mapping):
            raise ValueError("Configuration 'models' must be a mapping")
        return cls(
            default_margin=_as_float(data.get("default_margin", cls.default_margin), "default_margin"),
            credit_per_dollar=_as_float(
                data.get("credit_per_dollar", cls.credit_per_dollar), "credit_per_dollar"
            ),
            models={name: _coerce_model(pricing) for name, pricing in models.items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_margin": self.default_margin,
            "credit_per_dollar": self.credit_per_dollar,
            "models": {name: m.to_dict() for name, m in self.models.items()},
        }


def _as_float(value: Any, name: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{name}' must be a number, got: {value!r}")
    return value


def _coerce_model(pricing: Any) -> ModelPricing:
    if isinstance(pricing, ModelPricing):
        return copy.deepcopy(pricing)
    return ModelPricing.from_dict(pricing)


def _override(custom: Mapping[str, Any], key: str, fallback: Any) -> Any:
    value = custom.get(key)
    return fallback if value is None else value


def _merge_features(
    base: Mapping[str, Any], custom: Optional[Mapping[str, Any]], fallback_margin: float
) -> Dict[str, Dict[str, Any]]:
    """Overlay custom feature entries; an entry without a margin keeps the base one."""
    features = {name: dict(feature) for name, feature in base.items()}
    for name, feature in (custom or {}).items():
        if isinstance(feature, FeaturePricing):
            feature = feature.to_dict()
        margin = feature.get("margin") if isinstance(feature, Mapping) else None
        if margin is None:
            margin = features.get(name, {}).get("margin", fallback_margin)
        features[name] = {"margin": margin}
    return features


def merge_configs(default: SDKConfiguration, custom: Optional[Mapping[str, Any]]) -> SDKConfiguration:
    """Deep-merge a partial wire-format configuration onto a complete one.

    Scalars in ``custom`` override the default's. Models are merged by name:
    an existing model keeps any cost or feature that ``custom`` does not name,
    a new model is inserted as given. Missing fields mean "use the default":
    a feature entry without a margin keeps the default feature's margin, or
    the merged ``default_margin`` when there is none. Neither input is modified.

    Args:
        default: Complete base configuration
        custom: Partial configuration mapping (may be None or empty)

    Returns:
        New merged SDKConfiguration
    """
    custom = custom or {}
    result = SDKConfiguration(
        default_margin=_override(custom, "default_margin", default.default_margin),
        credit_per_dollar=_override(custom, "credit_per_dollar", default.credit_per_dollar),
        models=copy.deepcopy(default.models),
    )

    for name, model_config in (custom.get("models") or {}).items():
        if isinstance(model_config, ModelPricing):
            model_config = model_config.to_dict()
        elif not isinstance(model_config, Mapping):
            logger.warning(f"Ignoring pricing for model '{name}': expected a mapping, got {model_config!r}")
            continue

        existing = result.models.get(name)
        merged = existing.to_dict() if existing is not None else {
            "prompt_cost_per_1k": 0.0,
            "completion_cost_per_1k": 0.0,
            "features": {},
        }
        for key in ("prompt_cost_per_1k", "completion_cost_per_1k"):
            merged[key] = _override(model_config, key, merged[key])
        merged["features"] = _merge_features(
            merged["features"], model_config.get("features"), result.default_margin
        )
        result.models[name] = ModelPricing.from_dict(merged)

    return result


def load_config_file(path: str) -> Dict[str, Any]:
    """Load a partial configuration document from JSON or YAML.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        Parsed mapping (empty if the file is empty)

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the document is not a mapping.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Pricing config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        if config_path.suffix.lower() in (".yaml", ".yml"):
            import yaml

            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Pricing config file must contain a mapping: {config_path}")
    return data


class ConfigStore:
    """Holds exactly one configuration value, replaced atomically.

    Readers take ``current`` as a snapshot; it is never mutated in place,
    only swapped for a new object by ``replace``.
    """

    def __init__(self, initial: SDKConfiguration):
        self._config = initial

    @property
    def current(self) -> SDKConfiguration:
        """Live snapshot for internal read-only use."""
        return self._config

    def get(self) -> SDKConfiguration:
        """Return a deep copy that callers may mutate freely."""
        return copy.deepcopy(self._config)

    def replace(self, new_config: SDKConfiguration) -> None:
        """Install a new configuration wholesale."""
        self._config = copy.deepcopy(new_config)
        logger.info(
            f"Configuration replaced ({len(new_config.models)} models, "
            f"default_margin={new_config.default_margin}, "
            f"credit_per_dollar={new_config.credit_per_dollar})"
        )

"""Unit tests for the configuration model, merge and store."""

import json

import pytest

from llmcredit.config.defaults import DEFAULT_CONFIG
from llmcredit.config.settings import Settings
from llmcredit.core.config_store import (
    ConfigStore,
    FeaturePricing,
    ModelPricing,
    SDKConfiguration,
    load_config_file,
    merge_configs,
)


@pytest.fixture
def default_config():
    return SDKConfiguration.from_dict(DEFAULT_CONFIG)


def test_from_dict_parses_defaults(default_config):
    """Test the built-in defaults parse into the typed model."""
    assert default_config.default_margin == 1.5
    assert default_config.credit_per_dollar == 1000
    gpt4 = default_config.models["openai:gpt-4"]
    assert gpt4.prompt_cost_per_1k == 0.03
    assert gpt4.completion_cost_per_1k == 0.06
    assert gpt4.features["chat"] == FeaturePricing(margin=2.0)


def test_to_dict_round_trips_defaults(default_config):
    """Test serialisation back to the wire format."""
    assert default_config.to_dict() == DEFAULT_CONFIG


def test_from_dict_rejects_malformed_documents():
    """Test malformed documents raise ValueError."""
    with pytest.raises(ValueError):
        SDKConfiguration.from_dict(["not", "a", "mapping"])
    with pytest.raises(ValueError):
        SDKConfiguration.from_dict({"models": {"m": {"prompt_cost_per_1k": "cheap"}}})
    with pytest.raises(ValueError):
        SDKConfiguration.from_dict({"models": {"m": {"features": {"chat": {}}}}})
    with pytest.raises(ValueError):
        SDKConfiguration.from_dict({"default_margin": True})


def test_merge_empty_custom_keeps_defaults(default_config):
    """Test merging an empty custom config yields the default unchanged."""
    assert merge_configs(default_config, {}) == default_config
    assert merge_configs(default_config, None) == default_config


def test_merge_overrides_scalars(default_config):
    """Test default_margin and credit_per_dollar overrides."""
    merged = merge_configs(default_config, {"default_margin": 3.0, "credit_per_dollar": 250})
    assert merged.default_margin == 3.0
    assert merged.credit_per_dollar == 250
    assert merged.models == default_config.models


def test_merge_existing_model_preserves_unspecified_fields(default_config):
    """Test a partial model entry overrides only what it names."""
    merged = merge_configs(default_config, {
        "models": {
            "openai:gpt-4": {
                "prompt_cost_per_1k": 0.025,
                "features": {
                    "chat": {"margin": 2.5},
                    "legal_analysis": {"margin": 3.0},
                },
            }
        }
    })

    gpt4 = merged.models["openai:gpt-4"]
    assert gpt4.prompt_cost_per_1k == 0.025
    assert gpt4.completion_cost_per_1k == 0.06
    assert gpt4.features["chat"].margin == 2.5
    assert gpt4.features["legal_analysis"].margin == 3.0
    assert gpt4.features["summarize"].margin == 1.8
    assert gpt4.features["generate_code"].margin == 2.2
    assert gpt4.features["translate"].margin == 1.6


def test_merge_adds_new_model(default_config):
    """Test a new model is inserted as given and defaults stay intact."""
    merged = merge_configs(default_config, {
        "models": {
            "custom:my-ai-model": {
                "prompt_cost_per_1k": 0.005,
                "completion_cost_per_1k": 0.01,
                "features": {"document_analysis": {"margin": 2.5}},
            }
        }
    })

    assert merged.models["custom:my-ai-model"] == ModelPricing(
        prompt_cost_per_1k=0.005,
        completion_cost_per_1k=0.01,
        features={"document_analysis": FeaturePricing(margin=2.5)},
    )
    for name in default_config.models:
        assert merged.models[name] == default_config.models[name]


def test_merge_feature_without_margin_keeps_default_margin(default_config):
    """Test a feature entry with no margin falls back instead of failing."""
    merged = merge_configs(default_config, {
        "models": {
            "openai:gpt-4": {"features": {"chat": {}, "brainstorm": {"margin": None}}},
            "custom:model": {"features": {"qa": {}}},
        }
    })

    gpt4 = merged.models["openai:gpt-4"]
    assert gpt4.features["chat"].margin == 2.0
    assert gpt4.features["brainstorm"].margin == 1.5
    assert gpt4.features["summarize"].margin == 1.8
    assert merged.models["custom:model"].features["qa"].margin == 1.5
    assert merged.models["custom:model"].prompt_cost_per_1k == 0.0


def test_merge_feature_without_margin_uses_merged_default_margin(default_config):
    """Test the fallback is the default_margin of the merged config."""
    merged = merge_configs(default_config, {
        "default_margin": 3.0,
        "models": {"cohere:command": {"features": {"search": {}}}},
    })
    assert merged.models["cohere:command"].features["search"].margin == 3.0


def test_merge_ignores_non_mapping_model_entry(default_config):
    """Test a malformed model entry is skipped and the default kept."""
    merged = merge_configs(default_config, {"models": {"openai:gpt-4": 42}})
    assert merged.models["openai:gpt-4"] == default_config.models["openai:gpt-4"]


def test_merge_accepts_model_pricing_objects(default_config):
    """Test custom model entries may be ModelPricing instances."""
    merged = merge_configs(default_config, {
        "models": {"openai:gpt-4": ModelPricing(0.02, 0.04, {"chat": FeaturePricing(1.1)})}
    })
    gpt4 = merged.models["openai:gpt-4"]
    assert gpt4.prompt_cost_per_1k == 0.02
    assert gpt4.features["chat"].margin == 1.1
    assert gpt4.features["summarize"].margin == 1.8


def test_merge_does_not_mutate_inputs(default_config):
    """Test neither the default nor the custom mapping is modified."""
    before = default_config.to_dict()
    custom = {"models": {"openai:gpt-4": {"features": {"chat": {"margin": 9.0}}}}}
    merge_configs(default_config, custom)

    assert default_config.to_dict() == before
    assert custom == {"models": {"openai:gpt-4": {"features": {"chat": {"margin": 9.0}}}}}


def test_store_get_returns_copy(default_config):
    """Test callers cannot mutate live state through get()."""
    store = ConfigStore(default_config)
    copy = store.get()
    copy.default_margin = 99
    copy.models["openai:gpt-4"].features["chat"].margin = 99
    del copy.models["cohere:command"]

    assert store.current.default_margin == 1.5
    assert store.current.models["openai:gpt-4"].features["chat"].margin == 2.0
    assert "cohere:command" in store.current.models


def test_store_replace_swaps_whole_config(default_config):
    """Test replace installs a new object without touching old snapshots."""
    store = ConfigStore(default_config)
    snapshot = store.current
    new_config = SDKConfiguration(default_margin=3.0, credit_per_dollar=500, models={})

    store.replace(new_config)

    assert store.current.default_margin == 3.0
    assert store.current.models == {}
    assert snapshot.default_margin == 1.5
    assert "openai:gpt-4" in snapshot.models


def test_load_config_file_json(tmp_path):
    """Test loading a JSON pricing override file."""
    path = tmp_path / "pricing.json"
    path.write_text(json.dumps({"default_margin": 2.0}), encoding="utf-8")
    assert load_config_file(str(path)) == {"default_margin": 2.0}


def test_load_config_file_yaml(tmp_path):
    """Test loading a YAML pricing override file."""
    path = tmp_path / "pricing.yaml"
    path.write_text(
        "credit_per_dollar: 800\n"
        "models:\n"
        "  openai:gpt-4:\n"
        "    features:\n"
        "      chat:\n"
        "        margin: 2.4\n",
        encoding="utf-8",
    )
    data = load_config_file(str(path))
    assert data["credit_per_dollar"] == 800
    assert data["models"]["openai:gpt-4"]["features"]["chat"]["margin"] == 2.4


def test_load_config_file_missing():
    """Test handling of a missing pricing file."""
    with pytest.raises(FileNotFoundError):
        load_config_file("non_existent.json")


def test_load_config_file_rejects_non_mapping(tmp_path):
    """Test a list document is rejected."""
    path = tmp_path / "pricing.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_file(str(path))


def test_settings_load_from_file(tmp_path):
    """Test Settings loads from YAML."""
    path = tmp_path / "settings.yaml"
    path.write_text("pricing_file_path: /tmp/pricing.json\nlog_level: INFO\n", encoding="utf-8")
    settings = Settings.load_from_file(str(path))
    assert settings.pricing_file_path == "/tmp/pricing.json"
    assert settings.log_level == "INFO"

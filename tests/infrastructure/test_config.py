"""Tests for configuration dataclasses and loaders."""

from __future__ import annotations

import json

import pytest

from deep_research.infrastructure.config import (
    DEFAULT_MODELS,
    ModelConfig,
    RetryPolicy,
    SearchConfig,
    TraversalConfig,
    config_from_env,
    load_config_from_json,
)


class TestDefaults:

    def test_traversal_defaults(self) -> None:
        cfg = TraversalConfig()
        assert cfg.max_concurrency == 3
        assert cfg.content_char_limit == 25_000
        assert cfg.search_min_interval == 5.0
        assert cfg.search_retry.delays() == [10.0, 20.0, 40.0]

    def test_search_defaults(self) -> None:
        cfg = SearchConfig()
        assert cfg.provider == "brave"
        assert cfg.results_per_query == 10

    def test_model_defaults_validate(self) -> None:
        ModelConfig().validate()


class TestValidation:

    def test_bad_concurrency(self) -> None:
        with pytest.raises(ValueError, match="max_concurrency"):
            TraversalConfig.from_dict({"max_concurrency": 0})

    def test_bad_retry_policy(self) -> None:
        with pytest.raises(ValueError, match="max_retries"):
            RetryPolicy(max_retries=-1).validate()

    def test_unknown_model_provider(self) -> None:
        with pytest.raises(ValueError, match="provider"):
            ModelConfig(provider="llama-farm").validate()

    def test_unknown_keys_ignored(self) -> None:
        cfg = SearchConfig.from_dict({"timeout": 5.0, "colour": "blue"})
        assert cfg.timeout == 5.0


class TestLoadConfigFromJson:

    def test_model_section_provider_only(self) -> None:
        sections = load_config_from_json(json.dumps({"model": {"provider": "openai"}}))
        assert sections["model"].model == DEFAULT_MODELS["openai"]

    def test_sections(self) -> None:
        text = json.dumps(
            {
                "traversal": {"max_concurrency": 2, "search_retry": {"base_delay": 1.0}},
                "model": {"provider": "openai", "model": "gpt-4o"},
            }
        )
        sections = load_config_from_json(text)

        assert sections["traversal"].max_concurrency == 2
        assert isinstance(sections["traversal"].search_retry, RetryPolicy)
        assert sections["traversal"].search_retry.delays() == [1.0, 2.0, 4.0]
        assert sections["model"].provider == "openai"
        assert sections["search"] == SearchConfig()

    def test_top_level_must_be_object(self) -> None:
        with pytest.raises(ValueError):
            load_config_from_json("[1, 2]")

    def test_round_trip_to_dict(self) -> None:
        cfg = TraversalConfig(max_concurrency=4)
        assert TraversalConfig.from_dict(cfg.to_dict()) == cfg


class TestConfigFromEnv:

    def test_reads_env(self) -> None:
        sections = config_from_env(
            {
                "BRAVE_API_KEY": "brave-key",
                "DEEP_RESEARCH_MODEL_PROVIDER": "openai",
                "DEEP_RESEARCH_MODEL": "gpt-4o-mini",
            }
        )
        assert sections["search"].api_key == "brave-key"
        assert sections["model"].provider == "openai"
        assert sections["model"].model == "gpt-4o-mini"
        assert isinstance(sections["traversal"], TraversalConfig)

    def test_explicit_key_wins_over_env(self) -> None:
        base = load_config_from_json(json.dumps({"search": {"api_key": "from-file"}}))
        sections = config_from_env({"BRAVE_API_KEY": "from-env"}, base=base)
        assert sections["search"].api_key == "from-file"

    def test_search_provider_from_env(self) -> None:
        sections = config_from_env({"DEEP_RESEARCH_SEARCH_PROVIDER": "grounded"})
        assert sections["search"].provider == "grounded"

    def test_unknown_search_provider_rejected(self) -> None:
        with pytest.raises(ValueError, match="provider"):
            config_from_env({"DEEP_RESEARCH_SEARCH_PROVIDER": "altavista"})

    def test_provider_only_switches_default_model(self) -> None:
        sections = config_from_env({"DEEP_RESEARCH_MODEL_PROVIDER": "openai"})
        assert sections["model"].provider == "openai"
        assert sections["model"].model == DEFAULT_MODELS["openai"]

    def test_provider_override_keeps_explicit_model(self) -> None:
        base = load_config_from_json(json.dumps({"model": {"model": "custom-model"}}))
        sections = config_from_env({"DEEP_RESEARCH_MODEL_PROVIDER": "openai"}, base=base)
        assert sections["model"].model == "custom-model"

    def test_empty_env_keeps_defaults(self) -> None:
        sections = config_from_env({})
        assert sections["model"] == ModelConfig()
        assert sections["search"].api_key == ""


class TestCreateChatModel:

    def test_unknown_provider(self) -> None:
        from deep_research.domain.exceptions import ConfigurationError
        from deep_research.infrastructure.llm import create_chat_model

        with pytest.raises(ConfigurationError, match="Unknown model provider"):
            create_chat_model(ModelConfig(provider="llama-farm"))

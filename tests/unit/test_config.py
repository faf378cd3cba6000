"""Unit tests for settings, the YAML loader and the competency framework."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from feedback360.config.competency_framework import (
    DEFAULT_COMPETENCIES,
    DEFAULT_WEIGHTS,
    framework_from_config,
    weights_from_config,
)
from feedback360.config.loader import _deep_merge, load_config
from feedback360.config.settings import Settings
from feedback360.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "",
        "anthropic_api_key": "",
        "ollama_base_url": "http://localhost:11434",
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


# ======================================================================
# Settings
# ======================================================================


class TestSettings:
    def test_cache_defaults(self) -> None:
        settings = _settings()
        assert settings.generator_timeout_seconds == 60.0
        assert settings.generator_max_retries == 1
        assert settings.auto_recompute is True
        assert settings.min_responses == 1
        assert settings.insight_store_backend == "sqlite"

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _settings(generator_timeout_seconds=0)

    def test_min_responses_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            _settings(min_responses=0)

    def test_env_var_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTO_RECOMPUTE", "false")
        monkeypatch.setenv("GENERATOR_TIMEOUT_SECONDS", "12.5")
        settings = Settings(_env_file=None)
        assert settings.auto_recompute is False
        assert settings.generator_timeout_seconds == 12.5

    def test_available_providers_in_priority_order(self) -> None:
        settings = _settings(openai_api_key="sk-x", anthropic_api_key="ak-x")
        assert settings.get_available_llm_providers() == ["anthropic", "openai", "ollama"]

    def test_no_providers_without_ollama_url(self) -> None:
        assert _settings(ollama_base_url="").get_available_llm_providers() == []


# ======================================================================
# load_config
# ======================================================================


class TestLoadConfig:
    def test_missing_file_yields_env_sections_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), _settings(app_port=9000))
        assert config["app"]["port"] == 9000
        assert config["logging"]["level"] == "INFO"
        assert "relationship_weights" not in config

    def test_yaml_values_merged_with_env(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "app:\n  name: feedback360\n"
            "llm:\n  temperature: 0.1\n"
            "relationship_weights:\n  senior: 0.5\n  peer: 0.3\n  junior: 0.2\n"
        )
        config = load_config(str(path), _settings(openai_api_key="sk-x"))

        assert config["app"]["name"] == "feedback360"
        assert config["app"]["env"] == "test"
        assert config["llm"]["temperature"] == 0.1
        assert config["llm"]["available_providers"] == ["openai", "ollama"]
        assert config["relationship_weights"]["senior"] == 0.5

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path), _settings())

    def test_empty_yaml_is_empty_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert "app" in load_config(str(path), _settings())

    def test_repo_config_loads(self) -> None:
        repo_config = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        config = load_config(str(repo_config), _settings())
        assert weights_from_config(config) == DEFAULT_WEIGHTS
        assert framework_from_config(config) == list(DEFAULT_COMPETENCIES)

    def test_deep_merge_is_recursive(self) -> None:
        base = {"llm": {"temperature": 0.3}, "keep": 1}
        _deep_merge(base, {"llm": {"available_providers": ["openai"]}})
        assert base == {
            "llm": {"temperature": 0.3, "available_providers": ["openai"]},
            "keep": 1,
        }


# ======================================================================
# Competency framework and weights
# ======================================================================


class TestCompetencyFramework:
    def test_default_framework_has_seven_competencies(self) -> None:
        framework = framework_from_config({})
        assert len(framework) == 7
        assert all(set(c.rubric) == {1, 2, 3, 4, 5} for c in framework)

    def test_custom_framework(self) -> None:
        config = {
            "competencies": [
                {"name": "Delivery", "aspects": ["Deadlines"], "rubric": {1: "late", 5: "early"}}
            ]
        }
        framework = framework_from_config(config)
        assert [c.name for c in framework] == ["Delivery"]
        assert framework[0].rubric[5] == "early"

    @pytest.mark.parametrize("raw", [[], "Delivery", {"name": "Delivery"}])
    def test_malformed_framework_rejected(self, raw: object) -> None:
        with pytest.raises(ConfigurationError):
            framework_from_config({"competencies": raw})

    def test_invalid_entry_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            framework_from_config({"competencies": [{"aspects": ["no name"]}]})

    def test_default_weights(self) -> None:
        weights = weights_from_config({})
        assert (weights.senior, weights.peer, weights.junior) == (0.40, 0.35, 0.25)

    def test_custom_weights_partial(self) -> None:
        weights = weights_from_config({"relationship_weights": {"senior": 1.0}})
        assert weights.senior == 1.0
        assert weights.peer == 0.35

    def test_negative_weight_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            weights_from_config({"relationship_weights": {"peer": -0.1}})

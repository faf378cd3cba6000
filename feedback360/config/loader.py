"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Layers (later layers override earlier):
#
#   1. config/config.yaml  — static defaults checked into the repo
#                            (relationship weights, competency framework,
#                            LLM sampling parameters)
#   2. .env file           — local developer overrides (not committed)
#   3. Environment vars    — set at deploy time
#
# _deep_merge does recursive dict merging:
#   base      = {"llm": {"temperature": 0.3}}
#   overrides = {"llm": {"available_providers": ["openai"]}}
#   result    = {"llm": {"temperature": 0.3, "available_providers": ["openai"]}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from feedback360.config.settings import Settings
from feedback360.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
              an empty base config.
        settings: Settings to merge; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file exists but is not a mapping.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    if not isinstance(yaml_config, dict):
        raise ConfigurationError(message=f"{path} must contain a YAML mapping")

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value

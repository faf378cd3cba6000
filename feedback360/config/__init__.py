"""Configuration module — exports Settings, load_config and framework helpers."""

from feedback360.config.competency_framework import (
    DEFAULT_COMPETENCIES,
    DEFAULT_WEIGHTS,
    framework_from_config,
    weights_from_config,
)
from feedback360.config.loader import load_config
from feedback360.config.settings import Settings

__all__ = [
    "DEFAULT_COMPETENCIES",
    "DEFAULT_WEIGHTS",
    "Settings",
    "framework_from_config",
    "load_config",
    "weights_from_config",
]

"""Configuration loading for Stencilry."""
from __future__ import annotations

from .base import BaseDomainConfig
from .directives import DirectivesConfig
from .manager import ConfigManager, ENV_PREFIX, PROJECT_CONFIG_DIRNAME

__all__ = [
    "BaseDomainConfig",
    "ConfigManager",
    "DirectivesConfig",
    "ENV_PREFIX",
    "PROJECT_CONFIG_DIRNAME",
]

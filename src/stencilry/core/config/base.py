"""Base class for section-specific configuration accessors."""
from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from .manager import ConfigManager


class BaseDomainConfig(ABC):
    """Abstract base class for typed views over one config section.

    Usage:
        class MyConfig(BaseDomainConfig):
            def _config_section(self) -> str:
                return "mySection"

            @cached_property
            def my_setting(self) -> str:
                return self.section.get("mySetting", "default")
    """

    def __init__(
        self,
        repo_root: Optional[Path] = None,
        *,
        manager: Optional[ConfigManager] = None,
    ) -> None:
        self._manager = manager or ConfigManager(repo_root=repo_root)
        self._config = self._manager.load_config()

    @abstractmethod
    def _config_section(self) -> str:
        """Return the top-level config key for this accessor."""
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        """This accessor's config section, or an empty dict."""
        return self._config.get(self._config_section(), {}) or {}


__all__ = ["BaseDomainConfig"]

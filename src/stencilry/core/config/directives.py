"""Configuration for directive processing and output tags.

This config controls:
- The separator used to flatten nested input into lookup keys
- How many compiled predicates a DirectiveProcessor keeps
- Whether failed output tags are logged
- The level (and optional file) of the ``stencilry`` logger
"""
from __future__ import annotations

from functools import cached_property
from typing import Any, Dict

from .base import BaseDomainConfig


class DirectivesConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "directives"

    @cached_property
    def path_separator(self) -> str:
        return str(self.section.get("pathSeparator", ".") or ".")

    @cached_property
    def cache_size(self) -> int:
        return int(self.section.get("cacheSize", 128) or 0)

    @cached_property
    def logging(self) -> Dict[str, Any]:
        """The top-level ``logging`` section (level, optional file)."""
        return dict(self._config.get("logging") or {})

    @cached_property
    def log_output_failures(self) -> bool:
        output = self._config.get("output") or {}
        return bool(output.get("logFailures", True))


__all__ = ["DirectivesConfig"]

"""Bundled defaults and schemas shipped inside the stencilry package.

``config/defaults.yaml`` is the lowest configuration layer and
``schemas/config.schema.yaml`` validates the merged result; both are read
through :func:`read_yaml` by the config manager.
"""
from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """Return the on-disk path of a bundled directory, or of a file in it."""
    base = Path(str(resources.files("stencilry.data") / subpackage))
    return base / filename if filename else base


@lru_cache(maxsize=8)
def read_yaml(subpackage: str, filename: str) -> dict[str, Any]:
    """Load a bundled YAML document; an empty document reads as ``{}``.

    Results are cached per ``(subpackage, filename)``; see :func:`clear_caches`.
    """
    text = get_data_path(subpackage, filename).read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def clear_caches() -> None:
    read_yaml.cache_clear()


__all__ = ["get_data_path", "read_yaml", "clear_caches"]

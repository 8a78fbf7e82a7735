"""
Stencilry configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import jsonschema
import yaml

from stencilry.core.exceptions import ConfigError
from stencilry.core.utils.merge import deep_merge
from stencilry.data import get_data_path, read_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "STENCILRY_"
PROJECT_CONFIG_DIRNAME = ".stencilry"


class ConfigManager:
    """Load, merge, and validate Stencilry configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: STENCILRY_*
    2. Project config: <repo_root>/.stencilry/config/*.yaml (alphabetical order)
    3. Bundled defaults: stencilry.data/config/*.yaml (alphabetical order)

    Environment keys use ``__`` between path segments, e.g.
    ``STENCILRY_DIRECTIVES__CACHESIZE=32``. Segments match existing keys
    case-insensitively.
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else Path.cwd()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = self.repo_root / PROJECT_CONFIG_DIRNAME / "config"
        self._cache: Optional[Dict[str, Any]] = None

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file must contain a mapping: {path}",
                context={"path": str(path), "type": type(data).__name__},
            )
        return data

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        if not directory.is_dir():
            return cfg
        for path in sorted(directory.glob("*.y*ml")):
            logger.debug("Loading config layer %s", path)
            cfg = deep_merge(cfg, self.load_yaml(path))
        return cfg

    # ========== Environment Overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            segs = raw.split("__")
            if not raw or any(seg == "" for seg in segs):
                raise ConfigError(
                    f"Malformed {ENV_PREFIX}* key: empty segment in '{key}'.",
                    context={"key": key},
                )
            yield [seg.lower() for seg in segs], self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur = root
        for i, part in enumerate(path):
            # Match existing keys case-insensitively (YAML uses camelCase).
            candidates = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            use_key = candidates.get(part, part)
            if i == len(path) - 1:
                cur[use_key] = value
                return
            nxt = cur.get(use_key)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[use_key] = nxt
            cur = nxt

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def validate_schema(self, cfg: Dict[str, Any]) -> None:
        schema = read_yaml("schemas", "config.schema.yaml")
        try:
            jsonschema.validate(instance=cfg, schema=schema)
        except jsonschema.ValidationError as exc:
            location = ".".join(str(p) for p in exc.absolute_path) or "<root>"
            raise ConfigError(
                f"Configuration invalid at {location}: {exc.message}",
                context={"path": location},
            ) from exc

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load merged configuration.

        The result is cached on the manager; call :meth:`reload` after
        changing files or environment variables.
        """
        if self._cache is None:
            cfg: Dict[str, Any] = {}
            cfg = self._load_directory(self.core_config_dir, cfg)
            cfg = self._load_directory(self.project_config_dir, cfg)
            self.apply_env_overrides(cfg)
            if validate:
                self.validate_schema(cfg)
            self._cache = cfg
        return self._cache

    def reload(self) -> Dict[str, Any]:
        self._cache = None
        return self.load_config()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key.

        Example:
            >>> ConfigManager().get("directives.pathSeparator")
            '.'
        """
        current: Any = self.load_config()
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "ENV_PREFIX", "PROJECT_CONFIG_DIRNAME"]

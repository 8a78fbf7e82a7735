from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

_CONFIGURED_LOG_PATH: str | None = None
_STENCILRY_FILE_HANDLER: logging.Handler | None = None

LOGGER_NAME = "stencilry"


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(*, log_path: Path, level: str = "INFO") -> None:
    """Configure the ``stencilry`` logger to write to `log_path`.

    Idempotent per-process: if already configured for the same file, no-op.
    """
    global _CONFIGURED_LOG_PATH, _STENCILRY_FILE_HANDLER

    resolved = str(Path(log_path).resolve())
    if _CONFIGURED_LOG_PATH == resolved and _STENCILRY_FILE_HANDLER is not None:
        return

    Path(resolved).parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_level_from_name(level))

    # Replace the previously installed file handler when switching paths.
    if _STENCILRY_FILE_HANDLER is not None:
        logger.removeHandler(_STENCILRY_FILE_HANDLER)
        _STENCILRY_FILE_HANDLER.close()
        _STENCILRY_FILE_HANDLER = None

    fh = logging.FileHandler(resolved, encoding="utf-8")
    fh.setLevel(_level_from_name(level))
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(fh)

    _STENCILRY_FILE_HANDLER = fh
    _CONFIGURED_LOG_PATH = resolved


def configure_from_config(section: Mapping[str, Any]) -> None:
    """Apply a loaded ``logging`` config section.

    Only the level is applied unless ``file`` names a log file.
    ``DirectiveProcessor`` calls this when it loads its config.
    """
    level = str(section.get("level", "INFO"))
    log_file = section.get("file")
    if log_file:
        configure_stdlib_logging(log_path=Path(log_file), level=level)
    else:
        logging.getLogger(LOGGER_NAME).setLevel(_level_from_name(level))


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: clear configured handlers."""
    global _CONFIGURED_LOG_PATH, _STENCILRY_FILE_HANDLER
    logger = logging.getLogger(LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.setLevel(logging.NOTSET)
    _CONFIGURED_LOG_PATH = None
    _STENCILRY_FILE_HANDLER = None


__all__ = [
    "configure_stdlib_logging",
    "configure_from_config",
    "reset_stdlib_logging_for_tests",
]

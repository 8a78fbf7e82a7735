import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'stencilry'
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from stencilry.core.config import ConfigManager, DirectivesConfig  # noqa: E402
from stencilry.core.stdlib_logging import reset_stdlib_logging_for_tests  # noqa: E402
from stencilry.data import clear_caches  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_stencilry_env(monkeypatch):
    """Tests must be deterministic regardless of developer environment.

    STENCILRY_* variables in a developer shell would silently change config
    loading, so every test starts without them.
    """
    for key in list(os.environ):
        if key.startswith("STENCILRY_"):
            monkeypatch.delenv(key, raising=False)
    clear_caches()
    yield
    clear_caches()
    reset_stdlib_logging_for_tests()


@pytest.fixture
def isolated_project_env(tmp_path, monkeypatch):
    """Project root in a temp dir, used as cwd for config lookups."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def directives_config(isolated_project_env) -> DirectivesConfig:
    """DirectivesConfig built from bundled defaults only."""
    return DirectivesConfig(manager=ConfigManager(repo_root=isolated_project_env))

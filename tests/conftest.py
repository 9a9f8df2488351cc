import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'repovend' and tests/ importable as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from repovend.core.logging import reset_logging_for_tests


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Strip repovend settings from the environment and reset logging."""
    for key in list(os.environ):
        if key.startswith("REPOVEND_") or key == "VENDOR_IGNORE_DIRS":
            monkeypatch.delenv(key, raising=False)
    # Keep git from reading the developer's global config (signing, hooks, templates).
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("HGRCPATH", os.devnull)
    yield
    reset_logging_for_tests()


@pytest.fixture
def vend_root(tmp_path: Path) -> Path:
    """Empty vendoring root."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def git_upstream(tmp_path: Path):
    """Upstream git repository with one commit (skips when git is missing)."""
    from helpers.env import TestGitRepo, has_git

    if not has_git():
        pytest.skip("git is not installed")
    return TestGitRepo(tmp_path / "upstream" / "foo")


@pytest.fixture
def hg_upstream(tmp_path: Path):
    """Upstream Mercurial repository with one commit (skips when hg is missing)."""
    from helpers.env import TestHgRepo, has_hg

    if not has_hg():
        pytest.skip("hg is not installed")
    return TestHgRepo(tmp_path / "upstream" / "bar")

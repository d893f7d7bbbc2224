from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for entry in (ROOT, TESTS_DIR):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

from mempal.core.logger import reset_logger
from mempal_fakes import FakeNetwork

MEMPAL_ENV_VARS = (
    "MEMPAL_API_URL",
    "MEMPAL_USE_PRECISE_FEES",
    "MEMPAL_TIMEOUT_SEC",
    "MEMPAL_TOR_TIMEOUT_SEC",
    "MEMPAL_TOR_PROXY",
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep tests away from the user's config, .env values and log directory."""

    for key in MEMPAL_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("MEMPAL_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("MEMPAL_CONFIG", str(tmp_path / "absent.yaml"))
    yield
    reset_logger()


@pytest.fixture
def fake_network() -> FakeNetwork:
    return FakeNetwork()

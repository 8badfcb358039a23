from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SNAPROOM_SKIP_APP_AUTOLOAD", "1")

from snaproom.coord import CoordinatorHub  # noqa: E402

FIXED_CLOCK_MS = 1_700_000_000_000


@pytest.fixture
def hub() -> CoordinatorHub:
    return CoordinatorHub(clock=lambda: FIXED_CLOCK_MS)


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    for name in list(os.environ):
        if name.startswith("SNAPROOM_") and name != "SNAPROOM_SKIP_APP_AUTOLOAD":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SNAPROOM_LOG_DIR", str(tmp_path / "logs"))
    return tmp_path

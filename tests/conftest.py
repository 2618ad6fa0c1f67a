"""
Test configuration — puts the repo root on sys.path so the flat-layout
modules (planner, timers, profiles, ...) import directly, and keeps every
test away from the real user data directory.
"""

import sys
from pathlib import Path
from uuid import uuid4

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from models import Subject  # noqa: E402
from paths import DATA_DIR_ENV  # noqa: E402


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """Redirect app data into a per-test temp directory."""
    target = tmp_path / "data"
    monkeypatch.setenv(DATA_DIR_ENV, str(target))
    return target


@pytest.fixture
def make_subject():
    def _make(name, hours, urgency, completion=0.0):
        return Subject(
            id=str(uuid4()),
            name=name,
            hours_needed=hours,
            urgency=urgency,
            completion_percent=completion,
        )
    return _make

from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
sys.path.append(str(Path(__file__).resolve().parent))

from alisa.services import tracker


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(tracker.time, "sleep", sleeps.append)
    return sleeps


@pytest.fixture()
def emitted():
    return []

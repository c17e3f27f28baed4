import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest
from fastapi.testclient import TestClient

import comit.main as main
from comit.config import clear_settings_cache
from comit.scheduling import EventWindow
from comit.tests.factories import DAY


@pytest.fixture
def workday():
    return [EventWindow(DAY, 9, 17)]


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("ENABLE_DB", raising=False)
    clear_settings_cache()
    with TestClient(main.app) as c:
        yield c
    clear_settings_cache()

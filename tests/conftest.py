from __future__ import annotations

import os

import pytest

# Qt widgets require a platform plugin.  Offscreen avoids libGL dependencies
# inside the test container.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'records.db'}"


@pytest.fixture
def store(database_url):
    from modules._infra.repository import Store, dispose_engines

    handle = Store(database_url)
    yield handle
    dispose_engines()


@pytest.fixture
def notes():
    """Collects notifications passed to a service's ``notify`` callback."""

    return []


@pytest.fixture
def settings(tmp_path):
    from utils.settingsmanager import SettingsManager

    return SettingsManager(tmp_path / "settings.json")

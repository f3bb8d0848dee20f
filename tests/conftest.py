"""Shared fixtures for the SqlTidy tests."""
from __future__ import annotations

import os
import sys

import pytest

# Headless Qt; must be set before a QApplication exists
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure project root is on sys.path so imports work
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import settings as settings_module
from settings import SettingsManager


@pytest.fixture(scope="session")
def qapp():
    """Provide a single QApplication for the entire test session."""
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture()
def settings_manager(tmp_path, monkeypatch):
    """A SettingsManager writing to a temporary directory, also returned by get_settings()."""
    sm = SettingsManager(settings_dir=tmp_path / "config")
    monkeypatch.setattr(settings_module, "_settings_manager", sm)
    return sm

"""
Shared fixtures for transfer tests
"""

import os
import sys

import pytest
from PySide6.QtCore import QCoreApplication

from filetransfer.settings_manager import SettingsManager
from filetransfer.transfer_engine import TransferEngine
from tests.helpers.recorders import TransferRecorder


@pytest.fixture
def settings(tmp_path):
    """Isolated INI-backed settings with defaults"""
    return SettingsManager.from_file(tmp_path / "transfer_settings.ini")


@pytest.fixture
def engine(settings):
    return TransferEngine(settings)


@pytest.fixture
def recorder():
    return TransferRecorder()


@pytest.fixture
def standard_umask():
    """Pin the umask so creation modes are predictable"""
    if sys.platform == 'win32':
        yield
        return
    old = os.umask(0o022)
    try:
        yield
    finally:
        os.umask(old)


@pytest.fixture
def make_file(tmp_path):
    """Create a file with deterministic content of the requested size"""
    def _make(name: str, size: int, mode: int = None):
        path = tmp_path / name
        pattern = bytes(range(256))
        data = (pattern * (size // 256 + 1))[:size]
        path.write_bytes(data)
        if mode is not None:
            os.chmod(path, mode)
        return path
    return _make


@pytest.fixture(scope="session")
def qapp():
    """Ensure a Qt application object exists for worker-thread tests"""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv)
    yield app

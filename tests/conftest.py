# tests/conftest.py
import logging
import os
import subprocess
from unittest.mock import MagicMock

import pytest

from installer.config_models import AppSettings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep VDS_* variables of the machine running the tests out of AppSettings."""
    for key in list(os.environ):
        if key.startswith("VDS_"):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def apt_get_available(mocker):
    """AptManager refuses to start without apt-get; pretend it is there."""
    mocker.patch("common.debian.apt_manager.command_exists", return_value=True)


@pytest.fixture
def app_settings():
    return AppSettings(server_fqdn="vds.example.net")


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def completed():
    """Factory for subprocess.CompletedProcess results."""

    def _make(returncode=0, stdout="", stderr=""):
        return subprocess.CompletedProcess(
            args=[], returncode=returncode, stdout=stdout, stderr=stderr
        )

    return _make

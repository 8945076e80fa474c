# tests/installer/test_admin_user_configurator.py
from unittest.mock import MagicMock

import pytest

from installer.components.admin_user.admin_user_configurator import (
    AdminUserConfigurator,
)
from installer.config_models import AppSettings

MODULE = "installer.components.admin_user.admin_user_configurator"


@pytest.fixture
def host(mocker):
    return {
        "user_exists": mocker.patch(f"{MODULE}.user_exists", return_value=False),
        "path_exists": mocker.patch(f"{MODULE}.path_exists", return_value=False),
        "run_elevated": mocker.patch(f"{MODULE}.run_elevated_command"),
        "ensure_directory": mocker.patch(f"{MODULE}.ensure_directory"),
        "write_file": mocker.patch(f"{MODULE}.write_file"),
        "append_line": mocker.patch(f"{MODULE}.append_line_if_missing", return_value=True),
    }


def _commands(host):
    return [c.args[0] for c in host["run_elevated"].call_args_list]


def test_configure_creates_user_and_layout(app_settings, host):
    component = AdminUserConfigurator(app_settings, MagicMock())

    assert component.configure() is True

    commands = _commands(host)
    assert commands[0] == ["useradd", "-m", "-s", "/bin/bash", "vdsadmin"]
    assert ["usermod", "-aG", "sudo", "vdsadmin"] in commands
    assert ["chmod", "711", "/home/vdsadmin"] in commands
    assert [
        "chown", "-R", "vdsadmin:vdsadmin",
        "/home/vdsadmin/certs", "/home/vdsadmin/github_keys",
        "/home/vdsadmin/logs", "/home/vdsadmin/www",
    ] in commands

    sudoers_call = host["write_file"].call_args
    assert sudoers_call.args[0] == "/etc/sudoers.d/vdsadmin"
    assert sudoers_call.args[1] == "vdsadmin ALL=(ALL) NOPASSWD: ALL\n"
    assert sudoers_call.kwargs["mode"] == "440"

    created = [c.args[0] for c in host["ensure_directory"].call_args_list]
    assert "/home/vdsadmin/logs/errors" in created
    host["append_line"].assert_called_once_with(
        "/home/vdsadmin/.bashrc", "alias s='sudo su'", app_settings, component.logger
    )


def test_generates_key_when_no_source_keys(app_settings, host):
    AdminUserConfigurator(app_settings, MagicMock()).configure()

    commands = _commands(host)
    keygen = next(c for c in commands if c[0] == "ssh-keygen")
    assert keygen[-1] == "/home/vdsadmin/.ssh/id_rsa"
    assert "4096" in keygen
    assert [
        "cp", "/home/vdsadmin/.ssh/id_rsa.pub", "/home/vdsadmin/.ssh/authorized_keys",
    ] in commands


def test_copies_cloud_image_keys(app_settings, host):
    host["user_exists"].return_value = True
    host["path_exists"].side_effect = lambda path, *args: path.startswith("/home/ubuntu")

    AdminUserConfigurator(app_settings, MagicMock()).configure()

    commands = _commands(host)
    assert commands[0] == [
        "cp", "/home/ubuntu/.ssh/authorized_keys", "/home/vdsadmin/.ssh/authorized_keys",
    ]
    assert not any(c[0] in ("useradd", "ssh-keygen") for c in commands)


def test_default_user_kept_unless_requested(app_settings, host):
    host["user_exists"].return_value = True

    AdminUserConfigurator(app_settings, MagicMock()).configure()

    assert not any(c[0] == "deluser" for c in _commands(host))


def test_default_user_removed_when_requested(host):
    host["user_exists"].return_value = True
    settings = AppSettings(admin_user={"remove_default_user": True})

    AdminUserConfigurator(settings, MagicMock()).configure()

    assert _commands(host)[-1] == ["deluser", "--remove-home", "ubuntu"]


def test_configure_failure_is_reported(app_settings, host):
    host["run_elevated"].side_effect = RuntimeError("useradd missing")
    component = AdminUserConfigurator(app_settings, MagicMock())

    assert component.configure() is False
    component.logger.error.assert_called_once()


def test_is_configured(app_settings, host):
    host["user_exists"].return_value = True
    host["path_exists"].return_value = True

    assert AdminUserConfigurator(app_settings, MagicMock()).is_configured() is True

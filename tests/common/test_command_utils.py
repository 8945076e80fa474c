# tests/common/test_command_utils.py
# -*- coding: utf-8 -*-
"""
Tests for command execution and logging helpers.
"""

import os
import subprocess
from unittest.mock import MagicMock

import pytest

from common.command_utils import (
    check_package_installed,
    log_server,
    run_command,
    run_elevated_command,
)


def _logged_messages(logger):
    return [c.args[1] for c in logger.log.call_args_list]


def test_log_server_maps_success_to_info(mock_logger):
    log_server("done", "success", mock_logger)
    mock_logger.log.assert_called_once_with(20, "done", exc_info=False)


def test_log_server_unknown_level_logs_info(mock_logger):
    log_server("hello", "shout", mock_logger)
    assert mock_logger.log.call_args.args[0] == 20


def test_run_command_logs_and_returns_result(mocker, app_settings, mock_logger, completed):
    mock_run = mocker.patch(
        "common.command_utils.subprocess.run", return_value=completed(stdout="ok\n")
    )

    result = run_command(
        ["echo", "ok"], app_settings, capture_output=True, current_logger=mock_logger
    )

    assert result.stdout == "ok\n"
    mock_run.assert_called_once()
    assert mock_run.call_args.args[0] == ["echo", "ok"]
    messages = _logged_messages(mock_logger)
    assert any("Executing: echo ok" in m for m in messages)
    assert any("stdout: ok" in m for m in messages)


def test_run_command_merges_env_over_os_environ(mocker, app_settings, completed):
    mock_run = mocker.patch("common.command_utils.subprocess.run", return_value=completed())

    run_command(["mysql"], app_settings, env={"MYSQL_PWD": "secret"})

    env = mock_run.call_args.kwargs["env"]
    assert env["MYSQL_PWD"] == "secret"
    assert env.get("PATH") == os.environ.get("PATH")


def test_run_command_env_values_are_not_logged(mocker, app_settings, mock_logger, completed):
    mocker.patch("common.command_utils.subprocess.run", return_value=completed())

    run_command(["mysql"], app_settings, current_logger=mock_logger, env={"MYSQL_PWD": "secret"})

    assert not any("secret" in m for m in _logged_messages(mock_logger))


def test_run_command_without_log_output_hides_stdout(mocker, app_settings, mock_logger, completed):
    mocker.patch(
        "common.command_utils.subprocess.run", return_value=completed(stdout="p4ssw0rd")
    )

    run_command(
        ["tee", "/tmp/x"],
        app_settings,
        capture_output=True,
        current_logger=mock_logger,
        log_output=False,
    )

    assert not any("p4ssw0rd" in m for m in _logged_messages(mock_logger))


def test_run_command_failure_logs_and_reraises(mocker, app_settings, mock_logger):
    error = subprocess.CalledProcessError(2, ["false"], output="", stderr="boom")
    mocker.patch("common.command_utils.subprocess.run", side_effect=error)

    with pytest.raises(subprocess.CalledProcessError):
        run_command(["false"], app_settings, current_logger=mock_logger)

    messages = _logged_messages(mock_logger)
    assert any("failed (rc 2)" in m for m in messages)
    assert any("stderr: boom" in m for m in messages)


def test_run_command_missing_binary_reraises(mocker, app_settings, mock_logger):
    mocker.patch(
        "common.command_utils.subprocess.run",
        side_effect=FileNotFoundError(2, "No such file", "nope"),
    )

    with pytest.raises(FileNotFoundError):
        run_command(["nope"], app_settings, current_logger=mock_logger)


def test_run_elevated_command_prefixes_sudo_for_non_root(mocker, app_settings, completed):
    mocker.patch("common.command_utils.os.geteuid", return_value=1000)
    mock_run = mocker.patch("common.command_utils.subprocess.run", return_value=completed())

    run_elevated_command(
        ["apt-get", "update"], app_settings, env={"DEBIAN_FRONTEND": "noninteractive"}
    )

    assert mock_run.call_args.args[0] == [
        "sudo", "env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "update",
    ]


def test_run_elevated_command_as_root_has_no_prefix(mocker, app_settings, completed):
    mocker.patch("common.command_utils.os.geteuid", return_value=0)
    mock_run = mocker.patch("common.command_utils.subprocess.run", return_value=completed())

    run_elevated_command(["systemctl", "reload", "nginx"], app_settings)

    assert mock_run.call_args.args[0] == ["systemctl", "reload", "nginx"]


@pytest.mark.parametrize(
    "returncode, stdout, expected",
    [
        (0, "install ok installed", True),
        (0, "deinstall ok config-files", False),
        (1, "", False),
    ],
)
def test_check_package_installed(mocker, app_settings, completed, returncode, stdout, expected):
    mocker.patch(
        "common.command_utils.run_command",
        return_value=completed(returncode=returncode, stdout=stdout),
    )
    assert check_package_installed("nginx-full", app_settings) is expected


def test_check_package_installed_without_dpkg(mocker, app_settings):
    mocker.patch("common.command_utils.run_command", side_effect=FileNotFoundError())
    assert check_package_installed("nginx-full", app_settings, MagicMock()) is False

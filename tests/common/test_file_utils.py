# tests/common/test_file_utils.py
from subprocess import CalledProcessError

from pytest_mock import MockerFixture

from common.file_utils import (
    append_line_if_missing,
    backup_file,
    ensure_directory,
    read_file,
    remove_path,
    write_file,
)


def test_backup_file_success(mocker: MockerFixture, app_settings, completed):
    """An existing file is copied next to itself with a timestamp suffix."""
    mock_run = mocker.patch(
        "common.file_utils.run_elevated_command",
        side_effect=[completed(returncode=0), completed()],
    )

    result = backup_file("/etc/nginx/sites-available/a.conf", app_settings)

    assert result.startswith("/etc/nginx/sites-available/a.conf.bak.")
    copy_cmd = mock_run.call_args_list[1].args[0]
    assert copy_cmd[:3] == ["cp", "-a", "/etc/nginx/sites-available/a.conf"]
    assert copy_cmd[3] == result


def test_backup_file_nonexistent(mocker: MockerFixture, app_settings, completed):
    """No backup is taken when the file does not exist."""
    mock_run = mocker.patch(
        "common.file_utils.run_elevated_command", return_value=completed(returncode=1)
    )

    assert backup_file("/missing", app_settings) is None
    mock_run.assert_called_once()


def test_write_file_pipes_content_through_tee(mocker: MockerFixture, app_settings):
    mock_run = mocker.patch("common.file_utils.run_elevated_command")

    write_file("/etc/x.conf", "content\n", app_settings, mode="600", owner="a:b")

    tee_call, chmod_call, chown_call = mock_run.call_args_list
    assert tee_call.args[0] == ["tee", "/etc/x.conf"]
    assert tee_call.kwargs["cmd_input"] == "content\n"
    assert tee_call.kwargs["log_output"] is False
    assert chmod_call.args[0] == ["chmod", "600", "/etc/x.conf"]
    assert chown_call.args[0] == ["chown", "a:b", "/etc/x.conf"]


def test_write_file_append_uses_tee_a(mocker: MockerFixture, app_settings):
    mock_run = mocker.patch("common.file_utils.run_elevated_command")

    write_file("/etc/x.conf", "more\n", app_settings, append=True)

    mock_run.assert_called_once()
    assert mock_run.call_args.args[0] == ["tee", "-a", "/etc/x.conf"]


def test_read_file_missing_returns_none(mocker: MockerFixture, app_settings, completed):
    mocker.patch(
        "common.file_utils.run_elevated_command", return_value=completed(returncode=1)
    )
    assert read_file("/nope", app_settings) is None


def test_append_line_if_missing_skips_existing_line(mocker: MockerFixture, app_settings, completed):
    mocker.patch(
        "common.file_utils.run_elevated_command", return_value=completed(returncode=0)
    )
    mock_write = mocker.patch("common.file_utils.write_file")

    assert append_line_if_missing("/home/a/.bashrc", "alias s='sudo su'", app_settings) is False
    mock_write.assert_not_called()


def test_append_line_if_missing_appends(mocker: MockerFixture, app_settings, completed):
    mocker.patch(
        "common.file_utils.run_elevated_command", return_value=completed(returncode=1)
    )
    mock_write = mocker.patch("common.file_utils.write_file")

    assert append_line_if_missing("/home/a/.bashrc", "alias s='sudo su'", app_settings) is True
    assert mock_write.call_args.args[1] == "alias s='sudo su'\n"
    assert mock_write.call_args.kwargs["append"] is True


def test_ensure_directory_sets_owner_and_mode(mocker: MockerFixture, app_settings):
    mock_run = mocker.patch("common.file_utils.run_elevated_command")

    ensure_directory("/home/a/.ssh", app_settings, owner="a:a", mode="700")

    assert [c.args[0] for c in mock_run.call_args_list] == [
        ["mkdir", "-p", "/home/a/.ssh"],
        ["chown", "a:a", "/home/a/.ssh"],
        ["chmod", "700", "/home/a/.ssh"],
    ]


def test_remove_path_failure_returns_false(mocker: MockerFixture, app_settings):
    mocker.patch(
        "common.file_utils.run_elevated_command",
        side_effect=CalledProcessError(1, ["rm"]),
    )
    assert remove_path("/etc/x", app_settings) is False

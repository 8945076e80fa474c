# common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions: backups, root-owned file writes and
directory creation.

Most targets live under /etc or another user's home, so every write goes
through an elevated command (`tee`, `install`, `chown`) instead of open().
"""

import datetime
import logging
import subprocess
from typing import Optional

from installer.config_models import AppSettings

from .command_utils import get_symbols, log_server, run_elevated_command

module_logger = logging.getLogger(__name__)


def backup_file(
    file_path: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Copy `file_path` to `<file_path>.bak.<timestamp>` preserving attributes.

    Returns:
        The backup path, or None when the file does not exist.

    Raises:
        subprocess.CalledProcessError: If the copy itself fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    probe = run_elevated_command(
        ["test", "-f", file_path],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=logger_to_use,
    )
    if probe.returncode != 0:
        log_server(
            f"{symbols.get('info', 'ℹ️')} File {file_path} does not exist. No backup needed.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return None

    timestamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = f"{file_path}.bak.{timestamp}"
    run_elevated_command(
        ["cp", "-a", file_path, backup_path],
        app_settings,
        current_logger=logger_to_use,
    )
    log_server(
        f"{symbols.get('success', '✅')} Backed up {file_path} to {backup_path}",
        "success",
        logger_to_use,
        app_settings,
    )
    return backup_path


def write_file(
    file_path: str,
    content: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    mode: Optional[str] = None,
    owner: Optional[str] = None,
    append: bool = False,
) -> None:
    """
    Write (or append) `content` to a root-owned file via `tee`.

    Args:
        file_path: Destination path.
        content: Text to write.
        app_settings: Provisioner settings.
        current_logger: Logger to use.
        mode: Optional chmod mode, e.g. "600".
        owner: Optional chown spec, e.g. "vdsadmin:vdsadmin".
        append: Use `tee -a`.
    """
    logger_to_use = current_logger if current_logger else module_logger
    tee_cmd = ["tee", "-a", file_path] if append else ["tee", file_path]
    # tee echoes its input; capture and drop it so file contents stay out of the log.
    run_elevated_command(
        tee_cmd,
        app_settings,
        cmd_input=content,
        capture_output=True,
        log_output=False,
        current_logger=logger_to_use,
    )
    if mode:
        run_elevated_command(
            ["chmod", mode, file_path],
            app_settings,
            current_logger=logger_to_use,
        )
    if owner:
        run_elevated_command(
            ["chown", owner, file_path],
            app_settings,
            current_logger=logger_to_use,
        )
    log_server(
        f"{get_symbols(app_settings).get('success', '✅')} {'Appended to' if append else 'Wrote'} {file_path}",
        "info",
        logger_to_use,
        app_settings,
    )


def read_file(
    file_path: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    log_output: bool = True,
) -> Optional[str]:
    """Return the contents of a root-readable file, or None if it is missing."""
    result = run_elevated_command(
        ["cat", file_path],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
        log_output=log_output,
    )
    if result.returncode != 0:
        return None
    return result.stdout


def append_line_if_missing(
    file_path: str,
    line: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Append `line` to `file_path` unless an identical line already exists.

    Returns:
        True if the line was appended, False if it was already present.
    """
    logger_to_use = current_logger if current_logger else module_logger
    probe = run_elevated_command(
        ["grep", "-qxF", line, file_path],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=logger_to_use,
    )
    if probe.returncode == 0:
        log_server(
            f"Line already present in {file_path}, skipping.",
            "debug",
            logger_to_use,
            app_settings,
        )
        return False
    write_file(
        file_path,
        line + "\n",
        app_settings,
        current_logger=logger_to_use,
        append=True,
    )
    return True


def ensure_directory(
    dir_path: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    owner: Optional[str] = None,
    mode: Optional[str] = None,
) -> None:
    """Create `dir_path` (with parents) as root and optionally set owner and mode."""
    logger_to_use = current_logger if current_logger else module_logger
    run_elevated_command(
        ["mkdir", "-p", dir_path],
        app_settings,
        current_logger=logger_to_use,
    )
    if owner:
        run_elevated_command(
            ["chown", owner, dir_path],
            app_settings,
            current_logger=logger_to_use,
        )
    if mode:
        run_elevated_command(
            ["chmod", mode, dir_path],
            app_settings,
            current_logger=logger_to_use,
        )


def remove_path(
    path: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """`rm -rf` a path as root. Returns False and logs on failure."""
    logger_to_use = current_logger if current_logger else module_logger
    try:
        run_elevated_command(
            ["rm", "-rf", path],
            app_settings,
            current_logger=logger_to_use,
        )
        return True
    except subprocess.CalledProcessError as e:
        log_server(
            f"{get_symbols(app_settings).get('error', '❌')} Failed to remove {path}: {e}",
            "error",
            logger_to_use,
            app_settings,
        )
        return False

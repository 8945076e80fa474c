# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Utilities for executing external commands and logging their output.

Every binary the provisioner drives (apt-get, systemctl, mysql, certbot,
composer, ...) goes through run_command or run_elevated_command so the
command line, captured streams and failures all end up in the run log.
"""

import logging
import os
import shutil
import subprocess
from typing import Dict, List, Optional, Union

from installer.config import SYMBOLS_DEFAULT
from installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def get_symbols(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    if app_settings and app_settings.symbols:
        return app_settings.symbols
    return SYMBOLS_DEFAULT


def log_server(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    app_settings: Optional[AppSettings] = None,
    exc_info: bool = False,
) -> None:
    """
    Log a provisioning message at the named level.

    Args:
        message: The log message to be recorded.
        level: One of "debug", "info", "success", "warning", "error" or
            "critical". Unknown levels log at INFO.
        current_logger: Logger to use. Falls back to the module logger.
        app_settings: Accepted for call-site symmetry with the other helpers.
        exc_info: Attach the active exception's traceback.
    """
    effective_logger = current_logger if current_logger else module_logger
    effective_logger.log(
        _LEVELS.get(level, logging.INFO), message, exc_info=exc_info
    )


def _get_elevated_command_prefix() -> List[str]:
    """Return ["sudo"] unless the process already runs as root."""
    return [] if os.geteuid() == 0 else ["sudo"]


def _format_command(command: Union[List[str], str]) -> str:
    if isinstance(command, list):
        return subprocess.list2cmdline(command)
    return str(command)


def run_command(
    command: Union[List[str], str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    shell: bool = False,
    capture_output: bool = False,
    text: bool = True,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    log_output: bool = True,
) -> subprocess.CompletedProcess:
    """
    Execute a command, logging the command line and any captured output.

    Args:
        command: The command as a list of arguments, or a string when
            `shell` is True.
        app_settings: Provisioner settings, used for log symbols.
        check: Raise CalledProcessError on a non-zero exit code.
        shell: Run the command through the shell.
        capture_output: Capture stdout and stderr and log them.
        text: Decode the output streams as text.
        cmd_input: Data written to the command's standard input.
        current_logger: Logger to use. Falls back to the module logger.
        cwd: Working directory of the command.
        env: Extra environment variables, merged over the current
            environment.
        log_output: Log captured output at debug level. Disable for
            commands that echo secrets back.

    Returns:
        The completed process.

    Raises:
        subprocess.CalledProcessError: The command failed and `check` is True.
        FileNotFoundError: The executable does not exist.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)

    command_to_run: Union[List[str], str]
    if shell:
        command_to_run = (
            " ".join(command) if isinstance(command, list) else command
        )
    elif isinstance(command, str):
        log_server(
            f"{symbols.get('warning', '!')} Running string command '{command}' without shell=True. Splitting on whitespace.",
            "warning",
            effective_logger,
            app_settings,
        )
        command_to_run = command.split()
    else:
        command_to_run = command
    command_to_log_str = _format_command(command_to_run)

    run_env = None
    if env:
        run_env = os.environ.copy()
        run_env.update(env)

    log_server(
        f"{symbols.get('gear', '⚙️')} Executing: {command_to_log_str}{f' (in {cwd})' if cwd else ''}",
        "info",
        effective_logger,
        app_settings,
    )
    try:
        result = subprocess.run(
            command_to_run,
            check=check,
            shell=shell,
            capture_output=capture_output,
            text=text,
            input=cmd_input,
            cwd=cwd,
            env=run_env,
        )
    except subprocess.CalledProcessError as e:
        log_server(
            f"{symbols.get('error', '❌')} Command `{_format_command(e.cmd)}` failed (rc {e.returncode}).",
            "error",
            effective_logger,
            app_settings,
        )
        for stream_name, stream in (("stdout", e.stdout), ("stderr", e.stderr)):
            if stream and hasattr(stream, "strip") and stream.strip():
                log_server(
                    f"   {stream_name}: {stream.strip()}",
                    "error",
                    effective_logger,
                    app_settings,
                )
        raise
    except FileNotFoundError as e:
        log_server(
            f"{symbols.get('error', '❌')} Command not found: {e.filename}. Ensure it's installed and in PATH.",
            "error",
            effective_logger,
            app_settings,
        )
        raise

    if capture_output and log_output:
        if result.stdout and result.stdout.strip():
            log_server(
                f"   stdout: {result.stdout.strip()}",
                "debug",
                effective_logger,
                app_settings,
            )
        if result.stderr and result.stderr.strip():
            log_server(
                f"   stderr: {result.stderr.strip()}",
                "debug" if result.returncode == 0 else "warning",
                effective_logger,
                app_settings,
            )
    return result


def run_elevated_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    log_output: bool = True,
) -> subprocess.CompletedProcess:
    """
    Execute a command as root, prefixing sudo when not already root.

    sudo resets the environment, so `env` entries are passed through
    `env KEY=VALUE` inside the elevated command instead.
    """
    elevated_command_list = _get_elevated_command_prefix()
    if env:
        elevated_command_list = elevated_command_list + ["env"] + [
            f"{key}={value}" for key, value in env.items()
        ]
    elevated_command_list = elevated_command_list + list(command)
    return run_command(
        elevated_command_list,
        app_settings,
        check=check,
        shell=False,
        capture_output=capture_output,
        text=True,
        cmd_input=cmd_input,
        current_logger=current_logger,
        cwd=cwd,
        log_output=log_output,
    )


def command_exists(command_name: str) -> bool:
    """Check if a command exists in the system's PATH."""
    return shutil.which(command_name) is not None


def check_package_installed(
    package_name: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Check whether a Debian package is installed using `dpkg-query`.

    Args:
        package_name: The name of the package.
        app_settings: Provisioner settings, used for log symbols.
        current_logger: Logger to use. Falls back to the module logger.

    Returns:
        True if dpkg reports "install ok installed", otherwise False.
    """
    logger_to_use = current_logger if current_logger else module_logger
    try:
        result = run_command(
            ["dpkg-query", "-W", "-f=${Status}", package_name],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except FileNotFoundError:
        log_server(
            f"{get_symbols(app_settings).get('error', '❌')} dpkg-query command not found. Cannot check package '{package_name}'.",
            "error",
            logger_to_use,
            app_settings,
        )
        return False
    return result.returncode == 0 and "install ok installed" in result.stdout

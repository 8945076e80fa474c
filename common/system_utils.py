# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the provisioner.

This module includes helpers for systemd services, host identity (the FQDN
used in certificate e-mail addresses), user probes and PHP version detection.
"""

import logging
import re
import subprocess
from typing import Iterable, Optional

from common.command_utils import (
    get_symbols,
    log_server,
    run_command,
    run_elevated_command,
)
from installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

PHP_VERSION_PATTERN = re.compile(r"^\d+\.\d+$")


def service_is_active(
    service_name: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Return True when `systemctl is-active` reports the unit as active."""
    logger_to_use = current_logger if current_logger else module_logger
    try:
        result = run_command(
            ["systemctl", "is-active", "--quiet", service_name],
            app_settings,
            check=False,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0


def manage_service(
    service_name: str,
    actions: Iterable[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Run `systemctl <action> <service>` for each action in order.

    Typical use is ("enable", "restart"). CalledProcessError propagates.
    """
    logger_to_use = current_logger if current_logger else module_logger
    for action in actions:
        run_elevated_command(
            ["systemctl", action, service_name],
            app_settings,
            current_logger=logger_to_use,
        )


def reload_service_quietly(
    service_name: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Reload a service, logging a warning instead of raising on failure."""
    logger_to_use = current_logger if current_logger else module_logger
    symbols = app_settings.symbols
    try:
        run_elevated_command(
            ["systemctl", "reload", service_name],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        log_server(
            f"{symbols.get('warning', '!')} Could not reload {service_name}: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False


def user_exists(
    username: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """Probe a system user with `id -u`."""
    result = run_command(
        ["id", "-u", username],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
    )
    return result.returncode == 0


def path_exists(
    path: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
    test_flag: str = "-e",
) -> bool:
    """
    Probe a path as root with `test`.

    Root-owned locations such as /etc/sudoers.d are not readable by the
    invoking user, so the check runs elevated.
    """
    result = run_elevated_command(
        ["test", test_flag, path],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
    )
    return result.returncode == 0


def get_fqdn(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """Return the configured server FQDN or the output of `hostname -f`."""
    if app_settings.server_fqdn:
        return app_settings.server_fqdn
    result = run_command(
        ["hostname", "-f"],
        app_settings,
        capture_output=True,
        current_logger=current_logger,
    )
    return result.stdout.strip()


def get_php_version(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Return the PHP MAJOR.MINOR version.

    A version pinned in settings wins; otherwise the installed CLI is asked.

    Raises:
        RuntimeError: If the reported version is not MAJOR.MINOR.
    """
    if app_settings.php.version:
        return app_settings.php.version

    logger_to_use = current_logger if current_logger else module_logger
    result = run_command(
        ["php", "-r", 'echo PHP_MAJOR_VERSION.".".PHP_MINOR_VERSION;'],
        app_settings,
        capture_output=True,
        current_logger=logger_to_use,
    )
    version = result.stdout.strip()
    if not PHP_VERSION_PATTERN.match(version):
        raise RuntimeError(f"Unexpected PHP version string: '{version}'")
    log_server(
        f"{get_symbols(app_settings).get('info', 'ℹ️')} Detected PHP version {version}",
        "info",
        logger_to_use,
        app_settings,
    )
    return version


def get_php_extension_dir(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """
    Return PHP's extension_dir as reported by `php -i`.

    Raises:
        RuntimeError: If no extension_dir line is present.
    """
    result = run_command(
        ["php", "-i"],
        app_settings,
        capture_output=True,
        current_logger=current_logger,
    )
    for line in result.stdout.splitlines():
        if line.startswith("extension_dir"):
            # extension_dir => /usr/lib/php/20210902 => /usr/lib/php/20210902
            parts = [p.strip() for p in line.split("=>")]
            if len(parts) >= 2 and parts[-1]:
                return parts[-1]
    raise RuntimeError("Could not determine PHP extension_dir from 'php -i'.")

# common/credentials.py
# -*- coding: utf-8 -*-
"""
Append-only credentials file kept in the admin user's home.

Each line has the form `<label>: <value...>`. Lines are never rewritten, so
a lookup returns the value from the last line carrying the label.
"""

import logging
import secrets
from typing import Optional

from installer.config_models import ALNUM_ALPHABET, AppSettings

from .command_utils import get_symbols, log_server
from .file_utils import read_file, write_file

module_logger = logging.getLogger(__name__)


def generate_password(length: int = 12, alphabet: str = ALNUM_ALPHABET) -> str:
    """Return a random password drawn from `alphabet` using `secrets`."""
    if length <= 0:
        raise ValueError("Password length must be positive.")
    if not alphabet:
        raise ValueError("Password alphabet must not be empty.")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def parse_credential(content: str, label: str) -> Optional[str]:
    """
    Find the last `<label>: ...` line in `content`.

    Returns:
        The first whitespace-separated token after the colon, or None.
    """
    found: Optional[str] = None
    for line in content.splitlines():
        key, sep, rest = line.partition(":")
        if not sep or key.strip() != label:
            continue
        tokens = rest.split()
        if tokens:
            found = tokens[0]
    return found


def read_credential(
    label: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """Look up `label` in the credentials file. Missing file means None."""
    logger_to_use = current_logger if current_logger else module_logger
    content = read_file(
        app_settings.credentials_path, app_settings, logger_to_use, log_output=False
    )
    if content is None:
        return None
    return parse_credential(content, label)


def append_credential(
    label: str,
    value: str,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """
    Append `label: value` and lock the file down to the admin user (mode 600).
    """
    logger_to_use = current_logger if current_logger else module_logger
    admin = app_settings.admin_user.name
    write_file(
        app_settings.credentials_path,
        f"{label}: {value}\n",
        app_settings,
        current_logger=logger_to_use,
        mode="600",
        owner=f"{admin}:{admin}",
        append=True,
    )
    log_server(
        f"{get_symbols(app_settings).get('key', '🔑')} Recorded '{label}' in {app_settings.credentials_path}",
        "info",
        logger_to_use,
        app_settings,
    )
